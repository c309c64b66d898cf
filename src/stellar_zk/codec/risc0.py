"""RISC Zero Groth16 seal format.

A seal is the 4-byte selector of the wrapping circuit version followed by a
256-byte Groth16 proof laid out as in ``codec.groth16``.
"""
from __future__ import annotations

from stellar_zk.errors import CodecError

from .groth16 import PROOF_SIZE

RISC0_SELECTOR = bytes([0x31, 0x0F, 0xE5, 0x98])
SELECTOR_SIZE = 4
SEAL_SIZE = SELECTOR_SIZE + PROOF_SIZE  # 260


def encode_seal(selector: bytes, groth16_proof: bytes) -> bytes:
    if len(selector) != SELECTOR_SIZE:
        raise CodecError(f"seal selector must be {SELECTOR_SIZE} bytes, got {len(selector)}")
    if len(groth16_proof) != PROOF_SIZE:
        raise CodecError(f"Groth16 proof must be {PROOF_SIZE} bytes, got {len(groth16_proof)}")
    return bytes(selector) + bytes(groth16_proof)


def validate_seal(seal: bytes) -> bool:
    """True iff ``seal`` is 260 bytes and starts with ``RISC0_SELECTOR``."""
    return len(seal) == SEAL_SIZE and bytes(seal[:SELECTOR_SIZE]) == RISC0_SELECTOR


__all__ = ["RISC0_SELECTOR", "SELECTOR_SIZE", "SEAL_SIZE", "encode_seal", "validate_seal"]
