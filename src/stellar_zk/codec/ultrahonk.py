"""Barretenberg UltraHonk proof layout.

    [u32be public_input_count | count x 32-byte inputs | proof fields ...]

The proof blob itself is passed to the on-chain verifier unchanged; only the
public inputs are pulled out of the header.
"""
from __future__ import annotations

import struct

from .field import FIELD_ELEMENT_SIZE

COUNT_HEADER_SIZE = 4


def extract_public_inputs(proof: bytes) -> list[bytes]:
    """Read the public inputs from the head of a bb proof.

    Stops at the last complete 32-byte chunk when the buffer is shorter than
    the header claims, so an adversarial count never reads past the end.
    """
    if len(proof) < COUNT_HEADER_SIZE:
        return []
    (count,) = struct.unpack_from(">I", proof, 0)
    available = (len(proof) - COUNT_HEADER_SIZE) // FIELD_ELEMENT_SIZE

    inputs = []
    for i in range(min(count, available)):
        offset = COUNT_HEADER_SIZE + i * FIELD_ELEMENT_SIZE
        inputs.append(bytes(proof[offset:offset + FIELD_ELEMENT_SIZE]))
    return inputs


__all__ = ["COUNT_HEADER_SIZE", "extract_public_inputs"]
