"""Wire-format codecs shared by the proving backends."""

from .field import FIELD_ELEMENT_SIZE, decimal_to_bytes32, int_to_bytes32, to_bytes32
from .groth16 import (
    G1_SIZE,
    G2_SIZE,
    PROOF_SIZE,
    VK_HEADER_SIZE,
    encode_g1,
    encode_g2,
    encode_proof,
    encode_verification_key,
    g1_from_snarkjs,
    g2_from_snarkjs,
    proof_from_snarkjs,
    public_inputs_from_snarkjs,
    verification_key_from_snarkjs,
)
from .risc0 import RISC0_SELECTOR, SEAL_SIZE, encode_seal, validate_seal
from .ultrahonk import extract_public_inputs

__all__ = [
    "FIELD_ELEMENT_SIZE",
    "decimal_to_bytes32",
    "int_to_bytes32",
    "to_bytes32",
    "G1_SIZE",
    "G2_SIZE",
    "PROOF_SIZE",
    "VK_HEADER_SIZE",
    "encode_g1",
    "encode_g2",
    "encode_proof",
    "encode_verification_key",
    "g1_from_snarkjs",
    "g2_from_snarkjs",
    "proof_from_snarkjs",
    "public_inputs_from_snarkjs",
    "verification_key_from_snarkjs",
    "RISC0_SELECTOR",
    "SEAL_SIZE",
    "encode_seal",
    "validate_seal",
    "extract_public_inputs",
]
