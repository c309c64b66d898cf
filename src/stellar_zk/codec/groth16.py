"""Groth16 / BN254 wire formats for the Soroban verifier.

Layouts (all big-endian):

    G1     x | y                                   64 bytes
    G2     x_c1 | x_c0 | y_c1 | y_c0               128 bytes
    proof  A(G1) | B(G2) | C(G1)                   256 bytes
    vk     alpha(G1) | beta(G2) | gamma(G2) | delta(G2) | u32 len(IC) | IC[i](G1)...

The G2 component order is the one thing here that can silently break
verification: snarkjs emits Fp2 coordinates as ``[c0, c1]`` (low degree
first) while the Soroban BN254 host functions expect ``c1 | c0``. A wrong order
still produces 128 well-formed bytes, just for a different point, and the
on-chain pairing check fails. The verifier contract template must agree with
``encode_g2``.
"""
from __future__ import annotations

import struct
from typing import Any, Sequence, Tuple, Union

from stellar_zk.errors import CodecError

from .field import decimal_to_bytes32, to_bytes32

Scalar = Union[int, str]
G1Point = Tuple[Scalar, Scalar]
Fp2 = Tuple[Scalar, Scalar]
G2Point = Tuple[Fp2, Fp2]

G1_SIZE = 64
G2_SIZE = 128
PROOF_SIZE = G1_SIZE + G2_SIZE + G1_SIZE
VK_HEADER_SIZE = G1_SIZE + 3 * G2_SIZE  # 448, offset of the IC count


def _pair(value: Any, what: str) -> tuple:
    if isinstance(value, (str, bytes)) or not isinstance(value, (tuple, list)) or len(value) != 2:
        raise CodecError(f"{what} must be a pair")
    return tuple(value)


def encode_g1(x: Scalar, y: Scalar) -> bytes:
    return to_bytes32(x) + to_bytes32(y)


def encode_g2(x: Fp2, y: Fp2) -> bytes:
    """Encode a G2 point given as ``((x_c0, x_c1), (y_c0, y_c1))``.

    Output order is ``x_c1 | x_c0 | y_c1 | y_c0``. Applied unconditionally.
    """
    x_c0, x_c1 = _pair(x, "G2.x")
    y_c0, y_c1 = _pair(y, "G2.y")
    return to_bytes32(x_c1) + to_bytes32(x_c0) + to_bytes32(y_c1) + to_bytes32(y_c0)


def encode_proof(a: G1Point, b: G2Point, c: G1Point) -> bytes:
    return encode_g1(*_pair(a, "A")) + encode_g2(*_pair(b, "B")) + encode_g1(*_pair(c, "C"))


def encode_verification_key(
    alpha: G1Point,
    beta: G2Point,
    gamma: G2Point,
    delta: G2Point,
    ic: Sequence[G1Point],
) -> bytes:
    """Serialize a verification key; length is ``452 + 64 * len(ic)``."""
    parts = [
        encode_g1(*_pair(alpha, "alpha")),
        encode_g2(*_pair(beta, "beta")),
        encode_g2(*_pair(gamma, "gamma")),
        encode_g2(*_pair(delta, "delta")),
        struct.pack(">I", len(ic)),
    ]
    parts.extend(encode_g1(*_pair(point, f"IC[{i}]")) for i, point in enumerate(ic))
    return b"".join(parts)


# --- snarkjs JSON ----------------------------------------------------------
#
# proof.json:             {"pi_a": [x, y, "1"], "pi_b": [[x0, x1], [y0, y1], ["1", "0"]], "pi_c": [...]}
# verification_key.json:  {"vk_alpha_1": G1, "vk_beta_2": G2, "vk_gamma_2": G2, "vk_delta_2": G2, "IC": [G1, ...]}
# public.json:            ["decimal", ...]
#
# The trailing projective coordinate (z = 1) is ignored.

def _decimal(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise CodecError(f"{what} must be a string")
    return value


def g1_from_snarkjs(coords: Any, what: str = "G1") -> bytes:
    if not isinstance(coords, list) or len(coords) < 2:
        raise CodecError(f"{what} point must have at least 2 coordinates")
    x = _decimal(coords[0], f"{what}.x")
    y = _decimal(coords[1], f"{what}.y")
    return decimal_to_bytes32(x) + decimal_to_bytes32(y)


def g2_from_snarkjs(coords: Any, what: str = "G2") -> bytes:
    if not isinstance(coords, list) or len(coords) < 2:
        raise CodecError(f"{what} point must have at least 2 coordinate pairs")
    pairs = []
    for axis, pair in zip(("x", "y"), coords[:2]):
        if not isinstance(pair, list):
            raise CodecError(f"{what}.{axis} must be an array [c0, c1]")
        if len(pair) < 2:
            raise CodecError(f"{what} coordinate pairs must have 2 elements")
        pairs.append(
            (_decimal(pair[0], f"{what}.{axis}.c0"), _decimal(pair[1], f"{what}.{axis}.c1"))
        )
    return encode_g2(pairs[0], pairs[1])


def _field(obj: Any, key: str, what: str) -> Any:
    if not isinstance(obj, dict):
        raise CodecError(f"{what} must be a JSON object")
    if key not in obj:
        raise CodecError(f"{what} missing key: {key}")
    return obj[key]


def proof_from_snarkjs(proof: Any) -> bytes:
    """Convert a ``snarkjs groth16 prove`` proof object into 256 bytes."""
    a = g1_from_snarkjs(_field(proof, "pi_a", "proof"), "proof.pi_a")
    b = g2_from_snarkjs(_field(proof, "pi_b", "proof"), "proof.pi_b")
    c = g1_from_snarkjs(_field(proof, "pi_c", "proof"), "proof.pi_c")
    return a + b + c


def verification_key_from_snarkjs(vk: Any) -> bytes:
    """Convert a snarkjs ``verification_key.json`` object into wire format."""
    alpha = g1_from_snarkjs(_field(vk, "vk_alpha_1", "vk"), "vk.vk_alpha_1")
    beta = g2_from_snarkjs(_field(vk, "vk_beta_2", "vk"), "vk.vk_beta_2")
    gamma = g2_from_snarkjs(_field(vk, "vk_gamma_2", "vk"), "vk.vk_gamma_2")
    delta = g2_from_snarkjs(_field(vk, "vk_delta_2", "vk"), "vk.vk_delta_2")
    ic = _field(vk, "IC", "vk")
    if not isinstance(ic, list):
        raise CodecError("vk.IC must be an array")

    out = bytearray(alpha + beta + gamma + delta)
    out += struct.pack(">I", len(ic))
    for i, point in enumerate(ic):
        out += g1_from_snarkjs(point, f"IC[{i}]")
    return bytes(out)


def public_inputs_from_snarkjs(public: Any) -> list[bytes]:
    if not isinstance(public, list):
        raise CodecError("public inputs must be an array")
    return [
        decimal_to_bytes32(_decimal(value, f"public_input[{i}]"))
        for i, value in enumerate(public)
    ]


__all__ = [
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
    "verification_key_from_snarkjs",
    "public_inputs_from_snarkjs",
]
