"""32-byte big-endian field element encoding.

snarkjs and nargo emit BN254 scalars as decimal strings. Soroban's BN254 host
functions take 32-byte big-endian arrays, left-padded with zeros.
"""
from __future__ import annotations

import re

from stellar_zk.errors import CodecError

FIELD_ELEMENT_SIZE = 32

_DECIMAL_RE = re.compile(r"[0-9]+")


def int_to_bytes32(value: int) -> bytes:
    """Encode a non-negative integer below 2**256 as 32 bytes big-endian."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise CodecError(f"field element must be an integer, got {type(value).__name__}")
    if value < 0:
        raise CodecError(f"field element must be non-negative: {value}")
    if value.bit_length() > FIELD_ELEMENT_SIZE * 8:
        raise CodecError(f"value too large for 32 bytes: {value}")
    return value.to_bytes(FIELD_ELEMENT_SIZE, "big")


def decimal_to_bytes32(s: str) -> bytes:
    """Parse a base-10 string and encode it as a 32-byte field element.

    Only plain ASCII digits are accepted; signs, whitespace and the digit
    separators ``int()`` would tolerate are rejected.
    """
    if not isinstance(s, str):
        raise CodecError(f"field element must be a decimal string, got {type(s).__name__}")
    if not _DECIMAL_RE.fullmatch(s):
        raise CodecError(f"invalid decimal: {s!r}")
    # 2**256 has 78 decimal digits; also keeps int() under its digit limit
    if len(s.lstrip("0")) > 78:
        raise CodecError(f"value too large for 32 bytes: {s}")
    try:
        return int_to_bytes32(int(s, 10))
    except CodecError:
        raise CodecError(f"value too large for 32 bytes: {s}") from None


def to_bytes32(value: int | str) -> bytes:
    """Encode either an integer or a decimal string."""
    if isinstance(value, str):
        return decimal_to_bytes32(value)
    return int_to_bytes32(value)


__all__ = ["FIELD_ELEMENT_SIZE", "int_to_bytes32", "decimal_to_bytes32", "to_bytes32"]
