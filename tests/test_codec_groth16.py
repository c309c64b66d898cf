from __future__ import annotations

import struct

import pytest

from stellar_zk.codec import (
    PROOF_SIZE,
    VK_HEADER_SIZE,
    encode_g1,
    encode_g2,
    encode_proof,
    encode_verification_key,
    g2_from_snarkjs,
    proof_from_snarkjs,
    public_inputs_from_snarkjs,
    verification_key_from_snarkjs,
)
from stellar_zk.errors import CodecError


def test_g1_is_x_then_y() -> None:
    out = encode_g1(1, 2)
    assert len(out) == 64
    assert out[31] == 1
    assert out[63] == 2


def test_g2_swaps_each_fp2_pair() -> None:
    out = encode_g2((10, 20), (30, 40))
    assert len(out) == 128
    assert out[31] == 20
    assert out[63] == 10
    assert out[95] == 40
    assert out[127] == 30


def test_proof_layout() -> None:
    out = encode_proof((1, 2), ((3, 4), (5, 6)), (7, 8))
    assert len(out) == PROOF_SIZE == 256
    expected = {31: 1, 63: 2, 95: 4, 127: 3, 159: 6, 191: 5, 223: 7, 255: 8}
    for index, value in expected.items():
        assert out[index] == value, index


@pytest.mark.parametrize("count", [0, 1, 2, 5, 17])
def test_verification_key_length_and_ic_count(count: int) -> None:
    ic = [(i + 1, i + 2) for i in range(count)]
    out = encode_verification_key((1, 2), ((3, 4), (5, 6)), ((7, 8), (9, 10)), ((11, 12), (13, 14)), ic)
    assert len(out) == 452 + 64 * count
    assert struct.unpack(">I", out[VK_HEADER_SIZE:VK_HEADER_SIZE + 4]) == (count,)


def test_verification_key_g2_points_are_swapped() -> None:
    out = encode_verification_key((1, 2), ((3, 4), (5, 6)), ((7, 8), (9, 10)), ((11, 12), (13, 14)), [])
    # beta starts right after alpha
    assert out[64 + 31] == 4
    assert out[64 + 63] == 3


def test_oversized_coordinate_is_codec_error() -> None:
    with pytest.raises(CodecError):
        encode_proof((2**256, 2), ((3, 4), (5, 6)), (7, 8))
    with pytest.raises(CodecError):
        encode_verification_key((1, 2), ((3, 4), (5, 6)), ((7, 8), (9, 10)), ((11, 12), (13, 14)), [(2**256, 1)])


def test_g2_rejects_wrong_shape() -> None:
    with pytest.raises(CodecError):
        encode_g2((1, 2, 3), (4, 5))
    with pytest.raises(CodecError):
        encode_g2("12", (4, 5))


SNARKJS_PROOF = {
    "pi_a": ["1", "2", "1"],
    "pi_b": [["3", "4"], ["5", "6"], ["1", "0"]],
    "pi_c": ["7", "8", "1"],
    "protocol": "groth16",
    "curve": "bn128",
}


def test_snarkjs_proof_matches_direct_encoding() -> None:
    assert proof_from_snarkjs(SNARKJS_PROOF) == encode_proof((1, 2), ((3, 4), (5, 6)), (7, 8))


def test_snarkjs_proof_missing_key() -> None:
    broken = {k: v for k, v in SNARKJS_PROOF.items() if k != "pi_b"}
    with pytest.raises(CodecError, match="pi_b"):
        proof_from_snarkjs(broken)


def test_snarkjs_proof_must_be_object() -> None:
    with pytest.raises(CodecError):
        proof_from_snarkjs(["1", "2"])


def test_snarkjs_coordinates_must_be_strings() -> None:
    broken = dict(SNARKJS_PROOF, pi_a=[1, 2, 1])
    with pytest.raises(CodecError):
        proof_from_snarkjs(broken)


def test_snarkjs_g2_short_pair() -> None:
    with pytest.raises(CodecError):
        g2_from_snarkjs([["3"], ["5", "6"]])


def test_snarkjs_verification_key() -> None:
    vk = {
        "protocol": "groth16",
        "vk_alpha_1": ["1", "2", "1"],
        "vk_beta_2": [["3", "4"], ["5", "6"], ["1", "0"]],
        "vk_gamma_2": [["7", "8"], ["9", "10"], ["1", "0"]],
        "vk_delta_2": [["11", "12"], ["13", "14"], ["1", "0"]],
        "IC": [["15", "16", "1"], ["17", "18", "1"]],
    }
    expected = encode_verification_key(
        (1, 2), ((3, 4), (5, 6)), ((7, 8), (9, 10)), ((11, 12), (13, 14)), [(15, 16), (17, 18)]
    )
    assert verification_key_from_snarkjs(vk) == expected


def test_snarkjs_verification_key_ic_must_be_list() -> None:
    vk = {
        "vk_alpha_1": ["1", "2"],
        "vk_beta_2": [["3", "4"], ["5", "6"]],
        "vk_gamma_2": [["7", "8"], ["9", "10"]],
        "vk_delta_2": [["11", "12"], ["13", "14"]],
        "IC": "nope",
    }
    with pytest.raises(CodecError, match="IC"):
        verification_key_from_snarkjs(vk)


def test_snarkjs_public_inputs() -> None:
    out = public_inputs_from_snarkjs(["33", "0"])
    assert out == [(33).to_bytes(32, "big"), bytes(32)]


def test_snarkjs_public_inputs_reject_numbers() -> None:
    with pytest.raises(CodecError):
        public_inputs_from_snarkjs([33])
    with pytest.raises(CodecError):
        public_inputs_from_snarkjs({"0": "33"})
