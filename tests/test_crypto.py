"""Tests for K12 hashing and Ed25519 key handling."""

from __future__ import annotations

import pytest

from qubic_rpc.keys import crypto
from qubic_rpc.keys.crypto import InvalidKeyMaterial

# RFC 8032, section 7.1, test 1
RFC_PRIVATE = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC_PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")

VALID_SEED = "a" * 55


class TestK12:
    def test_empty_message_vector(self) -> None:
        assert crypto.k12_hex(b"") == "1ac2d450fc3b4205d19da7bfca1b37513c0803577ac7167f06fe2ce1f0ef39e5"

    def test_digest_size(self) -> None:
        assert len(crypto.k12(b"abc")) == 32
        assert len(crypto.k12(b"abc", digest_size=64)) == 64

    def test_distinct_inputs(self) -> None:
        assert crypto.k12(b"tx-1") != crypto.k12(b"tx-2")


class TestSeedDerivation:
    def test_deterministic(self) -> None:
        assert crypto.private_key_from_seed(VALID_SEED) == crypto.private_key_from_seed(VALID_SEED)

    def test_double_k12(self) -> None:
        expected = crypto.k12(crypto.k12(VALID_SEED.encode("ascii")))
        assert crypto.private_key_from_seed(VALID_SEED) == expected

    @pytest.mark.parametrize("seed", ["a" * 54, "a" * 56, ""])
    def test_wrong_length(self, seed: str) -> None:
        with pytest.raises(InvalidKeyMaterial, match="55"):
            crypto.private_key_from_seed(seed)

    @pytest.mark.parametrize("seed", ["a" * 54 + "!", "a" * 54 + " ", "a" * 54 + "é"])
    def test_invalid_characters(self, seed: str) -> None:
        with pytest.raises(InvalidKeyMaterial):
            crypto.private_key_from_seed(seed)


class TestPrivateKeyHex:
    def test_parses(self) -> None:
        assert crypto.private_key_from_hex(RFC_PRIVATE.hex()) == RFC_PRIVATE

    @pytest.mark.parametrize("value", ["ab" * 31, "ab" * 33, "0x" + "ab" * 32])
    def test_wrong_length(self, value: str) -> None:
        with pytest.raises(InvalidKeyMaterial):
            crypto.private_key_from_hex(value)

    def test_non_hex(self) -> None:
        with pytest.raises(InvalidKeyMaterial):
            crypto.private_key_from_hex("zz" * 32)


class TestSignVerify:
    def test_rfc8032_public_key(self) -> None:
        signing_key = crypto.load_signing_key(RFC_PRIVATE)
        assert crypto.public_key_bytes(signing_key) == RFC_PUBLIC

    def test_round_trip(self) -> None:
        signing_key = crypto.load_signing_key(RFC_PRIVATE)
        signature = crypto.sign(b"message", signing_key)
        assert len(signature) == crypto.SIGNATURE_SIZE
        assert crypto.verify(b"message", signature, RFC_PUBLIC)

    def test_tampered_message_fails(self) -> None:
        signing_key = crypto.load_signing_key(RFC_PRIVATE)
        signature = crypto.sign(b"message", signing_key)
        assert not crypto.verify(b"messagf", signature, RFC_PUBLIC)

    def test_malformed_inputs_return_false(self) -> None:
        assert not crypto.verify(b"m", b"\x00" * 10, RFC_PUBLIC)
        assert not crypto.verify(b"m", b"\x00" * 64, b"\x00" * 5)

    def test_load_signing_key_length(self) -> None:
        with pytest.raises(InvalidKeyMaterial):
            crypto.load_signing_key(b"\x01" * 31)
