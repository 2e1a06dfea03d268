"""
Unit tests for secp256k1 key handling.

Tests:
- Hex normalization (0x prefix, case, whitespace)
- Private key range checks
- Public key point validation
- Key pair reprs never leak private material
"""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from secure_messenger.core_crypto.keys import (
    CURVE_ORDER,
    KeyPair,
    encode_public_key,
    load_private_key,
    load_public_key,
    normalize_hex,
    public_key_from_private,
)
from secure_messenger.errors import InvalidKeyError


# Generator point G: public key for private key 1
GENERATOR_HEX = (
    "04"
    "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
    "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8"
)
ONE_HEX = "00" * 31 + "01"


class TestNormalizeHex:
    """Tests for hex input normalization."""

    def test_prefix_and_case(self):
        assert normalize_hex("0xABcd") == "abcd"
        assert normalize_hex("0XABCD") == "abcd"
        assert normalize_hex("  abcd\n") == "abcd"

    def test_odd_length_rejected(self):
        with pytest.raises(InvalidKeyError):
            normalize_hex("abc")

    def test_non_hex_rejected(self):
        with pytest.raises(InvalidKeyError):
            normalize_hex("zz")

    def test_empty_rejected(self):
        with pytest.raises(InvalidKeyError):
            normalize_hex("")
        with pytest.raises(InvalidKeyError):
            normalize_hex("0x")

    def test_non_string_rejected(self):
        with pytest.raises(InvalidKeyError):
            normalize_hex(1234)


class TestPrivateKeys:
    """Tests for private key loading."""

    def test_known_public_key(self):
        """Private key 1 maps to the generator point."""
        assert public_key_from_private(ONE_HEX) == GENERATOR_HEX

    def test_prefixed_and_unprefixed_agree(self):
        kp = KeyPair.generate()
        hex_key = kp.private_hex()
        assert public_key_from_private("0x" + hex_key) == kp.public_hex
        assert public_key_from_private(hex_key.upper()) == kp.public_hex

    def test_zero_scalar_rejected(self):
        with pytest.raises(InvalidKeyError):
            load_private_key("00" * 32)

    def test_scalar_at_order_rejected(self):
        with pytest.raises(InvalidKeyError):
            load_private_key(CURVE_ORDER.to_bytes(32, "big"))

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidKeyError):
            load_private_key("11" * 31)
        with pytest.raises(InvalidKeyError):
            load_private_key(b"\x11" * 33)

    def test_wrong_curve_rejected(self):
        p256 = ec.generate_private_key(ec.SECP256R1())
        with pytest.raises(InvalidKeyError):
            load_private_key(p256)

    def test_wrong_type_rejected(self):
        with pytest.raises(InvalidKeyError):
            load_private_key(12345)


class TestPublicKeys:
    """Tests for public key loading."""

    def test_uncompressed_round_trip(self):
        kp = KeyPair.generate()
        assert encode_public_key(kp.public_hex) == kp.public_hex
        assert len(kp.public_bytes()) == 65
        assert kp.public_hex.startswith("04")

    def test_compressed_accepted_and_normalized(self):
        kp = KeyPair.generate()
        compressed = kp.public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint
        )
        assert len(compressed) == 33
        assert encode_public_key(compressed.hex()) == kp.public_hex

    def test_point_not_on_curve_rejected(self):
        with pytest.raises(InvalidKeyError):
            load_public_key("04" + "00" * 64)

    def test_bad_prefix_rejected(self):
        with pytest.raises(InvalidKeyError):
            load_public_key("05" + GENERATOR_HEX[2:])

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidKeyError):
            load_public_key(GENERATOR_HEX[:-2])


class TestKeyPair:
    """Tests for KeyPair container."""

    def test_from_private_key(self):
        kp = KeyPair.generate()
        rebuilt = KeyPair.from_private_key(kp.private_hex())
        assert rebuilt.public_hex == kp.public_hex
        assert rebuilt.private_bytes() == kp.private_bytes()

    def test_private_hex_length(self):
        assert len(KeyPair.generate().private_hex()) == 64

    def test_repr_hides_private_key(self):
        kp = KeyPair.generate()
        text = repr(kp)
        assert kp.private_hex() not in text
        assert "KeyPair" in text

    def test_distinct_key_pairs(self):
        assert KeyPair.generate().public_hex != KeyPair.generate().public_hex
