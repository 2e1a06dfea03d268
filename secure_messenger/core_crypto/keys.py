"""
secp256k1 Key Handling

Keys cross the API boundary as hexadecimal strings:
- Private key: 32-byte big-endian scalar (64 hex chars)
- Public key: SEC1 uncompressed point 04 || X || Y (130 hex chars)

Hex input may be upper or lower case and may carry a 0x prefix.
Compressed public keys (33 bytes) are accepted on input and always
re-encoded uncompressed on output.

Private key material is never logged and never appears in reprs.
"""

from dataclasses import dataclass, field
from typing import Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ..errors import InvalidKeyError


# Constants
CURVE = ec.SECP256K1()
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
PRIVATE_KEY_SIZE = 32              # bytes
PUBLIC_KEY_SIZE = 65               # uncompressed SEC1 point
COMPRESSED_PUBLIC_KEY_SIZE = 33

PrivateKeyLike = Union[str, bytes, ec.EllipticCurvePrivateKey]
PublicKeyLike = Union[str, bytes, ec.EllipticCurvePublicKey]


def normalize_hex(value: str) -> str:
    """
    Normalize a hex string: strip whitespace and 0x prefix, lowercase.

    Raises:
        InvalidKeyError: If the value is not an even-length hex string
    """
    if not isinstance(value, str):
        raise InvalidKeyError("hex value must be a string")
    text = value.strip()
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    text = text.lower()
    if not text or len(text) % 2:
        raise InvalidKeyError("hex value must have an even, non-zero length")
    try:
        bytes.fromhex(text)
    except ValueError as exc:
        raise InvalidKeyError("value is not valid hexadecimal") from exc
    return text


def _to_bytes(value: Union[str, bytes], what: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(normalize_hex(value))
    raise InvalidKeyError(f"{what} must be hex or bytes, got {type(value).__name__}")


def load_private_key(value: PrivateKeyLike) -> ec.EllipticCurvePrivateKey:
    """
    Load a secp256k1 private key from hex, raw bytes or a key object.

    Raises:
        InvalidKeyError: Wrong length, zero scalar, scalar >= n, or wrong curve
    """
    if isinstance(value, ec.EllipticCurvePrivateKey):
        if value.curve.name != CURVE.name:
            raise InvalidKeyError(f"private key is on {value.curve.name}, expected {CURVE.name}")
        return value

    raw = _to_bytes(value, "private key")
    if len(raw) != PRIVATE_KEY_SIZE:
        raise InvalidKeyError(f"private key must be {PRIVATE_KEY_SIZE} bytes, got {len(raw)}")

    scalar = int.from_bytes(raw, "big")
    if not 0 < scalar < CURVE_ORDER:
        raise InvalidKeyError("private key scalar is out of range")

    try:
        return ec.derive_private_key(scalar, CURVE)
    except ValueError as exc:
        raise InvalidKeyError("private key rejected by curve") from exc


def load_public_key(value: PublicKeyLike) -> ec.EllipticCurvePublicKey:
    """
    Load a secp256k1 public key from hex, SEC1 bytes or a key object.

    Raises:
        InvalidKeyError: Wrong length, bad prefix, or point not on curve
    """
    if isinstance(value, ec.EllipticCurvePublicKey):
        if value.curve.name != CURVE.name:
            raise InvalidKeyError(f"public key is on {value.curve.name}, expected {CURVE.name}")
        return value

    raw = _to_bytes(value, "public key")
    if len(raw) == PUBLIC_KEY_SIZE:
        if raw[0] != 0x04:
            raise InvalidKeyError("uncompressed public key must start with 0x04")
    elif len(raw) == COMPRESSED_PUBLIC_KEY_SIZE:
        if raw[0] not in (0x02, 0x03):
            raise InvalidKeyError("compressed public key must start with 0x02 or 0x03")
    else:
        raise InvalidKeyError(
            f"public key must be {PUBLIC_KEY_SIZE} or {COMPRESSED_PUBLIC_KEY_SIZE} bytes, got {len(raw)}"
        )

    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, raw)
    except ValueError as exc:
        raise InvalidKeyError("public key is not a point on secp256k1") from exc


def public_key_bytes(public_key: PublicKeyLike) -> bytes:
    """Uncompressed SEC1 encoding of a public key."""
    return load_public_key(public_key).public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint
    )


def encode_public_key(public_key: PublicKeyLike) -> str:
    """Canonical hex encoding of a public key (uncompressed, no prefix)."""
    return public_key_bytes(public_key).hex()


def public_key_from_private(private_key: PrivateKeyLike) -> str:
    """Recover the public key hex for a private key."""
    return encode_public_key(load_private_key(private_key).public_key())


@dataclass(frozen=True)
class KeyPair:
    """secp256k1 identity key pair."""
    private_key: ec.EllipticCurvePrivateKey = field(repr=False)
    public_key: ec.EllipticCurvePublicKey = field(repr=False)

    @classmethod
    def generate(cls) -> 'KeyPair':
        """Generate a new secp256k1 key pair from the OS CSPRNG."""
        private_key = ec.generate_private_key(CURVE)
        return cls(private_key, private_key.public_key())

    @classmethod
    def from_private_key(cls, value: PrivateKeyLike) -> 'KeyPair':
        """Rebuild a key pair from its private key."""
        private_key = load_private_key(value)
        return cls(private_key, private_key.public_key())

    @property
    def public_hex(self) -> str:
        return encode_public_key(self.public_key)

    def public_bytes(self) -> bytes:
        """Public key as uncompressed point (65 bytes)."""
        return public_key_bytes(self.public_key)

    def private_bytes(self) -> bytes:
        """Raw 32-byte private scalar. Handle with care."""
        value = self.private_key.private_numbers().private_value
        return value.to_bytes(PRIVATE_KEY_SIZE, "big")

    def private_hex(self) -> str:
        return self.private_bytes().hex()

    def __repr__(self) -> str:
        return f"KeyPair(public={self.public_hex[:18]}...)"
