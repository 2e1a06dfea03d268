"""
AES-256-GCM Package Cipher

Package layout (before base64):
    [version (1 byte) | nonce (12 bytes) | ciphertext | tag (16 bytes)]

The version byte is passed as associated data, so flipping any byte of
the package fails authentication. The text form is standard base64,
which is plain ASCII and safe to paste into a message body.
"""

import base64
import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import DecryptionError


# Constants
PACKAGE_VERSION = 1
AES_KEY_SIZE = 32       # 256 bits
NONCE_SIZE = 12         # 96 bits for GCM
TAG_SIZE = 16           # 128 bits for GCM tag
HEADER_SIZE = 1
MIN_PACKAGE_SIZE = HEADER_SIZE + NONCE_SIZE + TAG_SIZE


def generate_nonce() -> bytes:
    """
    Generate a random nonce for AES-GCM.

    A fresh nonce per message; with a static ECDH key the key is reused
    across messages, so nonces must never repeat.
    """
    return secrets.token_bytes(NONCE_SIZE)


class AESGCMCipher:
    """AES-256-GCM over self-describing packages. Holds no mutable state."""

    def __init__(self, key: bytes):
        """
        Args:
            key: 256-bit (32-byte) key
        """
        if len(key) != AES_KEY_SIZE:
            raise ValueError(f"Key must be {AES_KEY_SIZE} bytes")
        self._aesgcm = AESGCM(key)

    def seal(self, plaintext: bytes) -> bytes:
        """Encrypt plaintext into a versioned package."""
        header = bytes([PACKAGE_VERSION])
        nonce = generate_nonce()
        return header + nonce + self._aesgcm.encrypt(nonce, plaintext, header)

    def open(self, package: bytes) -> bytes:
        """
        Authenticate and decrypt a package.

        Raises:
            DecryptionError: Truncated, unknown version, or failed tag check
        """
        if len(package) < MIN_PACKAGE_SIZE:
            raise DecryptionError("package is too short")

        header = package[:HEADER_SIZE]
        if header[0] != PACKAGE_VERSION:
            raise DecryptionError(f"unsupported package version {header[0]}")

        nonce = package[HEADER_SIZE:HEADER_SIZE + NONCE_SIZE]
        body = package[HEADER_SIZE + NONCE_SIZE:]
        try:
            return self._aesgcm.decrypt(nonce, body, header)
        except InvalidTag as exc:
            raise DecryptionError("package failed authentication") from exc


def encode_package(package: bytes) -> str:
    """Binary package -> base64 text."""
    return base64.b64encode(package).decode("ascii")


def decode_package(text: str) -> bytes:
    """
    Base64 text -> binary package.

    Raises:
        DecryptionError: If the text is not strict base64
    """
    if not isinstance(text, str):
        raise DecryptionError("package must be text")
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionError("package is not valid base64") from exc
