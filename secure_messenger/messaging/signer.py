"""
ECDSA Message Signatures (secp256k1)

- Signs SHA-256(utf8(message)), never the raw message
- RFC 6979 deterministic nonces: same key + message -> same signature
- Low-S normalized, compact r || s encoding (64 bytes)

verify() reports failure as False and never raises: a bad signature is
an expected outcome, not an exceptional one.
"""

import logging
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from ..core_crypto.keys import (
    CURVE_ORDER,
    PrivateKeyLike,
    PublicKeyLike,
    load_private_key,
    load_public_key,
    normalize_hex,
)
from ..errors import InvalidKeyError

logger = logging.getLogger(__name__)

SIGNATURE_SIZE = 64
SCALAR_SIZE = 32
HALF_ORDER = CURVE_ORDER // 2


def message_digest(message: str) -> bytes:
    """SHA-256 of the UTF-8 encoded message."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(message.encode("utf-8"))
    return digest.finalize()


class Signer:
    """Deterministic ECDSA over message digests."""

    @staticmethod
    def sign(message: str, private_key: PrivateKeyLike) -> bytes:
        """
        Sign a text message.

        Args:
            message: UTF-8 text, empty string allowed
            private_key: Signer's private key

        Returns:
            64-byte compact signature (r || s, low-S)

        Raises:
            TypeError: If message is not a str
            InvalidKeyError: If the private key is malformed
        """
        if not isinstance(message, str):
            raise TypeError("message must be str")

        key = load_private_key(private_key)
        der = key.sign(
            message_digest(message),
            ec.ECDSA(Prehashed(hashes.SHA256()), deterministic_signing=True)
        )
        r, s = decode_dss_signature(der)
        if s > HALF_ORDER:
            s = CURVE_ORDER - s
        return r.to_bytes(SCALAR_SIZE, "big") + s.to_bytes(SCALAR_SIZE, "big")

    @staticmethod
    def verify(message: str, signature: Union[bytes, str],
               public_key: PublicKeyLike) -> bool:
        """
        Verify a compact signature over a text message.

        Returns:
            True only for a valid low-S signature by public_key
        """
        if not isinstance(message, str):
            return False
        try:
            digest = message_digest(message)
        except UnicodeEncodeError:
            return False

        try:
            key = load_public_key(public_key)
        except InvalidKeyError:
            return False

        if isinstance(signature, str):
            try:
                signature = bytes.fromhex(normalize_hex(signature))
            except InvalidKeyError:
                return False
        if not isinstance(signature, (bytes, bytearray)) or len(signature) != SIGNATURE_SIZE:
            return False

        r = int.from_bytes(signature[:SCALAR_SIZE], "big")
        s = int.from_bytes(signature[SCALAR_SIZE:], "big")
        if not (0 < r < CURVE_ORDER and 0 < s <= HALF_ORDER):
            return False

        try:
            key.verify(
                encode_dss_signature(r, s),
                digest,
                ec.ECDSA(Prehashed(hashes.SHA256()))
            )
        except InvalidSignature:
            logger.debug("signature rejected")
            return False
        return True


def sign_message(message: str, private_key: PrivateKeyLike) -> bytes:
    return Signer.sign(message, private_key)


def verify_signature(message: str, signature: Union[bytes, str],
                     public_key: PublicKeyLike) -> bool:
    return Signer.verify(message, signature, public_key)
