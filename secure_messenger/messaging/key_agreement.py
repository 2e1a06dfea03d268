"""
ECDH Key Agreement (secp256k1)

shared_secret = SHA-256(x-coordinate of d_self * Q_peer)

Symmetric by construction:
    derive(A.priv, B.pub) == derive(B.priv, A.pub)

Pure function, no caching. Secrets are never logged.
"""

import logging

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from ..core_crypto.keys import PrivateKeyLike, PublicKeyLike, load_private_key, load_public_key
from ..errors import InvalidKeyError

logger = logging.getLogger(__name__)

SHARED_SECRET_SIZE = 32  # SHA-256 digest


class KeyAgreement:
    """Elliptic Curve Diffie-Hellman on secp256k1."""

    @staticmethod
    def derive(private_key: PrivateKeyLike, counterparty_public_key: PublicKeyLike) -> bytes:
        """
        Derive the 32-byte symmetric key shared with a counterparty.

        Args:
            private_key: Caller's private key (hex, bytes or key object)
            counterparty_public_key: Other party's public key

        Returns:
            SHA-256 of the shared point's x-coordinate

        Raises:
            InvalidKeyError: If either key is malformed
        """
        own = load_private_key(private_key)
        peer = load_public_key(counterparty_public_key)

        try:
            # OpenSSL returns the x-coordinate of the shared point
            shared_x = own.exchange(ec.ECDH(), peer)
        except ValueError as exc:
            raise InvalidKeyError("key agreement failed") from exc

        digest = hashes.Hash(hashes.SHA256())
        digest.update(shared_x)
        logger.debug("derived shared secret")
        return digest.finalize()


def derive_shared_secret(private_key: PrivateKeyLike,
                         counterparty_public_key: PublicKeyLike) -> bytes:
    """Module-level shortcut for KeyAgreement.derive."""
    return KeyAgreement.derive(private_key, counterparty_public_key)
