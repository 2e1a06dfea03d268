"""
Secure Messaging Channel

Sign-then-encrypt authenticated messaging over secp256k1:
- ECDSA signature over SHA-256(message) (RFC 6979)
- ECDH key agreement, key = SHA-256(shared x-coordinate)
- AES-256-GCM authenticated encryption of the signed envelope

Send path:
    sign -> envelope -> derive shared secret -> encrypt -> base64

Receive path:
    derive shared secret -> decrypt -> parse envelope -> verify -> release

The message is only ever exposed after signature verification. Every
receive-side failure is reported in a VerificationResult; the only
exception receive() raises is InvalidKeyError for the receiver's own
private key, which is a caller bug.

No state is shared between calls, so send/receive are safe to run
concurrently from multiple threads.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core_crypto.keys import (
    KeyPair,
    PrivateKeyLike,
    PublicKeyLike,
    encode_public_key,
    load_private_key,
    load_public_key,
)
from ..errors import InvalidKeyError, SecureMessengerError, SignatureInvalidError
from .cipher import AESGCMCipher, decode_package, encode_package
from .envelope import Envelope
from .key_agreement import KeyAgreement
from .signer import Signer

logger = logging.getLogger(__name__)

GENERIC_FAILURE_TEXT = "Message could not be verified."


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of receive().

    ``message`` is None unless ``verified`` is True; constructing a result
    that violates this is refused.
    """
    verified: bool
    message: Optional[str] = None
    timestamp: str = ""
    sender: str = ""
    error: Optional[str] = None
    error_kind: Optional[str] = None

    def __post_init__(self):
        if not self.verified and self.message is not None:
            raise ValueError("unverified result must not carry a message")

    @classmethod
    def failure(cls, exc: SecureMessengerError, timestamp: str = "",
                sender: str = "") -> 'VerificationResult':
        return cls(
            verified=False,
            timestamp=timestamp,
            sender=sender,
            error=str(exc),
            error_kind=exc.kind,
        )

    def display_text(self) -> str:
        """Text safe to show a user; never reveals why verification failed."""
        return self.message if self.verified else GENERIC_FAILURE_TEXT

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'verified': self.verified,
            'timestamp': self.timestamp,
            'from': self.sender,
            'error': self.error,
        }


class SecureChannel:
    """
    End-to-end sign-then-encrypt messaging.

    Example:
        alice = KeyPair.generate()
        bob = KeyPair.generate()

        package = SecureChannel.send("hi", alice.private_hex(),
                                     alice.public_hex, bob.public_hex)
        result = SecureChannel.receive(package, bob.private_hex(),
                                       alice.public_hex)
        assert result.verified and result.message == "hi"

    An instance binds an identity key pair for the common case:
        SecureChannel(alice).send_to("hi", bob.public_hex)
    """

    def __init__(self, identity_keys: KeyPair):
        """
        Args:
            identity_keys: Long-term identity key pair
        """
        self._identity_keys = identity_keys

    @property
    def public_hex(self) -> str:
        return self._identity_keys.public_hex

    def send_to(self, message: str, receiver_public_key: PublicKeyLike) -> str:
        return self.send(
            message,
            self._identity_keys.private_key,
            self._identity_keys.public_key,
            receiver_public_key,
        )

    def receive_from(self, package: str,
                     sender_public_key: PublicKeyLike) -> VerificationResult:
        return self.receive(package, self._identity_keys.private_key, sender_public_key)

    @staticmethod
    def send(message: str, sender_private_key: PrivateKeyLike,
             sender_public_key: PublicKeyLike,
             receiver_public_key: PublicKeyLike) -> str:
        """
        Sign, envelope and encrypt a message for one receiver.

        Args:
            message: UTF-8 text
            sender_private_key: Sender's private key
            sender_public_key: Sender's public key (must match the private key)
            receiver_public_key: Receiver's public key

        Returns:
            Base64 EncryptedPackage

        Raises:
            TypeError: If message is not a str
            InvalidKeyError: If any key is malformed or the sender keys differ
        """
        if not isinstance(message, str):
            raise TypeError("message must be str")

        private_key = load_private_key(sender_private_key)
        public_key = load_public_key(sender_public_key)
        if encode_public_key(private_key.public_key()) != encode_public_key(public_key):
            raise InvalidKeyError("sender public key does not match sender private key")

        # 1. Sign
        signature = Signer.sign(message, private_key)

        # 2. Envelope
        envelope = Envelope.build(message, signature, public_key)

        # 3. Shared secret
        secret = KeyAgreement.derive(private_key, receiver_public_key)

        # 4. Encrypt the whole signed envelope
        package = AESGCMCipher(secret).seal(envelope.serialize())

        logger.debug(f"send: sealed package ({len(package)} bytes)")
        return encode_package(package)

    @staticmethod
    def receive(package: str, receiver_private_key: PrivateKeyLike,
                sender_public_key: PublicKeyLike) -> VerificationResult:
        """
        Decrypt, parse and verify a package.

        Args:
            package: Base64 EncryptedPackage
            receiver_private_key: Receiver's own private key
            sender_public_key: Expected sender's public key

        Returns:
            VerificationResult; message is set only when verified

        Raises:
            InvalidKeyError: If the receiver's own private key is malformed
        """
        own_key = load_private_key(receiver_private_key)

        try:
            # 1. Shared secret
            secret = KeyAgreement.derive(own_key, sender_public_key)

            # 2. Authenticated decryption
            plaintext = AESGCMCipher(secret).open(decode_package(package))

            # 3. Envelope
            envelope = Envelope.parse(plaintext)
        except SecureMessengerError as exc:
            logger.info(f"receive: rejected package ({exc.kind})")
            return VerificationResult.failure(exc)

        # 4. Verify before anything touches envelope.message
        if not Signer.verify(envelope.message, envelope.signature, sender_public_key):
            logger.info(f"receive: rejected package ({SignatureInvalidError.kind})")
            return VerificationResult.failure(
                SignatureInvalidError("signature verification failed"),
                timestamp=envelope.timestamp,
                sender=envelope.sender_identity,
            )

        logger.debug("receive: signature verified")
        return VerificationResult(
            verified=True,
            message=envelope.message,
            timestamp=envelope.timestamp,
            sender=envelope.sender_identity,
        )


def send_secure_message(message: str, sender_private_key: PrivateKeyLike,
                        sender_public_key: PublicKeyLike,
                        receiver_public_key: PublicKeyLike) -> str:
    """One-shot sign-then-encrypt. See SecureChannel.send."""
    return SecureChannel.send(message, sender_private_key, sender_public_key,
                              receiver_public_key)


def receive_secure_message(package: str, receiver_private_key: PrivateKeyLike,
                           sender_public_key: PublicKeyLike) -> VerificationResult:
    """One-shot decrypt-then-verify. See SecureChannel.receive."""
    return SecureChannel.receive(package, receiver_private_key, sender_public_key)
