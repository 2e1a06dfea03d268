"""
Secure Messenger

Sign-then-encrypt authenticated messaging over secp256k1:
ECDH key agreement, deterministic ECDSA signatures and AES-256-GCM.
"""

from .core_crypto import KeyPair, public_key_from_private
from .errors import (
    SecureMessengerError,
    InvalidKeyError,
    DecryptionError,
    MalformedEnvelopeError,
    SignatureInvalidError,
    KeystoreError,
)
from .keystore import Keystore
from .messaging import (
    KeyAgreement,
    Signer,
    Envelope,
    SecureChannel,
    VerificationResult,
    send_secure_message,
    receive_secure_message,
)

__version__ = "1.0.0"

__all__ = [
    'KeyPair',
    'public_key_from_private',
    'SecureMessengerError',
    'InvalidKeyError',
    'DecryptionError',
    'MalformedEnvelopeError',
    'SignatureInvalidError',
    'KeystoreError',
    'Keystore',
    'KeyAgreement',
    'Signer',
    'Envelope',
    'SecureChannel',
    'VerificationResult',
    'send_secure_message',
    'receive_secure_message',
]
