"""
Error taxonomy for the secure messenger.

InvalidKeyError is raised to the caller. The other protocol errors are
raised inside the receive pipeline and folded into a VerificationResult,
so callers only ever check ``result.verified``.
"""


class SecureMessengerError(Exception):
    """Base class for all secure messenger errors."""
    kind = "error"


class InvalidKeyError(SecureMessengerError, ValueError):
    """Malformed or out-of-range key material."""
    kind = "invalid_key"


class DecryptionError(SecureMessengerError):
    """Ciphertext failed authentication or is not a valid package."""
    kind = "decryption_failed"


class MalformedEnvelopeError(SecureMessengerError):
    """Decrypted plaintext is not a well-formed envelope."""
    kind = "malformed_envelope"


class SignatureInvalidError(SecureMessengerError):
    """Signature does not verify against the claimed sender key."""
    kind = "signature_invalid"


class KeystoreError(SecureMessengerError):
    """Keystore lookup, unlock or file format failure."""
    kind = "keystore"
