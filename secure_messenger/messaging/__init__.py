# Secure Messaging Module
"""
Sign-then-encrypt messaging over secp256k1:
- ECDH key agreement, SHA-256 of the shared x-coordinate
- Deterministic ECDSA signatures (RFC 6979, low-S, compact)
- Canonical JSON envelope (message, signature, timestamp, from)
- AES-256-GCM packages, base64 on the wire

Receivers decrypt, then verify, then release the message.
"""

from .key_agreement import (
    KeyAgreement,
    derive_shared_secret,
    SHARED_SECRET_SIZE,
)

from .signer import (
    Signer,
    sign_message,
    verify_signature,
    message_digest,
    SIGNATURE_SIZE,
)

from .envelope import (
    Envelope,
    ENVELOPE_FIELDS,
    utc_timestamp,
)

from .cipher import (
    AESGCMCipher,
    encode_package,
    decode_package,
    generate_nonce,
    PACKAGE_VERSION,
)

from .secure_channel import (
    SecureChannel,
    VerificationResult,
    send_secure_message,
    receive_secure_message,
    GENERIC_FAILURE_TEXT,
)

__all__ = [
    'KeyAgreement',
    'derive_shared_secret',
    'SHARED_SECRET_SIZE',
    'Signer',
    'sign_message',
    'verify_signature',
    'message_digest',
    'SIGNATURE_SIZE',
    'Envelope',
    'ENVELOPE_FIELDS',
    'utc_timestamp',
    'AESGCMCipher',
    'encode_package',
    'decode_package',
    'generate_nonce',
    'PACKAGE_VERSION',
    'SecureChannel',
    'VerificationResult',
    'send_secure_message',
    'receive_secure_message',
    'GENERIC_FAILURE_TEXT',
]
