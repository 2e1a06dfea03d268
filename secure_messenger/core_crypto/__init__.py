# Core Crypto Module
"""
secp256k1 key handling:
- Key pair generation
- Hex parsing with 0x normalization
- Public key recovery from a private key
"""

from .keys import (
    CURVE,
    CURVE_ORDER,
    PRIVATE_KEY_SIZE,
    PUBLIC_KEY_SIZE,
    KeyPair,
    normalize_hex,
    load_private_key,
    load_public_key,
    public_key_bytes,
    encode_public_key,
    public_key_from_private,
)

__all__ = [
    'CURVE',
    'CURVE_ORDER',
    'PRIVATE_KEY_SIZE',
    'PUBLIC_KEY_SIZE',
    'KeyPair',
    'normalize_hex',
    'load_private_key',
    'load_public_key',
    'public_key_bytes',
    'encode_public_key',
    'public_key_from_private',
]
