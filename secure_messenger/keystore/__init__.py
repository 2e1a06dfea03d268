# Keystore Module
"""
Passphrase-protected identity storage:
- Argon2id key-encryption key per entry
- AES-256-GCM wrapped private keys
- Atomic JSON file writes
"""

from .keystore import (
    Keystore,
    KeystoreEntry,
    open_keystore,
    derive_kek,
    KDF_CONFIG,
    PASSPHRASE_MIN_LENGTH,
)

__all__ = [
    'Keystore',
    'KeystoreEntry',
    'open_keystore',
    'derive_kek',
    'KDF_CONFIG',
    'PASSPHRASE_MIN_LENGTH',
]
