"""
Identity Keystore

Stores secp256k1 identities in a JSON file with every private key
wrapped under a passphrase.

Wrapping:
- KEK = Argon2id(passphrase, random 16-byte salt)
- wrapped = AES-256-GCM(KEK, nonce, private_key, aad=label || public_key)

File format:
    {"version": 1, "keys": {<label>: {public_key, salt, nonce,
     wrapped_key, kdf: {...}, created_at}}}

Security considerations:
- Private keys and passphrases are never logged or written in plaintext
- KDF parameters are stored per entry so they can be raised later
- Writes go to a temp file, then os.replace()
"""

import json
import logging
import os
import secrets
import tempfile
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..core_crypto.keys import KeyPair, encode_public_key
from ..errors import InvalidKeyError, KeystoreError
from ..messaging.cipher import NONCE_SIZE
from ..messaging.envelope import utc_timestamp

logger = logging.getLogger(__name__)


KEYSTORE_VERSION = 1
PASSPHRASE_MIN_LENGTH = 8

# Argon2id configuration
# - time_cost: number of iterations
# - memory_cost: memory usage in KiB
# - parallelism: number of parallel threads
# - hash_len: length of the derived key
# - salt_len: length of the random salt
KDF_CONFIG = {
    'time_cost': 3,
    'memory_cost': 65536,    # 64 MiB
    'parallelism': 4,
    'hash_len': 32,          # AES-256 key
    'salt_len': 16,
}

KDF_PARAMS = ('time_cost', 'memory_cost', 'parallelism', 'hash_len')


def derive_kek(passphrase: str, salt: bytes, time_cost: int, memory_cost: int,
               parallelism: int, hash_len: int) -> bytes:
    """Derive a key-encryption key from a passphrase with Argon2id."""
    try:
        return hash_secret_raw(
            secret=passphrase.encode("utf-8"),
            salt=salt,
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=hash_len,
            type=Type.ID,
        )
    except HashingError as exc:
        raise KeystoreError("key derivation failed") from exc


@dataclass
class KeystoreEntry:
    """One wrapped identity."""
    public_key: str
    salt: str
    nonce: str
    wrapped_key: str
    kdf: Dict[str, int] = field(default_factory=dict)
    created_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KeystoreEntry':
        try:
            entry = cls(
                public_key=data['public_key'],
                salt=data['salt'],
                nonce=data['nonce'],
                wrapped_key=data['wrapped_key'],
                kdf=dict(data['kdf']),
                created_at=data.get('created_at', ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise KeystoreError("keystore entry is malformed") from exc

        if set(entry.kdf) != set(KDF_PARAMS) or not all(
                isinstance(value, int) for value in entry.kdf.values()):
            raise KeystoreError("keystore entry has invalid KDF parameters")
        return entry


def _aad(label: str, public_key: str) -> bytes:
    return label.encode("utf-8") + b"\x00" + bytes.fromhex(public_key)


class Keystore:
    """
    Passphrase-protected identity store backed by a JSON file.

    Example:
        >>> store = Keystore("keys.json")
        >>> kp = store.generate("alice", "correct horse battery")
        >>> store.unlock("alice", "correct horse battery").public_hex == kp.public_hex
        True
    """

    def __init__(self, path: str, **kdf_overrides):
        """
        Args:
            path: Keystore file; created on first write
            **kdf_overrides: Override default Argon2id parameters
        """
        config = KDF_CONFIG.copy()
        config.update(kdf_overrides)
        self._kdf = config
        self._path = path
        self._entries: Dict[str, KeystoreEntry] = {}
        if os.path.exists(path):
            self._load()

    @property
    def path(self) -> str:
        return self._path

    def __contains__(self, label: str) -> bool:
        return label in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def labels(self) -> List[str]:
        return sorted(self._entries)

    def public_key(self, label: str) -> str:
        return self._entry(label).public_key

    def add(self, label: str, key_pair: KeyPair, passphrase: str) -> KeystoreEntry:
        """
        Wrap and store a key pair under a new label.

        Raises:
            ValueError: If the label is empty or the passphrase is too short
            KeystoreError: If the label already exists
        """
        if not label:
            raise ValueError("label must not be empty")
        if len(passphrase) < PASSPHRASE_MIN_LENGTH:
            raise ValueError(f"passphrase must be at least {PASSPHRASE_MIN_LENGTH} characters")
        if label in self._entries:
            raise KeystoreError(f"label '{label}' already exists")

        kdf = {name: self._kdf[name] for name in KDF_PARAMS}
        salt = secrets.token_bytes(self._kdf['salt_len'])
        nonce = secrets.token_bytes(NONCE_SIZE)
        public_key = key_pair.public_hex

        kek = derive_kek(passphrase, salt, **kdf)
        wrapped = AESGCM(kek).encrypt(nonce, key_pair.private_bytes(), _aad(label, public_key))

        entry = KeystoreEntry(
            public_key=public_key,
            salt=salt.hex(),
            nonce=nonce.hex(),
            wrapped_key=wrapped.hex(),
            kdf=kdf,
            created_at=utc_timestamp(),
        )
        self._entries[label] = entry
        self._save()
        logger.info(f"keystore: stored identity '{label}'")
        return entry

    def generate(self, label: str, passphrase: str) -> KeyPair:
        """Generate a fresh key pair and store it."""
        key_pair = KeyPair.generate()
        self.add(label, key_pair, passphrase)
        return key_pair

    def unlock(self, label: str, passphrase: str) -> KeyPair:
        """
        Unwrap a stored key pair.

        Raises:
            KeystoreError: Unknown label, wrong passphrase, or corrupted entry
        """
        entry = self._entry(label)
        try:
            salt = bytes.fromhex(entry.salt)
            nonce = bytes.fromhex(entry.nonce)
            wrapped = bytes.fromhex(entry.wrapped_key)
            aad = _aad(label, entry.public_key)
        except ValueError as exc:
            raise KeystoreError(f"entry '{label}' is corrupted") from exc

        kek = derive_kek(passphrase, salt, **entry.kdf)
        try:
            private_bytes = AESGCM(kek).decrypt(nonce, wrapped, aad)
        except InvalidTag as exc:
            logger.info(f"keystore: unlock failed for '{label}'")
            raise KeystoreError(f"wrong passphrase for '{label}'") from exc
        except ValueError as exc:
            raise KeystoreError(f"entry '{label}' is corrupted") from exc

        try:
            key_pair = KeyPair.from_private_key(private_bytes)
            matches = key_pair.public_hex == encode_public_key(entry.public_key)
        except InvalidKeyError as exc:
            raise KeystoreError(f"entry '{label}' holds an invalid key") from exc

        if not matches:
            raise KeystoreError(f"entry '{label}' public key does not match")
        return key_pair

    def remove(self, label: str) -> None:
        self._entry(label)
        del self._entries[label]
        self._save()
        logger.info(f"keystore: removed identity '{label}'")

    def _entry(self, label: str) -> KeystoreEntry:
        try:
            return self._entries[label]
        except KeyError:
            raise KeystoreError(f"no identity named '{label}'") from None

    def _load(self) -> None:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise KeystoreError(f"cannot read keystore {self._path}") from exc

        if not isinstance(data, dict) or data.get('version') != KEYSTORE_VERSION:
            raise KeystoreError("unsupported keystore format")
        keys = data.get('keys')
        if not isinstance(keys, dict):
            raise KeystoreError("keystore has no key table")
        self._entries = {label: KeystoreEntry.from_dict(entry) for label, entry in keys.items()}

    def _save(self) -> None:
        data = {
            'version': KEYSTORE_VERSION,
            'keys': {label: asdict(entry) for label, entry in self._entries.items()},
        }
        directory = os.path.dirname(os.path.abspath(self._path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".keystore-")
        replaced = False
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._path)
            replaced = True
        except OSError as exc:
            raise KeystoreError(f"cannot write keystore {self._path}") from exc
        finally:
            if not replaced and os.path.exists(tmp_path):
                os.unlink(tmp_path)


def open_keystore(path: Optional[str] = None, **kdf_overrides) -> Keystore:
    """Open the keystore at path, or ./keystore.json by default."""
    return Keystore(path or "keystore.json", **kdf_overrides)
