"""
Signed Envelope

The signed, not-yet-encrypted unit exchanged between parties.

Canonical form (compact UTF-8 JSON, fixed key order):
    {"message":...,"signature":...,"timestamp":...,"from":...}

- signature: lowercase hex, 64-byte compact ECDSA
- timestamp: ISO-8601 UTC, millisecond precision, "Z" suffix
- from: sender public key, lowercase hex, uncompressed
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from ..core_crypto.keys import PublicKeyLike, encode_public_key, normalize_hex
from ..errors import InvalidKeyError, MalformedEnvelopeError


ENVELOPE_FIELDS = ("message", "signature", "timestamp", "from")


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp, e.g. 2024-05-01T12:00:00.000Z"""
    moment = moment or datetime.now(timezone.utc)
    stamp = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def _reject_duplicate_keys(pairs) -> Dict[str, Any]:
    data = {}
    for key, value in pairs:
        if key in data:
            raise MalformedEnvelopeError(f"envelope repeats field '{key}'")
        data[key] = value
    return data


def _parse_timestamp(value: str) -> datetime:
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Envelope:
    """
    Signed plaintext container.

    Attributes:
        message: UTF-8 text
        signature: 64-byte signature over SHA-256(message)
        timestamp: ISO-8601 creation time
        sender_identity: Sender public key (hex)
    """
    message: str
    signature: bytes
    timestamp: str
    sender_identity: str

    @classmethod
    def build(cls, message: str, signature: bytes,
              sender_public_key: PublicKeyLike,
              timestamp: Optional[str] = None) -> 'Envelope':
        """Stamp the current time and package the four fields."""
        return cls(
            message=message,
            signature=bytes(signature),
            timestamp=timestamp or utc_timestamp(),
            sender_identity=encode_public_key(sender_public_key),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'signature': self.signature.hex(),
            'timestamp': self.timestamp,
            'from': self.sender_identity,
        }

    def serialize(self) -> bytes:
        """Canonical UTF-8 JSON encoding."""
        return json.dumps(
            self.to_dict(), ensure_ascii=False, separators=(',', ':')
        ).encode("utf-8")

    @classmethod
    def parse(cls, serialized: Union[bytes, str]) -> 'Envelope':
        """
        Parse a canonical envelope.

        Raises:
            MalformedEnvelopeError: If the data is not valid UTF-8 JSON,
                fields are missing, extra or mistyped, or the hex and
                timestamp fields do not decode
        """
        if isinstance(serialized, (bytes, bytearray)):
            try:
                serialized = bytes(serialized).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedEnvelopeError("envelope is not valid UTF-8") from exc
        if not isinstance(serialized, str):
            raise MalformedEnvelopeError("envelope must be text or bytes")

        if not serialized.startswith("{"):
            raise MalformedEnvelopeError("envelope must be a JSON object")

        try:
            data = json.loads(serialized, object_pairs_hook=_reject_duplicate_keys)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise MalformedEnvelopeError("envelope is not valid JSON") from exc

        if not isinstance(data, dict):
            raise MalformedEnvelopeError("envelope must be a JSON object")

        missing = [name for name in ENVELOPE_FIELDS if name not in data]
        if missing:
            raise MalformedEnvelopeError(f"envelope missing fields: {', '.join(missing)}")
        extra = sorted(set(data) - set(ENVELOPE_FIELDS))
        if extra:
            raise MalformedEnvelopeError(f"envelope has unknown fields: {', '.join(extra)}")

        for name in ENVELOPE_FIELDS:
            if not isinstance(data[name], str):
                raise MalformedEnvelopeError(f"envelope field '{name}' must be a string")
            try:
                data[name].encode("utf-8")
            except UnicodeEncodeError as exc:
                raise MalformedEnvelopeError(f"envelope field '{name}' is not valid UTF-8") from exc

        try:
            signature = bytes.fromhex(normalize_hex(data['signature']))
            sender = normalize_hex(data['from'])
        except InvalidKeyError as exc:
            raise MalformedEnvelopeError("envelope hex field does not decode") from exc

        try:
            _parse_timestamp(data['timestamp'])
        except ValueError as exc:
            raise MalformedEnvelopeError("envelope timestamp is not ISO-8601") from exc

        return cls(
            message=data['message'],
            signature=signature,
            timestamp=data['timestamp'],
            sender_identity=sender,
        )
