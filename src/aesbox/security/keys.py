"""In-memory key material: a 256-bit AES key and its 16-byte IV."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass

from aesbox.core.exceptions import InvalidKeyMaterial

from .rng import fill

KEY_SIZE = 32
IV_SIZE = 16
PAYLOAD_SIZE = KEY_SIZE + IV_SIZE


def check_key_iv(key: bytes, iv: bytes) -> None:
    """Raise InvalidKeyMaterial unless key is 32 bytes and iv is 16 bytes."""
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
        raise InvalidKeyMaterial(f"key must be exactly {KEY_SIZE} bytes")
    if not isinstance(iv, (bytes, bytearray)) or len(iv) != IV_SIZE:
        raise InvalidKeyMaterial(f"IV must be exactly {IV_SIZE} bytes")


@dataclass(frozen=True, repr=False)
class KeyMaterial:
    """Symmetric key plus IV. Immutable; replace the whole object to change it."""

    key: bytes
    iv: bytes

    def __post_init__(self) -> None:
        check_key_iv(self.key, self.iv)
        # normalise bytearray input so the object stays hashable/immutable
        object.__setattr__(self, "key", bytes(self.key))
        object.__setattr__(self, "iv", bytes(self.iv))

    def __repr__(self) -> str:
        return f"KeyMaterial(fingerprint={self.fingerprint()})"

    def to_bytes(self) -> bytes:
        return self.key + self.iv

    @classmethod
    def from_bytes(cls, payload: bytes) -> "KeyMaterial":
        if len(payload) != PAYLOAD_SIZE:
            raise InvalidKeyMaterial(f"key material payload must be exactly {PAYLOAD_SIZE} bytes")
        return cls(key=payload[:KEY_SIZE], iv=payload[KEY_SIZE:])

    def fingerprint(self) -> str:
        """Short SHA-256 digest of key||iv, safe to show and log."""
        return hashlib.sha256(self.to_bytes()).hexdigest()[:16]

    def to_base64(self) -> tuple[str, str]:
        """Return ``(key, iv)`` as Base64 strings for display."""
        return (
            base64.b64encode(self.key).decode("ascii"),
            base64.b64encode(self.iv).decode("ascii"),
        )


def generate_key_material() -> KeyMaterial:
    """Return a fresh, fully random KeyMaterial."""
    key = bytearray(KEY_SIZE)
    iv = bytearray(IV_SIZE)
    fill(key)
    fill(iv)
    return KeyMaterial(key=bytes(key), iv=bytes(iv))
