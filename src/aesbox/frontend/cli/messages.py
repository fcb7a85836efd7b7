"""Human-readable messages for errors shown in the TUI.

Messages name the failing file or action but never include key bytes.
"""

from __future__ import annotations

from aesbox.core.exceptions import (
    ConfigurationError,
    EntropyError,
    IntegrityError,
    InvalidKeyMaterial,
    PaddingError,
    SessionLockedError,
    StorageError,
    TruncatedKeyFile,
    UnsupportedFormatError,
)

# action -> message for PaddingError, which means different things per action
_PADDING_MESSAGES = {
    "load": "Wrong password or corrupt key file.",
    "decrypt": "Wrong key/IV or corrupt file (padding check failed).",
}


def describe_error(exc: BaseException, action: str = "") -> str:
    """Return a one-line message for ``exc`` raised while performing ``action``."""
    if isinstance(exc, PaddingError):
        return _PADDING_MESSAGES.get(action, "Decryption failed: invalid padding.")
    if isinstance(exc, TruncatedKeyFile):
        return "Invalid key file: it is truncated or not an AESBox key file."
    if isinstance(exc, IntegrityError):
        return "File failed authentication: wrong key, or the file was modified or damaged."
    if isinstance(exc, UnsupportedFormatError):
        return "Not an AESBox sealed file (or written by an unsupported version)."
    if isinstance(exc, InvalidKeyMaterial):
        return "Key material is invalid (key must be 32 bytes and IV 16 bytes)."
    if isinstance(exc, SessionLockedError):
        return "No key loaded. Generate or load a key first."
    if isinstance(exc, EntropyError):
        return "The system could not provide secure random bytes."
    if isinstance(exc, ConfigurationError):
        return f"Configuration error: {exc}"
    if isinstance(exc, StorageError):
        return f"File error: {exc}"
    if isinstance(exc, OSError):
        return f"File error: {exc.strerror or exc}"
    return f"Unexpected error: {exc}"
