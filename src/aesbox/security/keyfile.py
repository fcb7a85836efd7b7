"""Password-protected key files.

File layout (80 bytes, no version field):
- 16 bytes: salt (cleartext)
- 64 bytes: AES-256-CBC(key || iv) under a PBKDF2-derived (wrap key, wrap IV),
  PKCS#7 padded (48 bytes of payload is block aligned, so a full pad block is added)

The PBKDF2 parameters are not stored; the same :class:`KdfParams` must be used
to save and to load.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from aesbox.core.config import KdfParams
from aesbox.core.exceptions import StorageError, TruncatedKeyFile

from .crypto import BLOCK_SIZE, decrypt_bytes, encrypt_bytes
from .kdf import SALT_SIZE, derive_wrap_key, generate_salt
from .keys import PAYLOAD_SIZE, KeyMaterial

KEY_FILE_SIZE = SALT_SIZE + PAYLOAD_SIZE + BLOCK_SIZE


def wrap_key_material(material: KeyMaterial, password, params: Optional[KdfParams] = None) -> bytes:
    """Return the key-file bytes (salt || ciphertext) for ``material``."""
    salt = generate_salt()
    wrap_key, wrap_iv = derive_wrap_key(password, salt, params)
    return salt + encrypt_bytes(material.to_bytes(), wrap_key, wrap_iv)


def unwrap_key_material(blob: bytes, password, params: Optional[KdfParams] = None) -> KeyMaterial:
    """
    Recover KeyMaterial from key-file bytes.

    Raises TruncatedKeyFile when the blob is too short or too long, not block
    aligned or decrypts to anything but 48 bytes, and PaddingError when the
    password is wrong or the file is corrupt.
    """
    if len(blob) < SALT_SIZE:
        raise TruncatedKeyFile("key file is missing its salt")
    if len(blob) > KEY_FILE_SIZE:
        raise TruncatedKeyFile(f"key file is larger than {KEY_FILE_SIZE} bytes")
    salt, ciphertext = blob[:SALT_SIZE], blob[SALT_SIZE:]
    if not ciphertext:
        raise TruncatedKeyFile("key file holds a salt but no key data")
    if len(ciphertext) % BLOCK_SIZE:
        raise TruncatedKeyFile("key file data is not a whole number of cipher blocks")

    wrap_key, wrap_iv = derive_wrap_key(password, salt, params)
    payload = decrypt_bytes(ciphertext, wrap_key, wrap_iv)
    if len(payload) != PAYLOAD_SIZE:
        raise TruncatedKeyFile(
            f"key file payload is {len(payload)} bytes, expected {PAYLOAD_SIZE}"
        )
    return KeyMaterial.from_bytes(payload)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data to a temp file next to path and rename it into place."""
    directory = path.parent
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def save_key_file(path, material: KeyMaterial, password, params: Optional[KdfParams] = None) -> None:
    """Persist ``material`` to ``path`` protected by ``password``, replacing any existing file."""
    path = Path(path).expanduser()
    blob = wrap_key_material(material, password, params)
    try:
        atomic_write_bytes(path, blob)
    except OSError as exc:
        raise StorageError(f"could not write key file {path}: {exc.strerror or exc}") from exc


def load_key_file(path, password, params: Optional[KdfParams] = None) -> KeyMaterial:
    """Read and unwrap the key file at ``path``."""
    path = Path(path).expanduser()
    try:
        with open(path, "rb") as f:
            # Anything past KEY_FILE_SIZE is rejected, so never read more than one extra byte.
            blob = f.read(KEY_FILE_SIZE + 1)
    except OSError as exc:
        raise StorageError(f"could not read key file {path}: {exc.strerror or exc}") from exc
    return unwrap_key_material(blob, password, params)
