"""
High-level file operations used by the UI (or any other host).

These wrap the security primitives with path handling, output naming,
atomic writes and logging. Output goes to a temporary file in the target
directory and is renamed into place only on success, so a failed encrypt or
decrypt never leaves a partial file behind.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Optional

from ..security.container import open_stream, seal_stream
from ..security.crypto import DEFAULT_CHUNK_SIZE, decrypt_stream, encrypt_stream
from ..security.keyfile import load_key_file as _load_key_file
from ..security.keyfile import save_key_file as _save_key_file
from ..security.keys import KeyMaterial
from ..security.keys import generate_key_material as _generate_key_material
from .config import FileFormat, KdfParams
from .exceptions import AESBoxError, StorageError

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "encrypted_"
DECRYPTED_PREFIX = "decrypted_"


def default_output_path(path: Path, prefix: str) -> Path:
    """``/dir/name`` -> ``/dir/<prefix>name``."""
    return path.with_name(prefix + path.name)


def _resolve_paths(path, output, prefix: str) -> tuple[Path, Path]:
    src = Path(path).expanduser()
    dst = Path(output).expanduser() if output is not None else default_output_path(src, prefix)
    if not src.is_file():
        raise StorageError(f"input file not found: {src}")
    if src.resolve() == dst.resolve():
        raise StorageError("input and output must be different files")
    return src, dst


def _output_mode(dst: Path) -> int:
    """Mode for a new output file: keep an existing file's mode, else 0666 minus the umask."""
    try:
        return stat.S_IMODE(os.stat(dst).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _transform(src: Path, dst: Path, run) -> int:
    """Open src, stream into a temp file beside dst via ``run(inf, outf)``, rename on success."""
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".part", dir=dst.parent)
    except OSError as exc:
        raise StorageError(f"cannot write to {dst.parent}: {exc.strerror or exc}") from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as outf, open(src, "rb") as inf:
            count = run(inf, outf)
        # mkstemp creates 0600; outputs get the mode a plain open() would give them.
        os.chmod(tmp_path, _output_mode(dst))
        os.replace(tmp_path, dst)
        return count
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        if isinstance(exc, StorageError):
            raise
        raise StorageError(f"I/O error on {src.name}: {exc.strerror or exc}") from exc
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def generate_key_material() -> KeyMaterial:
    material = _generate_key_material()
    logger.info("Generated new key material (fingerprint %s)", material.fingerprint())
    return material


def encrypt_file(
    path,
    material: KeyMaterial,
    output=None,
    file_format: FileFormat = FileFormat.SEALED,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """
    Encrypt ``path`` with ``material`` and return the output path.

    Sealed format writes a fresh IV and an HMAC tag with the ciphertext; raw
    format writes bare CBC ciphertext under the session IV, with no header.
    """
    src, dst = _resolve_paths(path, output, ENCRYPTED_PREFIX)

    if FileFormat(file_format) is FileFormat.SEALED:
        def run(inf, outf):
            return seal_stream(inf, outf, material, chunk_size=chunk_size)
    else:
        def run(inf, outf):
            return encrypt_stream(inf, outf, material.key, material.iv, chunk_size=chunk_size)

    try:
        written = _transform(src, dst, run)
    except AESBoxError as exc:
        logger.warning("Encrypt failed for %s: %s", src, exc)
        raise
    logger.info("Encrypted %s -> %s (%d bytes, %s)", src, dst, written, FileFormat(file_format).value)
    return dst


def decrypt_file(
    path,
    material: KeyMaterial,
    output=None,
    file_format: FileFormat = FileFormat.SEALED,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """Decrypt ``path`` with ``material`` and return the output path."""
    src, dst = _resolve_paths(path, output, DECRYPTED_PREFIX)

    if FileFormat(file_format) is FileFormat.SEALED:
        def run(inf, outf):
            return open_stream(inf, outf, material, chunk_size=chunk_size)
    else:
        def run(inf, outf):
            return decrypt_stream(inf, outf, material.key, material.iv, chunk_size=chunk_size)

    try:
        written = _transform(src, dst, run)
    except AESBoxError as exc:
        logger.warning("Decrypt failed for %s: %s", src, exc)
        raise
    logger.info("Decrypted %s -> %s (%d bytes)", src, dst, written)
    return dst


def save_key_file(path, material: KeyMaterial, password, params: Optional[KdfParams] = None) -> None:
    try:
        _save_key_file(path, material, password, params)
    except AESBoxError as exc:
        logger.warning("Saving key file %s failed: %s", path, exc)
        raise
    logger.info("Saved key file %s (fingerprint %s)", path, material.fingerprint())


def load_key_file(path, password, params: Optional[KdfParams] = None) -> KeyMaterial:
    try:
        material = _load_key_file(path, password, params)
    except AESBoxError as exc:
        logger.warning("Loading key file %s failed: %s", path, exc)
        raise
    logger.info("Loaded key file %s (fingerprint %s)", path, material.fingerprint())
    return material
