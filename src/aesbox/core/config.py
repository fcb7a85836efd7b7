"""Runtime settings for AESBox, read from environment variables.

Everything here is plain data. The values only control *how* key material is
derived and how files are laid out on disk; nothing secret lives in the
configuration.

- ``AESBOX_KDF_ITERATIONS``: PBKDF2 iterations used when wrapping key files
- ``AESBOX_KDF_HASH``: PBKDF2 hash (``sha1``, ``sha256`` or ``sha512``)
- ``AESBOX_FILE_FORMAT``: ``sealed`` (IV header + HMAC tag) or ``raw`` (bare CBC)
- ``AESBOX_CHUNK_SIZE``: streaming chunk size in bytes
- ``AESBOX_LOG_LEVEL``: logging level name for the TUI
- ``AESBOX_LOG_FILE``: where the TUI writes its log

Key files carry no version or parameter header, so a file written with one
KDF setting can only be loaded back with the same setting. Key files from
the .NET AES desktop tool (Rfc2898DeriveBytes defaults) need ``sha1`` with
1000 iterations.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from .exceptions import ConfigurationError

MIN_KDF_ITERATIONS = 1000
DEFAULT_KDF_ITERATIONS = 200_000
DEFAULT_KDF_HASH = "sha256"
SUPPORTED_KDF_HASHES = ("sha1", "sha256", "sha512")

DEFAULT_LOG_FILE = "aesbox.log"

BLOCK_SIZE = 16
DEFAULT_CHUNK_SIZE = 64 * 1024


class FileFormat(str, Enum):
    """Layout of encrypted user files."""

    SEALED = "sealed"
    RAW = "raw"


@dataclass(frozen=True)
class KdfParams:
    """PBKDF2 parameters used to wrap and unwrap key files."""

    iterations: int = DEFAULT_KDF_ITERATIONS
    hash_name: str = DEFAULT_KDF_HASH

    def __post_init__(self) -> None:
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int):
            raise ConfigurationError("KDF iterations must be an integer")
        if self.iterations < MIN_KDF_ITERATIONS:
            raise ConfigurationError(
                f"KDF iterations must be at least {MIN_KDF_ITERATIONS} (got {self.iterations})"
            )
        if self.hash_name not in SUPPORTED_KDF_HASHES:
            raise ConfigurationError(
                f"Unsupported KDF hash '{self.hash_name}'; choose one of {', '.join(SUPPORTED_KDF_HASHES)}"
            )


@dataclass(frozen=True)
class AppConfig:
    """Container for the settings the session and the UI need."""

    kdf: KdfParams = field(default_factory=KdfParams)
    file_format: FileFormat = FileFormat.SEALED
    chunk_size: int = DEFAULT_CHUNK_SIZE
    log_level: int = logging.INFO
    log_file: str = DEFAULT_LOG_FILE

    def __post_init__(self) -> None:
        if self.chunk_size <= 0 or self.chunk_size % BLOCK_SIZE:
            raise ConfigurationError(
                f"Chunk size must be a positive multiple of {BLOCK_SIZE} (got {self.chunk_size})"
            )


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip().replace("_", ""))
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer (got {raw!r})") from exc


def _log_level(raw: Optional[str]) -> int:
    if raw is None or raw.strip() == "":
        return logging.INFO
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"AESBOX_LOG_LEVEL must be a logging level name (got {raw!r})")
    return level


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build an :class:`AppConfig` from ``environ`` (defaults to ``os.environ``)."""
    env = os.environ if environ is None else environ

    kdf = KdfParams(
        iterations=_int_setting(env, "AESBOX_KDF_ITERATIONS", DEFAULT_KDF_ITERATIONS),
        hash_name=(env.get("AESBOX_KDF_HASH") or DEFAULT_KDF_HASH).strip().lower(),
    )

    raw_format = (env.get("AESBOX_FILE_FORMAT") or FileFormat.SEALED.value).strip().lower()
    try:
        file_format = FileFormat(raw_format)
    except ValueError as exc:
        raise ConfigurationError(
            f"AESBOX_FILE_FORMAT must be 'sealed' or 'raw' (got {raw_format!r})"
        ) from exc

    return AppConfig(
        kdf=kdf,
        file_format=file_format,
        chunk_size=_int_setting(env, "AESBOX_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        log_level=_log_level(env.get("AESBOX_LOG_LEVEL")),
        log_file=(env.get("AESBOX_LOG_FILE") or DEFAULT_LOG_FILE).strip(),
    )
