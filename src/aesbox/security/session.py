"""Key session: the one place that owns the current KeyMaterial.

Hosts create a :class:`KeySession` and pass it around instead of keeping key
state in module globals, so independent sessions never share keys. All
operations take the session lock; regeneration or loading a key file cannot
interleave with an encrypt/decrypt that is still running.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from aesbox.core import operations
from aesbox.core.config import AppConfig
from aesbox.core.exceptions import SessionLockedError

from .keys import KeyMaterial


class KeySession:
    def __init__(self, config: Optional[AppConfig] = None, material: Optional[KeyMaterial] = None):
        self.config = config or AppConfig()
        self._lock = threading.RLock()
        self._material: Optional[KeyMaterial] = material or operations.generate_key_material()

    @property
    def material(self) -> KeyMaterial:
        """Return the current key material or raise if the session is locked."""
        with self._lock:
            if self._material is None:
                raise SessionLockedError("Session is locked; generate or load a key first")
            return self._material

    @property
    def is_locked(self) -> bool:
        return self._material is None

    def regenerate(self) -> KeyMaterial:
        """Replace the key material with a fresh random one."""
        with self._lock:
            self._material = operations.generate_key_material()
            return self._material

    def replace(self, material: KeyMaterial) -> None:
        with self._lock:
            self._material = material

    def lock(self) -> None:
        """Drop the key material reference."""
        with self._lock:
            self._material = None

    def encrypt_file(self, path, output=None) -> Path:
        with self._lock:
            return operations.encrypt_file(
                path,
                self.material,
                output=output,
                file_format=self.config.file_format,
                chunk_size=self.config.chunk_size,
            )

    def decrypt_file(self, path, output=None) -> Path:
        with self._lock:
            return operations.decrypt_file(
                path,
                self.material,
                output=output,
                file_format=self.config.file_format,
                chunk_size=self.config.chunk_size,
            )

    def save_key(self, path, password) -> None:
        with self._lock:
            operations.save_key_file(path, self.material, password, self.config.kdf)

    def load_key(self, path, password) -> KeyMaterial:
        """Load key material from a key file; on any error the current material is kept."""
        with self._lock:
            material = operations.load_key_file(path, password, self.config.kdf)
            self._material = material
            return material
