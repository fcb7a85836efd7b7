"""
End-to-end key lifecycle: generate, encrypt, save key, restart, load key, decrypt.
"""

import os
from pathlib import Path

import pytest

from aesbox.core.config import AppConfig, FileFormat, KdfParams, load_config
from aesbox.core.exceptions import IntegrityError, PaddingError, TruncatedKeyFile
from aesbox.security.session import KeySession


@pytest.mark.parametrize("fmt", [FileFormat.SEALED, FileFormat.RAW])
def test_files_survive_a_session_restart(tmp_path: Path, fmt) -> None:
    """
    A key saved by one session decrypts files in another:

    - session 1 encrypts several files and saves its key with a password
    - session 2 starts with a different random key, loads the key file
    - session 2 decrypts every file back to the original bytes
    """
    config = AppConfig(kdf=KdfParams(iterations=2000), file_format=fmt, chunk_size=1024)
    originals = {
        "empty.bin": b"",
        "aligned.bin": os.urandom(4096),
        "odd.bin": os.urandom(10_001),
    }
    encrypted = []

    first = KeySession(config)
    for name, data in originals.items():
        src = tmp_path / name
        src.write_bytes(data)
        encrypted.append(first.encrypt_file(src))
    key_path = tmp_path / "backup.key"
    first.save_key(key_path, "long passphrase")

    second = KeySession(config)
    assert second.material != first.material
    second.load_key(key_path, "long passphrase")

    for enc in encrypted:
        name = enc.name.removeprefix("encrypted_")
        out = second.decrypt_file(enc, output=tmp_path / f"restored_{name}")
        assert out.read_bytes() == originals[name]


def test_wrong_password_then_right_password(tmp_path: Path) -> None:
    config = AppConfig(kdf=KdfParams(iterations=1000))
    owner = KeySession(config)
    key_path = tmp_path / "k.key"
    owner.save_key(key_path, "right")

    other = KeySession(config)
    before = other.material
    with pytest.raises((PaddingError, TruncatedKeyFile)):
        other.load_key(key_path, "wrong")
    assert other.material is before

    other.load_key(key_path, "right")
    assert other.material == owner.material


def test_regenerated_key_cannot_open_old_files(tmp_path: Path) -> None:
    session = KeySession(AppConfig(kdf=KdfParams(iterations=1000)))
    src = tmp_path / "doc.txt"
    src.write_text("draft")
    enc = session.encrypt_file(src)
    session.regenerate()
    with pytest.raises(IntegrityError):
        session.decrypt_file(enc)


def test_legacy_settings_from_environment(tmp_path: Path) -> None:
    """sha1/1000 + raw format reproduces the .NET desktop tool's on-disk formats."""
    config = load_config(
        {"AESBOX_KDF_HASH": "sha1", "AESBOX_KDF_ITERATIONS": "1000", "AESBOX_FILE_FORMAT": "raw"}
    )
    session = KeySession(config)
    src = tmp_path / "a.txt"
    src.write_bytes(b"AB")
    enc = session.encrypt_file(src)
    assert enc.stat().st_size == 16

    key_path = tmp_path / "a.key"
    session.save_key(key_path, "pw")
    assert key_path.stat().st_size == 80

    restored = KeySession(config)
    restored.load_key(key_path, "pw")
    assert restored.decrypt_file(enc).read_bytes() == b"AB"
