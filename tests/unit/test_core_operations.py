"""Unit tests for the high-level file operations."""

import logging
import os
import stat
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from aesbox.core import operations
from aesbox.core.config import FileFormat, KdfParams
from aesbox.core.exceptions import IntegrityError, PaddingError, StorageError
from aesbox.security.keys import KeyMaterial, generate_key_material

FAST = KdfParams(iterations=1000)


# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def material():
    return generate_key_material()


@pytest.fixture
def plain_file(tmp_path):
    path = tmp_path / "report.pdf"
    path.write_bytes(os.urandom(100_000) + b"tail")
    return path


# ==============================================================================
# Tests: Naming
# ==============================================================================

def test_default_output_names(plain_file, material):
    enc = operations.encrypt_file(plain_file, material)
    assert enc == plain_file.with_name("encrypted_report.pdf")
    dec = operations.decrypt_file(enc, material)
    assert dec == plain_file.with_name("decrypted_encrypted_report.pdf")
    assert dec.read_bytes() == plain_file.read_bytes()


def test_explicit_output(plain_file, material, tmp_path):
    out = operations.encrypt_file(plain_file, material, output=tmp_path / "x.bin")
    assert out == tmp_path / "x.bin"
    back = operations.decrypt_file(out, material, output=str(tmp_path / "y.pdf"))
    assert back.read_bytes() == plain_file.read_bytes()


@pytest.fixture
def umask_022():
    old = os.umask(0o022)
    yield
    os.umask(old)


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
def test_outputs_follow_umask(plain_file, material, umask_022):
    enc = operations.encrypt_file(plain_file, material)
    dec = operations.decrypt_file(enc, material)
    assert stat.S_IMODE(enc.stat().st_mode) == 0o644
    assert stat.S_IMODE(dec.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
def test_overwrite_keeps_existing_mode(plain_file, material, tmp_path, umask_022):
    out = tmp_path / "shared.bin"
    out.write_bytes(b"old")
    out.chmod(0o664)
    operations.encrypt_file(plain_file, material, output=out)
    assert stat.S_IMODE(out.stat().st_mode) == 0o664


# ==============================================================================
# Tests: Formats
# ==============================================================================

@pytest.mark.parametrize("fmt", [FileFormat.SEALED, FileFormat.RAW, "raw", "sealed"])
def test_roundtrip_both_formats(plain_file, material, fmt):
    enc = operations.encrypt_file(plain_file, material, file_format=fmt, chunk_size=4096)
    dec = operations.decrypt_file(enc, material, file_format=fmt, chunk_size=1024)
    assert dec.read_bytes() == plain_file.read_bytes()


def test_raw_format_is_plain_cbc(plain_file, material):
    """Raw output is bare AES-256-CBC/PKCS#7 under the session key and IV."""
    enc = operations.encrypt_file(plain_file, material, file_format=FileFormat.RAW)
    padder = padding.PKCS7(128).padder()
    e = Cipher(algorithms.AES(material.key), modes.CBC(material.iv)).encryptor()
    expected = e.update(padder.update(plain_file.read_bytes()) + padder.finalize()) + e.finalize()
    assert enc.read_bytes() == expected


def test_empty_file_raw_is_one_block(tmp_path, material):
    empty = tmp_path / "empty.txt"
    empty.write_bytes(b"")
    enc = operations.encrypt_file(empty, material, file_format=FileFormat.RAW)
    assert enc.stat().st_size == 16
    dec = operations.decrypt_file(enc, material, file_format=FileFormat.RAW)
    assert dec.read_bytes() == b""


def test_sealed_same_file_twice_differs(plain_file, material, tmp_path):
    a = operations.encrypt_file(plain_file, material, output=tmp_path / "a")
    b = operations.encrypt_file(plain_file, material, output=tmp_path / "b")
    assert a.read_bytes() != b.read_bytes()


# ==============================================================================
# Tests: Failures leave nothing behind
# ==============================================================================

def test_raw_decrypt_wrong_key(tmp_path):
    src = tmp_path / "msg.txt"
    src.write_bytes(b"AB")
    zero = KeyMaterial(key=b"\x00" * 32, iv=b"\x00" * 16)
    enc = operations.encrypt_file(src, zero, file_format=FileFormat.RAW)
    # same key, IV differing only in the last byte flips only the last pad byte
    other = KeyMaterial(key=b"\x00" * 32, iv=b"\x00" * 15 + b"\x01")
    with pytest.raises(PaddingError):
        operations.decrypt_file(enc, other, file_format=FileFormat.RAW)
    assert not (tmp_path / "decrypted_encrypted_msg.txt").exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["encrypted_msg.txt", "msg.txt"]


def test_sealed_tampered_file(plain_file, material, tmp_path):
    enc = operations.encrypt_file(plain_file, material)
    data = bytearray(enc.read_bytes())
    data[100] ^= 0x04
    enc.write_bytes(bytes(data))
    with pytest.raises(IntegrityError):
        operations.decrypt_file(enc, material)
    assert not plain_file.with_name("decrypted_encrypted_report.pdf").exists()
    assert not [p for p in tmp_path.iterdir() if p.name.endswith(".part")]


def test_missing_input(tmp_path, material):
    with pytest.raises(StorageError, match="not found"):
        operations.encrypt_file(tmp_path / "nope", material)


def test_same_input_and_output(plain_file, material):
    with pytest.raises(StorageError, match="different files"):
        operations.encrypt_file(plain_file, material, output=plain_file)


def test_unwritable_output_directory(plain_file, material, tmp_path):
    with pytest.raises(StorageError, match="cannot write"):
        operations.encrypt_file(plain_file, material, output=tmp_path / "no" / "such" / "dir")


def test_write_failure_is_storage_error(plain_file, material, tmp_path):
    with patch("aesbox.core.operations.os.replace", side_effect=PermissionError(13, "Permission denied")):
        with pytest.raises(StorageError) as info:
            operations.encrypt_file(plain_file, material)
    assert isinstance(info.value, OSError)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["report.pdf"]


# ==============================================================================
# Tests: Key files and logging
# ==============================================================================

def test_save_and_load_key_file(tmp_path, material):
    path = tmp_path / "k.key"
    operations.save_key_file(path, material, "pw", FAST)
    assert operations.load_key_file(path, "pw", FAST) == material


def test_generate_key_material():
    m = operations.generate_key_material()
    assert len(m.key) == 32 and len(m.iv) == 16


def test_logs_never_contain_key_bytes(plain_file, tmp_path, caplog):
    material = KeyMaterial(key=b"K" * 32, iv=b"I" * 16)
    caplog.set_level(logging.INFO, logger="aesbox")
    enc = operations.encrypt_file(plain_file, material)
    operations.save_key_file(tmp_path / "k.key", material, "hunter2", FAST)
    with pytest.raises(StorageError):
        operations.load_key_file(tmp_path / "missing.key", "hunter2", FAST)

    assert "Encrypted" in caplog.text
    assert str(enc) in caplog.text
    assert "Loading key file" in caplog.text
    assert "KKKK" not in caplog.text
    assert "hunter2" not in caplog.text
    assert material.fingerprint() in caplog.text
