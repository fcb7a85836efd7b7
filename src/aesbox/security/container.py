"""Sealed file container: per-file IV plus encrypt-then-MAC.

Layout (binary):
- 4 bytes: magic b'ABX1'
- 1 byte: version (1)
- 16 bytes: IV, fresh per file
- N bytes: AES-256-CBC ciphertext, PKCS#7 padded
- 32 bytes: HMAC-SHA256 over everything before it

The CBC key and the MAC key are both derived from ``KeyMaterial.key`` with
HKDF so the same key is never used for two purposes. The session IV is not
used here.

Opening verifies the tag over the whole file before decrypting anything.
"""
import hashlib
import hmac
import os
import struct
from typing import BinaryIO

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from aesbox.core.exceptions import IntegrityError, PaddingError, UnsupportedFormatError

from .crypto import BLOCK_SIZE, DEFAULT_CHUNK_SIZE, decrypt_stream, encrypt_stream
from .keys import IV_SIZE, KeyMaterial
from .rng import random_bytes

MAGIC = b"ABX1"
VERSION = 1
HEADER_SIZE = len(MAGIC) + 1 + IV_SIZE
TAG_SIZE = 32
MIN_SEALED_SIZE = HEADER_SIZE + BLOCK_SIZE + TAG_SIZE


def _derive_subkey(key: bytes, info: bytes) -> bytes:
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=None, info=info)
    return hkdf.derive(key)


def _enc_key(material: KeyMaterial) -> bytes:
    return _derive_subkey(material.key, b"aesbox-file-enc")


def _mac_key(material: KeyMaterial) -> bytes:
    return _derive_subkey(material.key, b"aesbox-file-mac")


def _header(iv: bytes) -> bytes:
    return MAGIC + struct.pack("B", VERSION) + iv


def seal_stream(
    src: BinaryIO,
    dst: BinaryIO,
    material: KeyMaterial,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Encrypt src into dst as a sealed container; return total bytes written."""
    iv = random_bytes(IV_SIZE)
    header = _header(iv)
    mac = hmac.new(_mac_key(material), header, hashlib.sha256)

    dst.write(header)
    body = encrypt_stream(src, dst, _enc_key(material), iv, chunk_size=chunk_size, mac=mac)
    dst.write(mac.digest())
    return len(header) + body + TAG_SIZE


def _stream_size(src: BinaryIO) -> int:
    start = src.tell()
    end = src.seek(0, os.SEEK_END)
    src.seek(start)
    return end - start


def open_stream(
    src: BinaryIO,
    dst: BinaryIO,
    material: KeyMaterial,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Verify and decrypt a sealed container from a seekable src into dst.
    Returns plaintext bytes written.

    Raises UnsupportedFormatError on bad magic/version and IntegrityError
    when the file is too short or the tag does not match.
    """
    start = src.tell()
    total = _stream_size(src)

    header = src.read(HEADER_SIZE)
    if len(header) < len(MAGIC) + 1 or header[: len(MAGIC)] != MAGIC:
        raise UnsupportedFormatError("Invalid file format (magic mismatch)")
    (ver,) = struct.unpack("B", header[len(MAGIC) : len(MAGIC) + 1])
    if ver != VERSION:
        raise UnsupportedFormatError(f"Unsupported container version {ver}")
    if total < MIN_SEALED_SIZE:
        raise IntegrityError("sealed file is truncated")

    body_len = total - HEADER_SIZE - TAG_SIZE
    if body_len % BLOCK_SIZE:
        raise IntegrityError("sealed file body is not block aligned")

    # pass 1: authenticate header and ciphertext
    mac = hmac.new(_mac_key(material), header, hashlib.sha256)
    remaining = body_len
    while remaining:
        chunk = src.read(min(chunk_size, remaining))
        if not chunk:
            raise IntegrityError("sealed file is truncated")
        mac.update(chunk)
        remaining -= len(chunk)
    tag = src.read(TAG_SIZE)
    if not hmac.compare_digest(tag, mac.digest()):
        raise IntegrityError("authentication failed (HMAC mismatch)")

    # pass 2: decrypt
    src.seek(start + HEADER_SIZE)
    iv = header[len(MAGIC) + 1 :]
    try:
        return decrypt_stream(
            src, dst, _enc_key(material), iv, chunk_size=chunk_size, length=body_len
        )
    except PaddingError as exc:
        raise IntegrityError("authenticated ciphertext failed to decrypt") from exc
