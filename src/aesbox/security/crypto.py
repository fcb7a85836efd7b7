"""Streaming AES-256-CBC with PKCS#7 padding.

This is the bare cipher layer: no header, no IV handling and no
authentication. Decryption can only notice damage through the padding check
on the last block, which raises :class:`PaddingError`. Callers that need
tamper detection use :mod:`aesbox.security.container` on top of this.

Streams are processed in fixed-size chunks so file size is not bounded by
memory. Each function accepts an optional ``mac`` object (anything with an
``update(bytes)`` method, e.g. :class:`hmac.HMAC`) that is fed every
ciphertext byte written or read.
"""
from io import BytesIO
from typing import BinaryIO, Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from aesbox.core.exceptions import PaddingError

from .keys import check_key_iv

BLOCK_SIZE = 16
DEFAULT_CHUNK_SIZE = 64 * 1024


def _cipher(key: bytes, iv: bytes) -> Cipher:
    check_key_iv(key, iv)
    return Cipher(algorithms.AES(bytes(key)), modes.CBC(bytes(iv)))


def encrypt_stream(
    src: BinaryIO,
    dst: BinaryIO,
    key: bytes,
    iv: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    mac=None,
) -> int:
    """Encrypt everything readable from src into dst; return ciphertext bytes written."""
    encryptor = _cipher(key, iv).encryptor()
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    written = 0

    def emit(data: bytes) -> None:
        nonlocal written
        if not data:
            return
        dst.write(data)
        if mac is not None:
            mac.update(data)
        written += len(data)

    while True:
        chunk = src.read(chunk_size)
        if not chunk:
            break
        emit(encryptor.update(padder.update(chunk)))

    emit(encryptor.update(padder.finalize()))
    emit(encryptor.finalize())
    return written


def decrypt_stream(
    src: BinaryIO,
    dst: BinaryIO,
    key: bytes,
    iv: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    mac=None,
    length: Optional[int] = None,
) -> int:
    """
    Decrypt ciphertext from src into dst; return plaintext bytes written.

    If ``length`` is given, exactly that many bytes are consumed from src
    (used when a trailer follows the ciphertext).

    Raises PaddingError when the ciphertext is empty, not block aligned, or
    its last block does not carry valid padding.
    """
    decryptor = _cipher(key, iv).decryptor()
    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    consumed = 0
    written = 0

    while length is None or consumed < length:
        want = chunk_size if length is None else min(chunk_size, length - consumed)
        chunk = src.read(want)
        if not chunk:
            break
        consumed += len(chunk)
        if mac is not None:
            mac.update(chunk)
        out = unpadder.update(decryptor.update(chunk))
        if out:
            dst.write(out)
            written += len(out)

    if consumed == 0 or consumed % BLOCK_SIZE:
        raise PaddingError("ciphertext length is not a positive multiple of the block size")

    try:
        out = unpadder.update(decryptor.finalize()) + unpadder.finalize()
    except ValueError as exc:
        raise PaddingError("invalid padding (wrong key, wrong IV or corrupted data)") from exc
    if out:
        dst.write(out)
        written += len(out)
    return written


def encrypt_bytes(data: bytes, key: bytes, iv: bytes) -> bytes:
    out = BytesIO()
    encrypt_stream(BytesIO(data), out, key, iv)
    return out.getvalue()


def decrypt_bytes(data: bytes, key: bytes, iv: bytes) -> bytes:
    out = BytesIO()
    decrypt_stream(BytesIO(data), out, key, iv)
    return out.getvalue()
