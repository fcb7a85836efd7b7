"""Security helpers: key material, KDF and streaming encryption primitives for AESBox.

This package provides:
- OS-backed secure random bytes
- AES-256 key + IV material
- PBKDF2 key derivation for password-protected key files
- Streaming AES-256-CBC encryption/decryption with PKCS#7 padding
- A sealed per-file container (fresh IV + HMAC-SHA256)
- An explicit key session object
"""

from .rng import fill, random_bytes
from .keys import KeyMaterial, generate_key_material
from .kdf import generate_salt, derive, derive_wrap_key
from .crypto import encrypt_stream, decrypt_stream, encrypt_bytes, decrypt_bytes
from .container import seal_stream, open_stream
from .keyfile import save_key_file, load_key_file
from .session import KeySession

__all__ = [
    "fill",
    "random_bytes",
    "KeyMaterial",
    "generate_key_material",
    "generate_salt",
    "derive",
    "derive_wrap_key",
    "encrypt_stream",
    "decrypt_stream",
    "encrypt_bytes",
    "decrypt_bytes",
    "seal_stream",
    "open_stream",
    "save_key_file",
    "load_key_file",
    "KeySession",
]
