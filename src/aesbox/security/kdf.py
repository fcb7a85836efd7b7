from typing import Dict, Optional, Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from aesbox.core.config import KdfParams

from .keys import IV_SIZE, KEY_SIZE
from .rng import random_bytes

SALT_SIZE = 16

_HASHES = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
}


def generate_salt(length: int = SALT_SIZE) -> bytes:
    """Return a cryptographically secure random salt."""
    return random_bytes(length)


def derive(
    password,
    salt: bytes,
    iterations: int,
    length: int,
    hash_name: str = "sha256",
) -> bytes:
    """
    Derive ``length`` bytes from a password using PBKDF2-HMAC.
    Identical arguments always give identical output.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")
    try:
        algorithm = _HASHES[hash_name]()
    except KeyError:
        raise ValueError(f"unsupported hash '{hash_name}'") from None

    kdf = PBKDF2HMAC(algorithm=algorithm, length=length, salt=salt, iterations=iterations)
    return kdf.derive(password)


def derive_wrap_key(password, salt: bytes, params: Optional[KdfParams] = None) -> Tuple[bytes, bytes]:
    """
    Derive the (key, iv) pair that protects a key file.

    One 48-byte derivation is split into a 32-byte key and a 16-byte IV, the
    same bytes two consecutive reads from a single PBKDF2 stream would give.
    """
    params = params or KdfParams()
    out = derive(password, salt, params.iterations, KEY_SIZE + IV_SIZE, params.hash_name)
    return out[:KEY_SIZE], out[KEY_SIZE:]


def kdf_params_to_dict(params: KdfParams) -> Dict:
    return {
        "algo": f"pbkdf2-hmac-{params.hash_name}",
        "iterations": params.iterations,
        "salt_len": SALT_SIZE,
    }
