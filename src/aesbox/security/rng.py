"""Secure random bytes for keys, IVs and salts.

Only the OS CSPRNG (``os.urandom``) is used. If the OS cannot provide entropy
the call fails with :class:`EntropyError`; there is no weaker fallback.
"""
import os

from aesbox.core.exceptions import EntropyError


def random_bytes(length: int) -> bytes:
    """Return ``length`` cryptographically secure random bytes."""
    if length < 0:
        raise ValueError("length must be non-negative")
    try:
        return os.urandom(length)
    except (NotImplementedError, OSError) as exc:
        raise EntropyError("operating system entropy source unavailable") from exc


def fill(buffer) -> None:
    """Overwrite every byte of a writable buffer (``bytearray``/``memoryview``) with random bytes."""
    view = memoryview(buffer)
    if view.readonly:
        raise TypeError("fill() requires a writable buffer")
    view = view.cast("B")
    view[:] = random_bytes(len(view))
