"""Unit tests for the secure random source."""

import pytest
from unittest.mock import patch

from aesbox.core.exceptions import EntropyError
from aesbox.security import rng


def test_random_bytes_length():
    assert len(rng.random_bytes(0)) == 0
    assert len(rng.random_bytes(16)) == 16
    assert isinstance(rng.random_bytes(32), bytes)


def test_random_bytes_differ_between_calls():
    assert rng.random_bytes(32) != rng.random_bytes(32)


def test_random_bytes_negative_length():
    with pytest.raises(ValueError):
        rng.random_bytes(-1)


def test_fill_overwrites_whole_buffer():
    buf = bytearray(64)
    rng.fill(buf)
    # 64 zero bytes from a CSPRNG is not going to happen
    assert buf != bytearray(64)
    assert len(buf) == 64


def test_fill_memoryview_slice():
    buf = bytearray(32)
    rng.fill(memoryview(buf)[16:])
    assert buf[:16] == bytearray(16)


def test_fill_rejects_readonly_buffer():
    with pytest.raises(TypeError):
        rng.fill(b"\x00" * 16)


def test_entropy_failure_is_not_swallowed():
    """An OS entropy failure surfaces as EntropyError, never a weaker fallback."""
    with patch("aesbox.security.rng.os.urandom", side_effect=NotImplementedError("no entropy")):
        with pytest.raises(EntropyError):
            rng.random_bytes(16)
        with pytest.raises(EntropyError):
            rng.fill(bytearray(16))
