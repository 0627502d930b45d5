"""HMAC (RFC 2104) over the SHA-2 descriptors."""

from __future__ import annotations

from typing import Union

from .algorithms import HashAlgorithm
from .errors import null_parameter

_INNER_PAD = 0x36
_OUTER_PAD = 0x5C

KeyLike = Union[bytes, bytearray, memoryview, str]


def _as_bytes(value: KeyLike, parameter: str) -> bytes:
    if value is None:
        raise null_parameter(parameter)
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def normalize_key(key: KeyLike, algorithm: HashAlgorithm) -> bytes:
    """Return ``key`` hashed and/or zero-padded to exactly the block size."""
    raw = _as_bytes(key, "key")
    block_size = algorithm.block_size
    if len(raw) > block_size:
        raw = algorithm.hash(raw)
    return raw.ljust(block_size, b"\x00")


def hmac_digest(message: KeyLike, key: KeyLike, algorithm: HashAlgorithm) -> bytes:
    """Compute ``H(opad || H(ipad || message))``."""
    if algorithm is None:
        raise null_parameter("algorithm")
    data = _as_bytes(message, "message")
    block_key = normalize_key(key, algorithm)

    inner_key = bytes(byte ^ _INNER_PAD for byte in block_key)
    outer_key = bytes(byte ^ _OUTER_PAD for byte in block_key)

    inner = algorithm.new(inner_key)
    inner.update(data)
    outer = algorithm.new(outer_key)
    outer.update(inner.digest())
    return outer.digest()


__all__ = ["KeyLike", "hmac_digest", "normalize_key"]
