"""Bound hash-algorithm descriptors and the HS* token identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import null_parameter, unsupported_algorithm
from .sha2 import SHA256, SHA384, SHA512, Sha2Hash, Sha2Variant


@dataclass(frozen=True)
class HashAlgorithm:
    """A hash function together with its block and digest sizes.

    The sizes are read from the same variant that drives the compression
    function, so a descriptor can never pair one function with another
    function's sizes.
    """

    variant: Sha2Variant

    @property
    def name(self) -> str:
        return self.variant.name

    @property
    def block_size(self) -> int:
        return self.variant.block_size

    @property
    def digest_size(self) -> int:
        return self.variant.digest_size

    def new(self, data: bytes = b"") -> Sha2Hash:
        return Sha2Hash(self.variant, data)

    def hash(self, data: bytes) -> bytes:
        return Sha2Hash(self.variant, data).digest()


SHA256_ALGORITHM = HashAlgorithm(SHA256)
SHA384_ALGORITHM = HashAlgorithm(SHA384)
SHA512_ALGORITHM = HashAlgorithm(SHA512)


class Algorithm(str, Enum):
    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"

    @property
    def hash_algorithm(self) -> HashAlgorithm:
        return _BINDINGS[self]


_BINDINGS = {
    Algorithm.HS256: SHA256_ALGORITHM,
    Algorithm.HS384: SHA384_ALGORITHM,
    Algorithm.HS512: SHA512_ALGORITHM,
}

SUPPORTED_ALGORITHMS = tuple(Algorithm)


def resolve_algorithm(value: Union[Algorithm, str, None]) -> Algorithm:
    """Map an ``alg`` identifier to its :class:`Algorithm` (exact match)."""
    if value is None:
        raise null_parameter("algorithm")
    if isinstance(value, Algorithm):
        return value
    try:
        return Algorithm(value)
    except ValueError:
        raise unsupported_algorithm(value) from None


__all__ = [
    "Algorithm",
    "HashAlgorithm",
    "SHA256_ALGORITHM",
    "SHA384_ALGORITHM",
    "SHA512_ALGORITHM",
    "SUPPORTED_ALGORITHMS",
    "resolve_algorithm",
]
