"""Pure-Python SHA-2 family (FIPS 180-4): SHA-256, SHA-384 and SHA-512.

Each variant is described by a :class:`Sha2Variant` holding its word width,
block and digest sizes, rotation constants, round constants and initial hash
value.  The round constants and initial values are derived from the prime
roots exactly as FIPS 180-4 section 4.2 and 5.3 define them, rather than
transcribed by hand.

The public surface mirrors :mod:`hashlib`: an incremental :class:`Sha2Hash`
object plus one-shot :func:`sha256`, :func:`sha384` and :func:`sha512`.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Tuple

from .errors import unsupported_algorithm


def _first_primes(count: int) -> list[int]:
    primes: list[int] = []
    candidate = 2
    while len(primes) < count:
        if all(candidate % prime for prime in primes if prime * prime <= candidate):
            primes.append(candidate)
        candidate += 1
    return primes


def _integer_cbrt(value: int) -> int:
    """Floor of the cube root of ``value`` (Newton's method from above)."""
    root = 1 << -(-value.bit_length() // 3)
    while True:
        candidate = (2 * root + value // (root * root)) // 3
        if candidate >= root:
            return root
        root = candidate


def _cbrt_fraction_bits(prime: int, bits: int) -> int:
    return _integer_cbrt(prime << (3 * bits)) & ((1 << bits) - 1)


def _sqrt_fraction_bits(prime: int, bits: int) -> int:
    return math.isqrt(prime << (2 * bits)) & ((1 << bits) - 1)


_PRIMES = _first_primes(80)

_K32: Tuple[int, ...] = tuple(_cbrt_fraction_bits(p, 32) for p in _PRIMES[:64])
_K64: Tuple[int, ...] = tuple(_cbrt_fraction_bits(p, 64) for p in _PRIMES)

_IV256: Tuple[int, ...] = tuple(_sqrt_fraction_bits(p, 32) for p in _PRIMES[:8])
_IV384: Tuple[int, ...] = tuple(_sqrt_fraction_bits(p, 64) for p in _PRIMES[8:16])
_IV512: Tuple[int, ...] = tuple(_sqrt_fraction_bits(p, 64) for p in _PRIMES[:8])


@dataclass(frozen=True)
class Sha2Variant:
    """Parameters of one SHA-2 hash function."""

    name: str
    word_bits: int
    block_size: int
    digest_size: int
    round_constants: Tuple[int, ...]
    initial_state: Tuple[int, ...]
    big_sigma0: Tuple[int, int, int]
    big_sigma1: Tuple[int, int, int]
    small_sigma0: Tuple[int, int, int]
    small_sigma1: Tuple[int, int, int]

    @property
    def length_size(self) -> int:
        """Bytes used to encode the message bit length in the final block."""
        return self.block_size // 8

    @property
    def word_code(self) -> str:
        return "I" if self.word_bits == 32 else "Q"

    @property
    def rounds(self) -> int:
        return len(self.round_constants)


SHA256 = Sha2Variant(
    name="sha256",
    word_bits=32,
    block_size=64,
    digest_size=32,
    round_constants=_K32,
    initial_state=_IV256,
    big_sigma0=(2, 13, 22),
    big_sigma1=(6, 11, 25),
    small_sigma0=(7, 18, 3),
    small_sigma1=(17, 19, 10),
)

SHA384 = Sha2Variant(
    name="sha384",
    word_bits=64,
    block_size=128,
    digest_size=48,
    round_constants=_K64,
    initial_state=_IV384,
    big_sigma0=(28, 34, 39),
    big_sigma1=(14, 18, 41),
    small_sigma0=(1, 8, 7),
    small_sigma1=(19, 61, 6),
)

SHA512 = Sha2Variant(
    name="sha512",
    word_bits=64,
    block_size=128,
    digest_size=64,
    round_constants=_K64,
    initial_state=_IV512,
    big_sigma0=(28, 34, 39),
    big_sigma1=(14, 18, 41),
    small_sigma0=(1, 8, 7),
    small_sigma1=(19, 61, 6),
)

VARIANTS = {variant.name: variant for variant in (SHA256, SHA384, SHA512)}


def _padding(variant: Sha2Variant, message_length: int) -> bytes:
    length_size = variant.length_size
    bit_length = (message_length * 8) % (1 << (8 * length_size))
    zeros = (variant.block_size - length_size - 1 - message_length) % variant.block_size
    return b"\x80" + b"\x00" * zeros + bit_length.to_bytes(length_size, "big")


def _compress(variant: Sha2Variant, state: list[int], block: bytes) -> None:
    bits = variant.word_bits
    mask = (1 << bits) - 1

    def rotr(value: int, shift: int) -> int:
        return ((value >> shift) | (value << (bits - shift))) & mask

    r0a, r0b, shift0 = variant.small_sigma0
    r1a, r1b, shift1 = variant.small_sigma1
    schedule = list(struct.unpack(f">16{variant.word_code}", block))
    for j in range(16, variant.rounds):
        x = schedule[j - 15]
        y = schedule[j - 2]
        s0 = rotr(x, r0a) ^ rotr(x, r0b) ^ (x >> shift0)
        s1 = rotr(y, r1a) ^ rotr(y, r1b) ^ (y >> shift1)
        schedule.append((schedule[j - 16] + s0 + schedule[j - 7] + s1) & mask)

    sa, sb, sc = variant.big_sigma0
    ea, eb, ec = variant.big_sigma1
    a, b, c, d, e, f, g, h = state
    for k_j, w_j in zip(variant.round_constants, schedule):
        big_s1 = rotr(e, ea) ^ rotr(e, eb) ^ rotr(e, ec)
        choose = (e & f) ^ ((e ^ mask) & g)
        temp1 = (h + big_s1 + choose + k_j + w_j) & mask
        big_s0 = rotr(a, sa) ^ rotr(a, sb) ^ rotr(a, sc)
        majority = (a & b) ^ (a & c) ^ (b & c)
        temp2 = (big_s0 + majority) & mask

        h = g
        g = f
        f = e
        e = (d + temp1) & mask
        d = c
        c = b
        b = a
        a = (temp1 + temp2) & mask

    for index, value in enumerate((a, b, c, d, e, f, g, h)):
        state[index] = (state[index] + value) & mask


class Sha2Hash:
    """Incremental SHA-2 hasher with a :mod:`hashlib`-style interface."""

    def __init__(self, variant: Sha2Variant, data: bytes = b"") -> None:
        self._variant = variant
        self._state = list(variant.initial_state)
        self._buffer = b""
        self._length = 0
        if data:
            self.update(data)

    @property
    def name(self) -> str:
        return self._variant.name

    @property
    def digest_size(self) -> int:
        return self._variant.digest_size

    @property
    def block_size(self) -> int:
        return self._variant.block_size

    def update(self, data: bytes) -> None:
        chunk = bytes(data)
        self._length += len(chunk)
        buffered = self._buffer + chunk
        block_size = self._variant.block_size
        complete = len(buffered) - len(buffered) % block_size
        for offset in range(0, complete, block_size):
            _compress(self._variant, self._state, buffered[offset : offset + block_size])
        self._buffer = buffered[complete:]

    def digest(self) -> bytes:
        variant = self._variant
        state = list(self._state)
        tail = self._buffer + _padding(variant, self._length)
        for offset in range(0, len(tail), variant.block_size):
            _compress(variant, state, tail[offset : offset + variant.block_size])
        packed = struct.pack(f">8{variant.word_code}", *state)
        return packed[: variant.digest_size]

    def hexdigest(self) -> str:
        return self.digest().hex()

    def copy(self) -> "Sha2Hash":
        clone = Sha2Hash(self._variant)
        clone._state = list(self._state)
        clone._buffer = self._buffer
        clone._length = self._length
        return clone


def new(name: str, data: bytes = b"") -> Sha2Hash:
    """Create a hasher by name (``sha256``, ``sha384`` or ``sha512``)."""
    variant = VARIANTS.get(name.lower().replace("-", ""))
    if variant is None:
        raise unsupported_algorithm(name)
    return Sha2Hash(variant, data)


def sha256(data: bytes = b"") -> bytes:
    return Sha2Hash(SHA256, data).digest()


def sha384(data: bytes = b"") -> bytes:
    return Sha2Hash(SHA384, data).digest()


def sha512(data: bytes = b"") -> bytes:
    return Sha2Hash(SHA512, data).digest()


__all__ = [
    "SHA256",
    "SHA384",
    "SHA512",
    "Sha2Hash",
    "Sha2Variant",
    "VARIANTS",
    "new",
    "sha256",
    "sha384",
    "sha512",
]
