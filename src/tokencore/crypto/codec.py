"""Base64 (RFC 4648 section 4) and unpadded Base64URL (section 5) codecs.

The standard alphabet pads with ``=`` and is strict on decode.  The URL-safe
alphabet never emits padding, so its decoder infers the output length from
the input length and cannot tell a truncated segment from a shorter one.
"""

from __future__ import annotations

from .errors import invalid_encoding, null_parameter

STANDARD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
URLSAFE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
PAD = "="

_STANDARD_LOOKUP = {char: index for index, char in enumerate(STANDARD_ALPHABET)}
_URLSAFE_LOOKUP = {char: index for index, char in enumerate(URLSAFE_ALPHABET)}


def _encode(data: bytes, alphabet: str, pad: bool) -> str:
    if data is None:
        raise null_parameter("data")
    raw = bytes(data)
    out: list[str] = []
    for offset in range(0, len(raw), 3):
        group = raw[offset : offset + 3]
        value = int.from_bytes(group.ljust(3, b"\x00"), "big")
        chars = [
            alphabet[(value >> 18) & 0x3F],
            alphabet[(value >> 12) & 0x3F],
            alphabet[(value >> 6) & 0x3F],
            alphabet[value & 0x3F],
        ]
        kept = len(group) + 1
        out.extend(chars[:kept])
        if pad:
            out.append(PAD * (4 - kept))
    return "".join(out)


def _decode_symbols(text: str, lookup: dict[str, int], *, canonical: bool = False) -> bytes:
    """Reassemble 6-bit symbols (no padding) into bytes.

    With ``canonical`` set, a trailing partial group whose unused low bits are
    not zero is rejected, so each byte string has exactly one encoding.
    """
    out = bytearray()
    for offset in range(0, len(text), 4):
        group = text[offset : offset + 4]
        value = 0
        for position, char in enumerate(group):
            symbol = lookup.get(char)
            if symbol is None:
                raise invalid_encoding(
                    f"Illegal character {char!r}", position=str(offset + position)
                )
            value = (value << 6) | symbol
        unused_bits = 2 * (4 - len(group))
        if canonical and value & ((1 << unused_bits) - 1):
            raise invalid_encoding("Non-zero trailing bits", position=str(offset + len(group) - 1))
        value <<= 6 * (4 - len(group))
        out.extend(value.to_bytes(3, "big")[: len(group) - 1])
    return bytes(out)


def _as_text(encoded: str | bytes) -> str:
    if encoded is None:
        raise null_parameter("encoded")
    if isinstance(encoded, (bytes, bytearray, memoryview)):
        try:
            return bytes(encoded).decode("ascii")
        except UnicodeDecodeError:
            raise invalid_encoding("Encoded input must be ASCII") from None
    return encoded


def b64encode(data: bytes) -> str:
    """Standard padded Base64; output length is ``4 * ceil(n / 3)``."""
    return _encode(data, STANDARD_ALPHABET, pad=True)


def b64decode(encoded: str | bytes) -> bytes:
    text = _as_text(encoded)
    if len(text) % 4:
        raise invalid_encoding(
            "Encoded length must be a multiple of 4", length=str(len(text))
        )
    body = text.rstrip(PAD)
    padding = len(text) - len(body)
    if padding > 2:
        raise invalid_encoding("At most two padding characters are allowed")
    if PAD in body:
        raise invalid_encoding(
            "Padding may only appear at the end", position=str(body.index(PAD))
        )
    return _decode_symbols(body, _STANDARD_LOOKUP)


def b64url_encode(data: bytes) -> str:
    """URL-safe Base64 without ``=`` padding, as used for token segments."""
    return _encode(data, URLSAFE_ALPHABET, pad=False)


def b64url_decode(encoded: str | bytes) -> bytes:
    text = _as_text(encoded)
    if len(text) % 4 == 1:
        raise invalid_encoding(
            "Encoded length cannot be 1 modulo 4", length=str(len(text))
        )
    return _decode_symbols(text, _URLSAFE_LOOKUP, canonical=True)


__all__ = [
    "PAD",
    "STANDARD_ALPHABET",
    "URLSAFE_ALPHABET",
    "b64decode",
    "b64encode",
    "b64url_decode",
    "b64url_encode",
]
