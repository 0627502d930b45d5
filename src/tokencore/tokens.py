"""Compact token (JWT-style) signing and verification.

Signing serializes the header and payload claim sets, Base64URL-encodes
each, joins them with ``.`` and appends the Base64URL HMAC of that signing
input.  Verification recomputes the HMAC over everything before the last
``.`` and compares it with the decoded signature segment.

:func:`verify` returns a bare boolean.  Malformed input, an unknown or
disallowed ``alg`` and a signature mismatch are indistinguishable to the
caller; the reason is only logged at debug level.
"""

from __future__ import annotations

import hmac
from typing import Any, Iterable, Mapping, Optional, Union

from .claims import ClaimSet, ClaimSetError
from .constants import TOKEN_TYPE
from .crypto.algorithms import SUPPORTED_ALGORITHMS, Algorithm, resolve_algorithm
from .crypto.codec import b64url_decode, b64url_encode
from .crypto.errors import CredentialError, CredentialErrorCode, null_parameter
from .crypto.mac import KeyLike, hmac_digest
from .logging import get_logger

SEGMENT_SEPARATOR = "."

_logger = get_logger(__name__)


class Token:
    """A token under construction: header, payload and bound algorithm."""

    def __init__(self, algorithm: Union[Algorithm, str] = Algorithm.HS256) -> None:
        self.algorithm = resolve_algorithm(algorithm)
        self.header = ClaimSet()
        self.header.add("alg", self.algorithm.value)
        self.header.add("typ", TOKEN_TYPE)
        self.payload = ClaimSet()
        self._signed = False

    @property
    def signed(self) -> bool:
        return self._signed

    def add_claim(self, name: str, value: Any) -> "Token":
        if name is None:
            raise null_parameter("name")
        if self._signed:
            raise CredentialError(
                CredentialErrorCode.ADD_CLAIM_FAILED,
                "Token is already signed",
                details={"claim": name},
            )
        try:
            self.payload.add(name, value)
        except ClaimSetError as exc:
            raise CredentialError(
                CredentialErrorCode.ADD_CLAIM_FAILED, str(exc.args[0]), details=exc.details
            ) from exc
        return self

    def signing_input(self) -> str:
        header_segment = b64url_encode(self.header.to_bytes())
        payload_segment = b64url_encode(self.payload.to_bytes())
        return f"{header_segment}{SEGMENT_SEPARATOR}{payload_segment}"

    def sign(self, secret: KeyLike) -> str:
        """Return the compact ``header.payload.signature`` string."""
        if secret is None:
            raise null_parameter("secret")
        try:
            signing_input = self.signing_input()
            signature = hmac_digest(
                signing_input.encode("ascii"), secret, self.algorithm.hash_algorithm
            )
            compact = f"{signing_input}{SEGMENT_SEPARATOR}{b64url_encode(signature)}"
        except MemoryError as exc:
            raise CredentialError(
                CredentialErrorCode.MEMORY_ALLOCATION, "Out of memory while signing token"
            ) from exc
        self._signed = True
        _logger.debug("token.signed", algorithm=self.algorithm.value, claims=len(self.payload))
        return compact


def sign_claims(
    claims: Mapping[str, Any],
    secret: KeyLike,
    algorithm: Union[Algorithm, str] = Algorithm.HS256,
) -> str:
    """Build a token from ``claims`` and sign it in one step."""
    token = Token(algorithm)
    for name, value in claims.items():
        token.add_claim(name, value)
    return token.sign(secret)


def split_token(token: str) -> tuple[str, str, str]:
    """Split a compact token into its three segments."""
    if not isinstance(token, str):
        raise CredentialError(CredentialErrorCode.INVALID_TOKEN, "Token must be a string")
    signing_input, separator, signature_segment = token.rpartition(SEGMENT_SEPARATOR)
    if not separator:
        raise CredentialError(CredentialErrorCode.INVALID_TOKEN, "Token has no signature segment")
    parts = signing_input.split(SEGMENT_SEPARATOR)
    if len(parts) != 2:
        raise CredentialError(
            CredentialErrorCode.INVALID_TOKEN,
            "Token must contain exactly three segments",
            details={"segments": str(len(parts) + 1)},
        )
    header_segment, payload_segment = parts
    return header_segment, payload_segment, signature_segment


def read_header(token: str) -> ClaimSet:
    """Decode the (unverified) header claim set of a compact token."""
    header_segment, _, _ = split_token(token)
    return ClaimSet.from_json(b64url_decode(header_segment))


def _check_signature(
    token: str, secret: KeyLike, allowed: frozenset[Algorithm]
) -> Optional[str]:
    """Return ``None`` when the token verifies, otherwise a short reason."""
    header_segment, payload_segment, signature_segment = split_token(token)
    header = ClaimSet.from_json(b64url_decode(header_segment))
    algorithm = resolve_algorithm(header.get("alg"))
    if algorithm not in allowed:
        return f"algorithm {algorithm.value} not allowed"

    signature = b64url_decode(signature_segment)
    signing_input = f"{header_segment}{SEGMENT_SEPARATOR}{payload_segment}".encode("ascii")
    expected = hmac_digest(signing_input, secret, algorithm.hash_algorithm)
    if not hmac.compare_digest(expected, signature):
        return "signature mismatch"
    return None


def verify(
    token: str,
    secret: KeyLike,
    algorithms: Iterable[Union[Algorithm, str]] = SUPPORTED_ALGORITHMS,
) -> bool:
    """Return True when ``token`` carries a valid signature under ``secret``.

    The algorithm is taken from the token header and must be one of
    ``algorithms``.  Registered claims (``exp``, ``iss``...) are not checked.
    An unknown entry in ``algorithms`` raises instead of rejecting every token.
    """
    allowed = frozenset(resolve_algorithm(item) for item in algorithms)
    if secret is None:
        _logger.debug("token.verify.rejected", reason="missing secret")
        return False
    try:
        reason = _check_signature(token, secret, allowed)
    except (CredentialError, UnicodeEncodeError) as exc:
        reason = exc.code.value if isinstance(exc, CredentialError) else "non-ascii token"
    if reason is not None:
        _logger.debug("token.verify.rejected", reason=reason)
        return False
    return True


__all__ = [
    "SEGMENT_SEPARATOR",
    "Token",
    "read_header",
    "sign_claims",
    "split_token",
    "verify",
]
