"""Hashing, HMAC and Base64 primitives used by the token engine."""

from .algorithms import (
    SHA256_ALGORITHM,
    SHA384_ALGORITHM,
    SHA512_ALGORITHM,
    Algorithm,
    HashAlgorithm,
    resolve_algorithm,
)
from .codec import b64decode, b64encode, b64url_decode, b64url_encode
from .errors import CredentialError, CredentialErrorCode
from .mac import hmac_digest, normalize_key
from .sha2 import Sha2Hash, sha256, sha384, sha512

__all__ = [
    "Algorithm",
    "CredentialError",
    "CredentialErrorCode",
    "HashAlgorithm",
    "SHA256_ALGORITHM",
    "SHA384_ALGORITHM",
    "SHA512_ALGORITHM",
    "Sha2Hash",
    "b64decode",
    "b64encode",
    "b64url_decode",
    "b64url_encode",
    "hmac_digest",
    "normalize_key",
    "resolve_algorithm",
    "sha256",
    "sha384",
    "sha512",
]
