"""Error types for the credential pipeline."""

from __future__ import annotations

from enum import Enum


class CredentialErrorCode(str, Enum):
    MEMORY_ALLOCATION = "MemoryAllocation"
    INVALID_ENCODING = "InvalidEncoding"
    INVALID_TOKEN = "InvalidToken"
    UNSUPPORTED_ALGORITHM = "UnsupportedAlgorithm"
    NULL_PARAMETER = "NullParameter"
    ADD_CLAIM_FAILED = "AddClaimFailed"


class CredentialError(RuntimeError):
    """Base error for codec, HMAC and token failures."""

    def __init__(
        self, code: CredentialErrorCode, message: str, *, details: dict[str, str] | None = None
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        base = f"{self.code.value}: {self.args[0]}"
        if self.details:
            return f"{base} ({self.details})"
        return base


def invalid_encoding(message: str, **details: str) -> CredentialError:
    return CredentialError(CredentialErrorCode.INVALID_ENCODING, message, details=details or None)


def unsupported_algorithm(name: object) -> CredentialError:
    return CredentialError(
        CredentialErrorCode.UNSUPPORTED_ALGORITHM,
        f"Unsupported algorithm '{name}'",
        details={"algorithm": str(name)},
    )


def null_parameter(name: str) -> CredentialError:
    return CredentialError(
        CredentialErrorCode.NULL_PARAMETER,
        f"Parameter '{name}' must not be None",
        details={"parameter": name},
    )
