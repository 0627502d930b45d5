"""Error utilities and standardized responses."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Any, Iterable, List, Optional

from fastapi import HTTPException
from starlette.responses import JSONResponse

from .constants import CORRELATION_HEADER
from .crypto.errors import CredentialError, CredentialErrorCode

_SENSITIVE_PATTERN = re.compile(r"(?i)(token|secret|password|key)=([^\s]+)")
_BEARER_PATTERN = re.compile(r"(?i)(bearer\s+)([A-Za-z0-9_\-.]+)")


class ErrorCode(str, Enum):
    INVALID_INPUT = "InvalidInput"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    UNSUPPORTED_ALGORITHM = "UnsupportedAlgorithm"
    INTERNAL_ERROR = "InternalError"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured hint used by clients to self-correct failed requests."""

    issue: str
    field: Optional[str] = None
    hint: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"issue": self.issue}
        if self.field:
            payload["field"] = self.field
        if self.hint:
            payload["hint"] = self.hint
        if self.code:
            payload["code"] = self.code
        return payload


class DetailedHTTPException(HTTPException):
    """HTTPException extended with structured error metadata."""

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: ErrorCode | None = None,
        details: Iterable[ErrorDetail] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.error_code = code
        self.error_details: list[ErrorDetail] = list(details or [])


def redact_sensitive(text: str) -> str:
    """Mask obvious secrets and bearer tokens in error messages."""
    masked = _SENSITIVE_PATTERN.sub(lambda m: f"{m.group(1)}=***", text)
    return _BEARER_PATTERN.sub(lambda m: f"{m.group(1)}***", masked)


def map_status_to_code(status_code: int) -> ErrorCode:
    if status_code in {HTTPStatus.BAD_REQUEST, HTTPStatus.UNPROCESSABLE_ENTITY}:
        return ErrorCode.INVALID_INPUT
    if status_code == HTTPStatus.UNAUTHORIZED:
        return ErrorCode.UNAUTHORIZED
    if status_code == HTTPStatus.FORBIDDEN:
        return ErrorCode.FORBIDDEN
    if status_code == HTTPStatus.NOT_FOUND:
        return ErrorCode.NOT_FOUND
    return ErrorCode.INTERNAL_ERROR


def error_response(
    *,
    code: ErrorCode,
    message: str,
    correlation_id: str,
    status_code: int,
    details: Iterable[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    payload: dict[str, Any] = {
        "error": {
            "code": code.value,
            "message": message,
            "correlationId": correlation_id,
        }
    }
    if details:
        payload["error"]["details"] = [item.to_dict() for item in details]

    response_headers = dict(headers or {})
    response_headers[CORRELATION_HEADER] = correlation_id
    return JSONResponse(status_code=status_code, content=payload, headers=response_headers)


def default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unexpected Error"


def error_detail(
    issue: str,
    *,
    field: Optional[str] = None,
    hint: Optional[str] = None,
    code: Optional[str] = None,
) -> ErrorDetail:
    """Convenience helper to build an ErrorDetail entry."""

    return ErrorDetail(issue=issue, field=field, hint=hint, code=code)


def join_field(parts: Iterable[Any]) -> Optional[str]:
    """Convert ValidationError locations into dotted field names."""

    formatted = [str(part) for part in parts if part not in {"__root__", "body", None}]
    if not formatted:
        return None
    return ".".join(formatted)


def validation_errors_to_details(errors: Iterable[Any]) -> List[ErrorDetail]:
    """Translate pydantic/FastAPI validation entries into ErrorDetail records."""

    details: list[ErrorDetail] = []
    for item in errors:
        issue = item.get("msg", "Invalid value")
        field = join_field(item.get("loc") or ())
        details.append(error_detail(issue=issue, field=field, code=item.get("type")))
    return details


def credential_error_to_http(exc: CredentialError) -> DetailedHTTPException:
    """Map credential pipeline failures to structured HTTP errors."""

    status_map = {
        CredentialErrorCode.INVALID_ENCODING: HTTPStatus.BAD_REQUEST,
        CredentialErrorCode.INVALID_TOKEN: HTTPStatus.UNAUTHORIZED,
        CredentialErrorCode.UNSUPPORTED_ALGORITHM: HTTPStatus.BAD_REQUEST,
        CredentialErrorCode.NULL_PARAMETER: HTTPStatus.BAD_REQUEST,
        CredentialErrorCode.ADD_CLAIM_FAILED: HTTPStatus.BAD_REQUEST,
    }
    code_map = {
        CredentialErrorCode.INVALID_ENCODING: ErrorCode.INVALID_INPUT,
        CredentialErrorCode.INVALID_TOKEN: ErrorCode.UNAUTHORIZED,
        CredentialErrorCode.UNSUPPORTED_ALGORITHM: ErrorCode.UNSUPPORTED_ALGORITHM,
        CredentialErrorCode.NULL_PARAMETER: ErrorCode.INVALID_INPUT,
        CredentialErrorCode.ADD_CLAIM_FAILED: ErrorCode.INVALID_INPUT,
    }

    status_code = int(status_map.get(exc.code, HTTPStatus.INTERNAL_SERVER_ERROR))
    error_code = code_map.get(exc.code, ErrorCode.INTERNAL_ERROR)
    details = [
        error_detail(issue=str(value), field=str(key), code=exc.code.value)
        for key, value in (exc.details or {}).items()
    ]
    message = str(exc.args[0]) if exc.args else str(exc)
    return DetailedHTTPException(
        status_code=status_code,
        message=redact_sensitive(message),
        code=error_code,
        details=details,
    )


__all__ = [
    "DetailedHTTPException",
    "ErrorCode",
    "ErrorDetail",
    "credential_error_to_http",
    "default_message",
    "error_detail",
    "error_response",
    "join_field",
    "map_status_to_code",
    "redact_sensitive",
    "validation_errors_to_details",
]
