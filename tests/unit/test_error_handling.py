"""Tests for centralized error handling."""

from __future__ import annotations

from fastapi import HTTPException
from fastapi.testclient import TestClient

from tokencore.app import create_app
from tokencore.config import AppConfig
from tokencore.constants import CORRELATION_HEADER
from tokencore.crypto.errors import CredentialError, CredentialErrorCode, unsupported_algorithm
from tokencore.errors import ErrorCode, credential_error_to_http, redact_sensitive


def _build_app():
    app = create_app(config=AppConfig(token_secret="errors-secret"))

    @app.get("/not-found")
    async def _not_found() -> None:
        raise HTTPException(status_code=404, detail="record missing")

    @app.get("/bad-request")
    async def _bad_request() -> None:
        raise HTTPException(status_code=400, detail="secret=abcd")

    @app.get("/explode")
    async def _explode() -> None:
        raise RuntimeError("token=abcd")

    return app


def test_http_exception_translates_to_standard_payload() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)

    response = client.get("/not-found")

    assert response.status_code == 404
    payload = response.json()
    assert payload["error"]["code"] == ErrorCode.NOT_FOUND.value
    assert payload["error"]["message"] == "record missing"
    assert payload["error"]["correlationId"] == response.headers[CORRELATION_HEADER]


def test_http_exception_message_is_redacted() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)

    response = client.get("/bad-request")

    assert response.status_code == 400
    payload = response.json()
    assert payload["error"]["code"] == ErrorCode.INVALID_INPUT.value
    assert payload["error"]["message"] == "secret=***"


def test_unexpected_exception_returns_internal_error() -> None:
    client = TestClient(_build_app(), raise_server_exceptions=False)

    response = client.get("/explode")

    assert response.status_code == 500
    payload = response.json()
    assert payload["error"]["code"] == ErrorCode.INTERNAL_ERROR.value
    assert payload["error"]["message"] == "Internal server error"
    assert payload["error"]["correlationId"] == response.headers[CORRELATION_HEADER]


def test_redact_sensitive_masks_bearer_tokens() -> None:
    text = "Authorization: Bearer abc.def.ghi rejected, password=hunter2"
    assert redact_sensitive(text) == "Authorization: Bearer *** rejected, password=***"


def test_credential_errors_map_to_http_codes() -> None:
    unsupported = credential_error_to_http(unsupported_algorithm("RS256"))
    assert unsupported.status_code == 400
    assert unsupported.error_code is ErrorCode.UNSUPPORTED_ALGORITHM

    invalid = credential_error_to_http(
        CredentialError(CredentialErrorCode.INVALID_TOKEN, "bad token")
    )
    assert invalid.status_code == 401
    assert invalid.error_code is ErrorCode.UNAUTHORIZED

    exhausted = credential_error_to_http(
        CredentialError(CredentialErrorCode.MEMORY_ALLOCATION, "out of memory")
    )
    assert exhausted.status_code == 500
    assert exhausted.error_code is ErrorCode.INTERNAL_ERROR
