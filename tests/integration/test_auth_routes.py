"""End-to-end tests for the login and protected dashboard endpoints."""

from __future__ import annotations

import hashlib
import hmac
import time

import pytest
from fastapi.testclient import TestClient

from tokencore.app import create_app
from tokencore.config import AppConfig, ConfigError
from tokencore.constants import CORRELATION_HEADER
from tokencore.crypto.codec import b64url_encode
from tokencore.errors import ErrorCode
from tokencore.routes.auth import issue_token
from tokencore.tokens import read_header, sign_claims, verify

ROUTE_SECRET = "route-secret"


def _make_config(**overrides) -> AppConfig:
    base = {"token_secret": ROUTE_SECRET, "auth_clock_skew_seconds": 0}
    base.update(overrides)
    return AppConfig(**base)


@pytest.fixture()
def client() -> TestClient:
    return TestClient(create_app(config=_make_config()))


def _login(client: TestClient, login: str = "alice") -> str:
    response = client.post("/login", json={"login": login, "password": "hunter2"})
    assert response.status_code == 200
    return response.json()["token"]


def test_login_issues_verifiable_token(client: TestClient) -> None:
    response = client.post("/login", json={"login": "alice", "password": "hunter2"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["tokenType"] == "Bearer"
    assert payload["expiresIn"] == 3600
    assert verify(payload["token"], ROUTE_SECRET)
    assert read_header(payload["token"])["alg"] == "HS256"


def test_login_uses_configured_algorithm() -> None:
    client = TestClient(create_app(config=_make_config(token_algorithm="HS512")))
    token = _login(client)
    assert read_header(token)["alg"] == "HS512"
    assert client.get("/dashboard", headers={"Authorization": f"Bearer {token}"}).status_code == 200


@pytest.mark.parametrize(
    "body",
    [{"login": "", "password": "x"}, {"login": "alice", "password": ""}, {"login": "alice"}],
)
def test_login_rejects_missing_credentials(client: TestClient, body: dict) -> None:
    response = client.post("/login", json=body)

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == ErrorCode.INVALID_INPUT.value
    assert error["correlationId"] == response.headers[CORRELATION_HEADER]


def test_dashboard_returns_authenticated_login(client: TestClient) -> None:
    token = _login(client, "bob")

    response = client.get("/dashboard", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["login"] == "bob"
    assert payload["algorithm"] == "HS256"
    assert payload["issuer"] == "tokencore"


def test_dashboard_requires_bearer_token(client: TestClient) -> None:
    response = client.get("/dashboard")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == ErrorCode.UNAUTHORIZED.value
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_dashboard_rejects_tampered_token(client: TestClient) -> None:
    token = _login(client)
    tampered = token[:-1] + ("A" if token[-1] != "A" else "B")

    response = client.get("/dashboard", headers={"Authorization": f"Bearer {tampered}"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid token"


def test_dashboard_rejects_token_signed_with_other_secret(client: TestClient) -> None:
    forged = sign_claims({"login": "mallory"}, "not-the-secret")

    response = client.get("/dashboard", headers={"Authorization": f"Bearer {forged}"})

    assert response.status_code == 401


def test_dashboard_rejects_expired_token(client: TestClient) -> None:
    expired = issue_token(_make_config(), ROUTE_SECRET, "alice", now=int(time.time()) - 7200)

    response = client.get("/dashboard", headers={"Authorization": f"Bearer {expired}"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Token has expired"


def _sign_raw_header(header: bytes) -> str:
    payload = b64url_encode(b'{"login":"alice"}')
    signing_input = f"{b64url_encode(header)}.{payload}"
    digest = hmac.new(ROUTE_SECRET.encode(), signing_input.encode(), hashlib.sha256).digest()
    return f"{signing_input}.{b64url_encode(digest)}"


@pytest.mark.parametrize(
    "header",
    [
        pytest.param(b'{"alg":"HS256","x":' + b"9" * 5000 + b"}", id="oversized-int"),
        pytest.param(b'{"a":' * 100000 + b"1" + b"}" * 100000, id="deep-nesting"),
        pytest.param(b'{"alg":null}', id="null-alg"),
    ],
)
def test_dashboard_rejects_hostile_header(client: TestClient, header: bytes) -> None:
    token = _sign_raw_header(header)

    response = client.get("/dashboard", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == ErrorCode.UNAUTHORIZED.value


@pytest.mark.parametrize(
    ("claims", "message"),
    [
        ({"login": "alice", "iss": {"name": "tokencore"}}, "Invalid iss claim"),
        ({"login": "alice", "iat": "yesterday"}, "Invalid iat claim"),
        ({"login": "alice", "iat": True}, "Invalid iat claim"),
    ],
)
def test_dashboard_rejects_mistyped_registered_claims(
    client: TestClient, claims: dict, message: str
) -> None:
    token = sign_claims(claims, ROUTE_SECRET)

    response = client.get("/dashboard", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == message


def test_dashboard_rejects_disallowed_algorithm() -> None:
    client = TestClient(
        create_app(config=_make_config(token_allowed_algorithms=("HS256",)))
    )
    token = sign_claims({"login": "alice"}, ROUTE_SECRET, "HS384")

    response = client.get("/dashboard", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_health_and_metrics(client: TestClient) -> None:
    _login(client)
    health = client.get("/health", headers={CORRELATION_HEADER: "abc123"})
    assert health.status_code == 200
    assert health.json()["status"] == "ok"
    assert health.headers[CORRELATION_HEADER] == "abc123"

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "tokencore_tokens_issued_total" in metrics.text
    assert "tokencore_http_requests_total" in metrics.text


def test_create_app_requires_secret_in_production() -> None:
    with pytest.raises(ConfigError):
        create_app(config=AppConfig(environment="production"))
