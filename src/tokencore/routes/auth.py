"""Credential exchange endpoint issuing signed tokens."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from prometheus_client import Counter
from pydantic import BaseModel, Field

from ..config import AppConfig
from ..crypto.errors import CredentialError
from ..errors import credential_error_to_http
from ..logging import get_logger
from ..tokens import Token

router = APIRouter(tags=["auth"])

_TOKENS_ISSUED = Counter(
    "tokencore_tokens_issued_total",
    "Tokens issued by the login endpoint.",
    ("algorithm",),
)

_logger = get_logger(__name__)


class LoginRequest(BaseModel):
    login: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=1, max_length=1024)


class LoginResponse(BaseModel):
    token: str
    tokenType: str = "Bearer"
    expiresIn: int


def issue_token(config: AppConfig, secret: str, login: str, *, now: int | None = None) -> str:
    issued_at = int(time.time()) if now is None else now
    token = Token(config.issuing_algorithm)
    token.add_claim("iss", config.token_issuer)
    token.add_claim("iat", issued_at)
    token.add_claim("exp", issued_at + config.token_lifetime_seconds)
    token.add_claim("login", login)
    return token.sign(secret)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, request: Request) -> LoginResponse:
    config: AppConfig = request.app.state.config
    try:
        signed = issue_token(config, request.app.state.token_secret, payload.login)
    except CredentialError as exc:
        raise credential_error_to_http(exc) from exc
    _TOKENS_ISSUED.labels(algorithm=config.token_algorithm).inc()
    _logger.info("login.token_issued", login=payload.login, algorithm=config.token_algorithm)
    return LoginResponse(token=signed, expiresIn=config.token_lifetime_seconds)
