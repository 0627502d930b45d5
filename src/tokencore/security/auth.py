"""Bearer-token authentication for the HTTP layer.

Signature checking is delegated to :func:`tokencore.tokens.verify`.  Only
after the signature is accepted are the payload claims decoded and the
registered claims (``exp``, ``iss``, ``iat``) checked; those checks live here
rather than in the token engine.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Request, status
from prometheus_client import Counter

from ..claims import ClaimSet
from ..config import AppConfig
from ..constants import BEARER_PREFIX
from ..crypto.codec import b64url_decode
from ..crypto.errors import CredentialError
from ..errors import DetailedHTTPException, ErrorCode
from ..logging import get_logger
from ..tokens import read_header, split_token, verify

_VERIFICATIONS = Counter(
    "tokencore_token_verifications_total",
    "Bearer token verification outcomes.",
    ("outcome",),
)

_logger = get_logger(__name__)


class AuthError(DetailedHTTPException):
    def __init__(self, message: str, status_code: int = status.HTTP_401_UNAUTHORIZED) -> None:
        super().__init__(
            status_code=status_code,
            message=message,
            code=ErrorCode.UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


@dataclass(frozen=True)
class AuthContext:
    subject: str
    algorithm: str
    issuer: Optional[str] = None
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None
    claims: dict[str, Any] = field(default_factory=dict)


class TokenValidator:
    def __init__(self, config: AppConfig, secret: str) -> None:
        self._config = config
        self._secret = secret

    def validate(self, token: str) -> AuthContext:
        if not verify(token, self._secret, self._config.accepted_algorithms):
            _VERIFICATIONS.labels(outcome="invalid").inc()
            raise AuthError("Invalid token")

        try:
            header = read_header(token)
            _, payload_segment, _ = split_token(token)
            payload = ClaimSet.from_json(b64url_decode(payload_segment)).to_dict()
        except CredentialError as exc:
            _VERIFICATIONS.labels(outcome="malformed").inc()
            raise AuthError("Invalid token payload") from exc

        expires_at = payload.get("exp")
        if expires_at is not None:
            if not isinstance(expires_at, int) or isinstance(expires_at, bool):
                _VERIFICATIONS.labels(outcome="malformed").inc()
                raise AuthError("Invalid exp claim")
            if expires_at + self._config.auth_clock_skew_seconds < int(time.time()):
                _VERIFICATIONS.labels(outcome="expired").inc()
                raise AuthError("Token has expired")

        issuer = payload.get("iss")
        if issuer is not None and not isinstance(issuer, str):
            _VERIFICATIONS.labels(outcome="malformed").inc()
            raise AuthError("Invalid iss claim")

        issued_at = payload.get("iat")
        if issued_at is not None and (
            not isinstance(issued_at, int) or isinstance(issued_at, bool)
        ):
            _VERIFICATIONS.labels(outcome="malformed").inc()
            raise AuthError("Invalid iat claim")

        subject = payload.get("login") or payload.get("sub")
        if not isinstance(subject, str) or not subject:
            _VERIFICATIONS.labels(outcome="malformed").inc()
            raise AuthError("Token missing subject")

        _VERIFICATIONS.labels(outcome="valid").inc()
        return AuthContext(
            subject=subject,
            algorithm=str(header.get("alg")),
            issuer=issuer,
            issued_at=issued_at,
            expires_at=expires_at,
            claims=payload,
        )


def extract_bearer_token(request: Request) -> str:
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        _VERIFICATIONS.labels(outcome="missing").inc()
        raise AuthError("Missing bearer token")
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        _VERIFICATIONS.labels(outcome="missing").inc()
        raise AuthError("Missing bearer token")
    return token


async def auth_dependency(request: Request) -> AuthContext:
    config: AppConfig = request.app.state.config
    token = extract_bearer_token(request)
    validator = TokenValidator(config, request.app.state.token_secret)
    context = validator.validate(token)
    request.state.auth = context
    _logger.info("auth.accepted", subject=context.subject, algorithm=context.algorithm)
    return context
