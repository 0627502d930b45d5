"""Application configuration management."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import __version__
from .constants import DEV_FALLBACK_SECRET, SERVICE_NAME
from .crypto.algorithms import Algorithm
from .logging import DEFAULT_LOG_FORMAT, DEFAULT_LOG_LEVEL, get_logger

_DEV_ENVIRONMENTS = {"development", "local"}


class ConfigError(RuntimeError):
    """Raised when application configuration is invalid."""


class AppConfig(BaseModel):
    """Validated application configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    host: str = Field(default="0.0.0.0", description="Host interface to bind the HTTP server")
    port: int = Field(default=3000, ge=1, le=65535, description="Port for the HTTP server")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Root log level")
    log_format: str = Field(default=DEFAULT_LOG_FORMAT, description="Log renderer (json, console)")
    service_name: str = Field(default=SERVICE_NAME, description="Service identifier")
    service_version: str = Field(default=__version__, description="Service version override")
    environment: str = Field(default="development", description="Deployment environment tag")
    token_secret: Optional[str] = Field(
        default=None, description="Shared secret used to sign and verify tokens"
    )
    token_secret_file: Optional[str] = Field(
        default=None, description="File whose contents are the token secret (overrides TOKEN_SECRET)"
    )
    token_algorithm: str = Field(
        default=Algorithm.HS256.value, description="Algorithm used when issuing tokens"
    )
    token_allowed_algorithms: Tuple[str, ...] = Field(
        default=tuple(alg.value for alg in Algorithm),
        description="Algorithms accepted when verifying tokens",
    )
    token_issuer: str = Field(default=SERVICE_NAME, description="Value of the iss claim")
    token_lifetime_seconds: int = Field(
        default=3600, ge=1, description="Lifetime (seconds) applied to the exp claim"
    )
    auth_clock_skew_seconds: int = Field(
        default=60,
        ge=0,
        description="Allowed clock skew (seconds) when validating token timestamps",
    )

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        from logging import getLevelName

        candidate = value.upper()
        resolved = getLevelName(candidate)
        if isinstance(resolved, int):
            return candidate
        raise ValueError(f"Unsupported log level '{value}'")

    @field_validator("log_format")
    @classmethod
    def _normalise_log_format(cls, value: str) -> str:
        fmt = value.lower()
        if fmt not in {"json", "console"}:
            raise ValueError(f"Unsupported log format '{value}'")
        return fmt

    @field_validator("token_algorithm")
    @classmethod
    def _normalise_algorithm(cls, value: str) -> str:
        candidate = value.strip().upper()
        if candidate not in {alg.value for alg in Algorithm}:
            raise ValueError(f"Unsupported token algorithm '{value}'")
        return candidate

    @field_validator("token_allowed_algorithms")
    @classmethod
    def _normalise_allowed(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        supported = {alg.value for alg in Algorithm}
        normalised = tuple(item.strip().upper() for item in value if item.strip())
        unknown = [item for item in normalised if item not in supported]
        if unknown:
            raise ValueError(f"Unsupported token algorithms: {', '.join(unknown)}")
        if not normalised:
            raise ValueError("At least one token algorithm must be allowed")
        return normalised

    @field_validator("token_secret")
    @classmethod
    def _validate_secret(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value:
            raise ValueError("TOKEN_SECRET must not be empty when set")
        return value

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in _DEV_ENVIRONMENTS

    @property
    def issuing_algorithm(self) -> Algorithm:
        return Algorithm(self.token_algorithm)

    @property
    def accepted_algorithms(self) -> Tuple[Algorithm, ...]:
        return tuple(Algorithm(item) for item in self.token_allowed_algorithms)

    def signing_secret(self) -> str:
        """Return the configured secret, falling back only in development."""
        if self.token_secret_file:
            path = Path(self.token_secret_file).expanduser()
            try:
                secret = path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                raise ConfigError(f"Unable to read TOKEN_SECRET_FILE: {exc}") from exc
            if not secret:
                raise ConfigError("TOKEN_SECRET_FILE is empty")
            return secret
        if self.token_secret:
            return self.token_secret
        if self.is_development:
            get_logger(__name__).warning(
                "config.token_secret_fallback", environment=self.environment
            )
            return DEV_FALLBACK_SECRET
        raise ConfigError("TOKEN_SECRET or TOKEN_SECRET_FILE must be set outside development")

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables (respecting .env)."""
        load_dotenv()
        try:
            raw: dict[str, Any] = {
                "host": os.getenv("HOST", cls.model_fields["host"].default),
                "port": os.getenv("PORT", cls.model_fields["port"].default),
                "log_level": os.getenv("LOG_LEVEL", cls.model_fields["log_level"].default),
                "log_format": os.getenv("LOG_FORMAT", cls.model_fields["log_format"].default),
                "service_name": os.getenv("SERVICE_NAME", cls.model_fields["service_name"].default),
                "service_version": os.getenv(
                    "SERVICE_VERSION", cls.model_fields["service_version"].default
                ),
                "environment": os.getenv("ENVIRONMENT", cls.model_fields["environment"].default),
                "token_secret": os.getenv("TOKEN_SECRET"),
                "token_secret_file": os.getenv("TOKEN_SECRET_FILE"),
                "token_algorithm": os.getenv(
                    "TOKEN_ALGORITHM", cls.model_fields["token_algorithm"].default
                ),
                "token_allowed_algorithms": cls._env_to_list(
                    os.getenv("TOKEN_ALLOWED_ALGORITHMS"),
                    cls.model_fields["token_allowed_algorithms"].default,
                ),
                "token_issuer": os.getenv("TOKEN_ISSUER", cls.model_fields["token_issuer"].default),
                "token_lifetime_seconds": cls._env_to_int(
                    "TOKEN_LIFETIME_SECONDS", cls.model_fields["token_lifetime_seconds"].default
                ),
                "auth_clock_skew_seconds": cls._env_to_int(
                    "AUTH_CLOCK_SKEW_SECONDS",
                    cls.model_fields["auth_clock_skew_seconds"].default,
                ),
            }
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError("Invalid application configuration") from exc

    @staticmethod
    def _env_to_int(name: str, default: int) -> int:
        raw = os.getenv(name)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError as exc:
            raise ValueError(f"Environment variable {name} must be an integer") from exc

    @staticmethod
    def _env_to_list(value: str | None, default: Tuple[str, ...]) -> Tuple[str, ...]:
        if value is None:
            return default
        return tuple(item.strip() for item in value.split(",") if item.strip())


def load_config() -> AppConfig:
    """Convenience helper to load configuration with error propagation."""
    return AppConfig.from_env()
