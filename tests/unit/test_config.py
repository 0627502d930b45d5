"""Tests for application configuration loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tokencore.config import AppConfig, ConfigError
from tokencore.constants import DEV_FALLBACK_SECRET
from tokencore.crypto.algorithms import Algorithm


def test_app_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "console")
    monkeypatch.setenv("SERVICE_NAME", "custom-service")
    monkeypatch.setenv("ENVIRONMENT", "staging")
    monkeypatch.setenv("TOKEN_SECRET", "from-env")
    monkeypatch.setenv("TOKEN_ALGORITHM", "hs512")
    monkeypatch.setenv("TOKEN_ALLOWED_ALGORITHMS", "HS512, hs384")
    monkeypatch.setenv("TOKEN_ISSUER", "issuer-x")
    monkeypatch.setenv("TOKEN_LIFETIME_SECONDS", "120")
    monkeypatch.setenv("AUTH_CLOCK_SKEW_SECONDS", "5")

    config = AppConfig.from_env()

    assert config.host == "127.0.0.1"
    assert config.port == 9001
    assert config.log_level == "DEBUG"
    assert config.log_format == "console"
    assert config.service_name == "custom-service"
    assert config.environment == "staging"
    assert config.token_algorithm == "HS512"
    assert config.issuing_algorithm is Algorithm.HS512
    assert config.accepted_algorithms == (Algorithm.HS512, Algorithm.HS384)
    assert config.token_issuer == "issuer-x"
    assert config.token_lifetime_seconds == 120
    assert config.auth_clock_skew_seconds == 5
    assert config.signing_secret() == "from-env"


def test_app_config_invalid_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "70000")

    with pytest.raises(ConfigError):
        AppConfig.from_env()


def test_app_config_non_integer_lifetime(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKEN_LIFETIME_SECONDS", "soon")

    with pytest.raises(ConfigError):
        AppConfig.from_env()


def test_unknown_algorithm_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfig(token_algorithm="RS256")
    with pytest.raises(ValidationError):
        AppConfig(token_allowed_algorithms=("HS256", "none"))


def test_empty_secret_rejected() -> None:
    with pytest.raises(ValidationError):
        AppConfig(token_secret="")


def test_secret_file_takes_precedence(tmp_path) -> None:
    secret_file = tmp_path / "secret.txt"
    secret_file.write_text("file-secret\n", encoding="utf-8")
    config = AppConfig(token_secret="inline", token_secret_file=str(secret_file))
    assert config.signing_secret() == "file-secret"


def test_missing_secret_file_raises(tmp_path) -> None:
    config = AppConfig(token_secret_file=str(tmp_path / "absent"))
    with pytest.raises(ConfigError):
        config.signing_secret()


def test_development_falls_back_to_dev_secret() -> None:
    config = AppConfig(environment="development")
    assert config.signing_secret() == DEV_FALLBACK_SECRET


def test_production_requires_secret() -> None:
    config = AppConfig(environment="production")
    with pytest.raises(ConfigError):
        config.signing_secret()


def test_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HOST", "PORT", "LOG_LEVEL", "TOKEN_ALGORITHM", "TOKEN_ALLOWED_ALGORITHMS"):
        monkeypatch.delenv(name, raising=False)
    config = AppConfig.from_env()

    assert config.host == "0.0.0.0"
    assert config.port == 3000
    assert config.log_level == "INFO"
    assert config.issuing_algorithm is Algorithm.HS256
    assert set(config.accepted_algorithms) == set(Algorithm)
