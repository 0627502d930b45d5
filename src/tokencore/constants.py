"""Shared constants for the token service."""

SERVICE_NAME = "tokencore"
CORRELATION_HEADER = "X-Correlation-Id"
TOKEN_TYPE = "JWT"
BEARER_PREFIX = "Bearer "
DEV_FALLBACK_SECRET = "development-only-secret"
