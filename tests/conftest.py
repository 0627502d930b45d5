"""Global test fixtures and environment setup."""

from __future__ import annotations

import os


# Ensure a signing secret is available for tests that rely on default config.
os.environ.setdefault("TOKEN_SECRET", "test-suite-secret")
os.environ.setdefault("ENVIRONMENT", "development")
