"""Security helpers for the token service."""

from .auth import AuthContext, AuthError, TokenValidator, auth_dependency

__all__ = ["AuthContext", "AuthError", "TokenValidator", "auth_dependency"]
