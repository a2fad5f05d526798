"""Authentication services package."""

from groupledger.services.auth.interface import (
    AUTH_ERROR_MESSAGES,
    AuthBackendInterface,
    AuthError,
    AuthErrorCode,
    AuthUser,
    OAuthCredential,
    auth_error_message,
    normalize_error_code,
)
from groupledger.services.auth.memory import InMemoryAuthBackend

__all__ = [
    "AUTH_ERROR_MESSAGES",
    "AuthBackendInterface",
    "AuthError",
    "AuthErrorCode",
    "AuthUser",
    "InMemoryAuthBackend",
    "OAuthCredential",
    "auth_error_message",
    "normalize_error_code",
]
