"""
Authentication Backend Interface

Sign-in, sign-up and password reset are delegated to an auth provider.
The only local logic is input validation (see groupledger.validation)
and mapping provider error codes to messages a user can act on.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AuthErrorCode(str, Enum):
    """Provider-independent auth error codes."""
    INVALID_EMAIL = "invalid_email"
    WRONG_PASSWORD = "wrong_password"
    USER_NOT_FOUND = "user_not_found"
    USER_DISABLED = "user_disabled"
    EMAIL_ALREADY_IN_USE = "email_already_in_use"
    WEAK_PASSWORD = "weak_password"
    INVALID_CREDENTIAL = "invalid_credential"
    TOO_MANY_REQUESTS = "too_many_requests"
    NETWORK_ERROR = "network_error"
    NOT_SIGNED_IN = "not_signed_in"
    UNKNOWN = "unknown"


AUTH_ERROR_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_EMAIL: "The email address is badly formatted.",
    AuthErrorCode.WRONG_PASSWORD: "The password is incorrect. Please try again.",
    AuthErrorCode.USER_NOT_FOUND: "No account exists for this email address.",
    AuthErrorCode.USER_DISABLED: "This account has been disabled.",
    AuthErrorCode.EMAIL_ALREADY_IN_USE: "An account already exists for this email address.",
    AuthErrorCode.WEAK_PASSWORD: "The password is too weak. Please choose a longer password.",
    AuthErrorCode.INVALID_CREDENTIAL: "The sign-in credential is invalid or has expired.",
    AuthErrorCode.TOO_MANY_REQUESTS: "Too many attempts. Please wait a moment and try again.",
    AuthErrorCode.NETWORK_ERROR: "Network error. Please check your connection and try again.",
    AuthErrorCode.NOT_SIGNED_IN: "You need to sign in first.",
    AuthErrorCode.UNKNOWN: "Something went wrong. Please try again.",
}

# Vendor codes seen in the wild, mapped onto ours
_VENDOR_CODE_ALIASES: dict[str, AuthErrorCode] = {
    "auth/invalid-email": AuthErrorCode.INVALID_EMAIL,
    "auth/wrong-password": AuthErrorCode.WRONG_PASSWORD,
    "auth/user-not-found": AuthErrorCode.USER_NOT_FOUND,
    "auth/user-disabled": AuthErrorCode.USER_DISABLED,
    "auth/email-already-in-use": AuthErrorCode.EMAIL_ALREADY_IN_USE,
    "auth/weak-password": AuthErrorCode.WEAK_PASSWORD,
    "auth/invalid-credential": AuthErrorCode.INVALID_CREDENTIAL,
    "auth/too-many-requests": AuthErrorCode.TOO_MANY_REQUESTS,
    "auth/network-request-failed": AuthErrorCode.NETWORK_ERROR,
}


def auth_error_message(code: AuthErrorCode) -> str:
    """User-facing message for an auth error code."""
    return AUTH_ERROR_MESSAGES.get(code, AUTH_ERROR_MESSAGES[AuthErrorCode.UNKNOWN])


def normalize_error_code(raw: str) -> AuthErrorCode:
    """
    Map a raw provider code onto AuthErrorCode.

    Accepts our own values ("wrong_password"), vendor codes
    ("auth/wrong-password") and SCREAMING_CASE ("WRONG_PASSWORD").
    """
    value = raw.strip()
    if value in _VENDOR_CODE_ALIASES:
        return _VENDOR_CODE_ALIASES[value]
    normalized = value.lower().replace("auth/", "").replace("-", "_")
    try:
        return AuthErrorCode(normalized)
    except ValueError:
        return AuthErrorCode.UNKNOWN


class AuthError(Exception):
    """An auth provider call failed."""

    def __init__(self, code: AuthErrorCode, detail: Optional[str] = None):
        self.code = code
        self.detail = detail
        super().__init__(detail or auth_error_message(code))

    @property
    def user_message(self) -> str:
        return auth_error_message(self.code)


class AuthUser(BaseModel):
    """What the auth provider knows about a signed-in user."""

    uid: str = Field(..., min_length=1)
    email: str = ""
    display_name: str = ""


class OAuthCredential(BaseModel):
    """
    A token already obtained from an identity provider.

    Obtaining the token (and its nonce) is the platform's job; we only
    hand it to the auth backend.
    """

    provider_id: str = Field(..., min_length=1, description="e.g. 'apple.com'")
    id_token: str = Field(..., min_length=1)
    raw_nonce: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None


class AuthBackendInterface(ABC):
    """
    Abstract interface for the auth provider.

    Implementations raise AuthError for every failure.
    """

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AuthUser:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser:
        pass

    @abstractmethod
    async def sign_in_with_credential(self, credential: OAuthCredential) -> AuthUser:
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def send_password_reset(self, email: str) -> None:
        pass

    @property
    @abstractmethod
    def current_user(self) -> Optional[AuthUser]:
        """The signed-in user, if any."""
        pass
