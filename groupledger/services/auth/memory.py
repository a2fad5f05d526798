"""
In-Memory Auth Backend

A self-contained auth provider for local development and tests.
Passwords are stored as bcrypt hashes.
"""

from typing import Optional

import bcrypt

from groupledger.models.ledger import new_document_id
from groupledger.services.auth.interface import (
    AuthBackendInterface,
    AuthError,
    AuthErrorCode,
    AuthUser,
    OAuthCredential,
)


# Same floor the hosted providers enforce
PROVIDER_MIN_PASSWORD_LENGTH = 6
DEFAULT_BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


class _Account:
    def __init__(self, uid: str, email: str, password_hash: bytes):
        self.uid = uid
        self.email = email
        self.password_hash = password_hash
        self.disabled = False


class InMemoryAuthBackend(AuthBackendInterface):
    """Accounts live in a dict keyed by lower-cased email."""

    def __init__(self, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self._bcrypt_rounds = bcrypt_rounds
        self._accounts: dict[str, _Account] = {}
        self._federated: dict[tuple[str, str], AuthUser] = {}
        self._current: Optional[AuthUser] = None
        self.reset_requests: list[str] = []

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._current

    def disable_account(self, email: str) -> None:
        account = self._accounts.get(email.strip().lower())
        if account is None:
            raise AuthError(AuthErrorCode.USER_NOT_FOUND)
        account.disabled = True

    async def sign_up(self, email: str, password: str) -> AuthUser:
        key = email.strip().lower()
        if key in self._accounts:
            raise AuthError(AuthErrorCode.EMAIL_ALREADY_IN_USE)
        if len(password) < PROVIDER_MIN_PASSWORD_LENGTH:
            raise AuthError(AuthErrorCode.WEAK_PASSWORD)

        salt = bcrypt.gensalt(rounds=self._bcrypt_rounds)
        account = _Account(
            uid=new_document_id(),
            email=email.strip(),
            password_hash=bcrypt.hashpw(_password_bytes(password), salt),
        )
        self._accounts[key] = account
        self._current = AuthUser(uid=account.uid, email=account.email)
        return self._current

    async def sign_in(self, email: str, password: str) -> AuthUser:
        account = self._accounts.get(email.strip().lower())
        if account is None:
            raise AuthError(AuthErrorCode.USER_NOT_FOUND)
        if account.disabled:
            raise AuthError(AuthErrorCode.USER_DISABLED)
        if not bcrypt.checkpw(_password_bytes(password), account.password_hash):
            raise AuthError(AuthErrorCode.WRONG_PASSWORD)

        self._current = AuthUser(uid=account.uid, email=account.email)
        return self._current

    async def sign_in_with_credential(self, credential: OAuthCredential) -> AuthUser:
        if not credential.id_token.strip():
            raise AuthError(AuthErrorCode.INVALID_CREDENTIAL)

        key = (credential.provider_id, credential.id_token)
        user = self._federated.get(key)
        if user is None:
            user = AuthUser(
                uid=new_document_id(),
                email=credential.email or "",
                display_name=credential.display_name or "",
            )
            self._federated[key] = user
        self._current = user
        return user

    async def sign_out(self) -> None:
        self._current = None

    async def send_password_reset(self, email: str) -> None:
        if email.strip().lower() not in self._accounts:
            raise AuthError(AuthErrorCode.USER_NOT_FOUND)
        self.reset_requests.append(email.strip())
