"""Tests for the auth backend and AuthFlow."""

import pytest

from conftest import run

from groupledger.models.audit import AuditEventType
from groupledger.services.auth import (
    AuthError,
    AuthErrorCode,
    InMemoryAuthBackend,
    OAuthCredential,
    auth_error_message,
    normalize_error_code,
)


class TestErrorCodes:
    """Provider code normalization and messages."""

    @pytest.mark.parametrize("raw,expected", [
        ("auth/wrong-password", AuthErrorCode.WRONG_PASSWORD),
        ("WRONG_PASSWORD", AuthErrorCode.WRONG_PASSWORD),
        ("email-already-in-use", AuthErrorCode.EMAIL_ALREADY_IN_USE),
        ("auth/network-request-failed", AuthErrorCode.NETWORK_ERROR),
        ("something-new", AuthErrorCode.UNKNOWN),
    ])
    def test_normalize(self, raw, expected):
        """Test mapping raw provider codes."""
        assert normalize_error_code(raw) == expected

    def test_every_code_has_a_message(self):
        """Test that no code falls through to an empty message."""
        for code in AuthErrorCode:
            assert auth_error_message(code)

    def test_auth_error_user_message(self):
        """Test that the user message ignores provider detail."""
        error = AuthError(AuthErrorCode.WRONG_PASSWORD, detail="INVALID_PASSWORD 400")
        assert str(error) == "INVALID_PASSWORD 400"
        assert error.user_message == auth_error_message(AuthErrorCode.WRONG_PASSWORD)


class TestInMemoryAuthBackend:
    """Tests for the local auth backend."""

    def test_sign_up_then_sign_in(self):
        """Test that the same uid comes back on sign-in."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        created = run(backend.sign_up("alice@example.com", "secret123"))
        run(backend.sign_out())
        assert backend.current_user is None

        signed_in = run(backend.sign_in("ALICE@example.com", "secret123"))
        assert signed_in.uid == created.uid
        assert backend.current_user == signed_in

    def test_password_stored_as_bcrypt_hash(self):
        """Test that only a bcrypt hash of the password is kept."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        run(backend.sign_up("alice@example.com", "secret123"))
        stored = backend._accounts["alice@example.com"].password_hash
        assert stored.startswith(b"$2b$04$")
        assert b"secret123" not in stored

    def test_long_password_round_trip(self):
        """Test that passwords past the bcrypt byte limit still sign in."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        password = "ü" * 60
        run(backend.sign_up("alice@example.com", password))
        run(backend.sign_out())
        assert run(backend.sign_in("alice@example.com", password)).email == "alice@example.com"

    def test_duplicate_email(self):
        """Test that an email can only be registered once."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        run(backend.sign_up("alice@example.com", "secret123"))
        with pytest.raises(AuthError) as exc:
            run(backend.sign_up("alice@example.com", "other123"))
        assert exc.value.code == AuthErrorCode.EMAIL_ALREADY_IN_USE

    def test_weak_password(self):
        """Test the provider-side password floor."""
        with pytest.raises(AuthError) as exc:
            run(InMemoryAuthBackend(bcrypt_rounds=4).sign_up("alice@example.com", "123"))
        assert exc.value.code == AuthErrorCode.WEAK_PASSWORD

    def test_wrong_password(self):
        """Test that a wrong password is rejected."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        run(backend.sign_up("alice@example.com", "secret123"))
        with pytest.raises(AuthError) as exc:
            run(backend.sign_in("alice@example.com", "secret124"))
        assert exc.value.code == AuthErrorCode.WRONG_PASSWORD

    def test_unknown_user(self):
        """Test sign-in for an unregistered email."""
        with pytest.raises(AuthError) as exc:
            run(InMemoryAuthBackend(bcrypt_rounds=4).sign_in("bob@example.com", "secret123"))
        assert exc.value.code == AuthErrorCode.USER_NOT_FOUND

    def test_disabled_account(self):
        """Test that disabled accounts can't sign in."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        run(backend.sign_up("alice@example.com", "secret123"))
        backend.disable_account("alice@example.com")
        with pytest.raises(AuthError) as exc:
            run(backend.sign_in("alice@example.com", "secret123"))
        assert exc.value.code == AuthErrorCode.USER_DISABLED

    def test_credential_sign_in_is_stable(self):
        """Test that the same provider token maps to the same uid."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        credential = OAuthCredential(provider_id="apple.com", id_token="tok-1")
        first = run(backend.sign_in_with_credential(credential))
        second = run(backend.sign_in_with_credential(credential))
        assert first.uid == second.uid

    def test_password_reset(self):
        """Test that reset requests are recorded for known emails only."""
        backend = InMemoryAuthBackend(bcrypt_rounds=4)
        run(backend.sign_up("alice@example.com", "secret123"))
        run(backend.send_password_reset("alice@example.com"))
        assert backend.reset_requests == ["alice@example.com"]

        with pytest.raises(AuthError):
            run(backend.send_password_reset("bob@example.com"))


class TestAuthFlow:
    """Tests for AuthFlow."""

    def test_sign_up_writes_profile(self, auth_flow, store):
        """Test that sign-up stores users/{uid}."""
        assert run(auth_flow.sign_up("alice@example.com", "secret123", "Alice"))
        assert auth_flow.is_authenticated
        assert auth_flow.last_error is None

        doc = run(store.get_document(f"users/{auth_flow.user.id}"))
        assert doc.data["name"] == "Alice"
        assert doc.data["email"] == "alice@example.com"

    def test_sign_in_reads_profile(self, auth_flow):
        """Test that sign-in loads the stored profile."""
        run(auth_flow.sign_up("alice@example.com", "secret123", "Alice"))
        run(auth_flow.sign_out())
        assert not auth_flow.is_authenticated

        assert run(auth_flow.sign_in("alice@example.com", "secret123"))
        assert auth_flow.user.name == "Alice"

    def test_validation_blocks_backend_call(self, auth_flow, auth_backend):
        """Test that invalid input never reaches the backend."""
        assert not run(auth_flow.sign_up("not-an-email", "secret123", "Alice"))
        assert auth_flow.last_error == "Please enter a valid email address"
        assert run(auth_flow.sign_in("not-an-email", "x")) is False
        assert auth_backend.current_user is None

    def test_backend_error_message(self, auth_flow, audit_storage):
        """Test that auth failures become user messages and audit events."""
        assert not run(auth_flow.sign_in("bob@example.com", "secret123"))
        assert auth_flow.last_error == auth_error_message(AuthErrorCode.USER_NOT_FOUND)
        assert audit_storage.events[-1].event_type == AuditEventType.AUTH_FAILED

    def test_missing_profile(self, auth_flow, auth_backend):
        """Test sign-in when the account exists but the profile doc doesn't."""
        run(auth_backend.sign_up("carol@example.com", "secret123"))
        assert not run(auth_flow.sign_in("carol@example.com", "secret123"))
        assert "User not found" in auth_flow.last_error
        assert not auth_flow.is_authenticated

    def test_credential_sign_in(self, auth_flow, store):
        """Test federated sign-in stores the provider's name."""
        credential = OAuthCredential(
            provider_id="apple.com",
            id_token="tok-1",
            display_name="Dana",
            email="dana@example.com",
        )
        assert run(auth_flow.sign_in_with_credential(credential))
        doc = run(store.get_document(f"users/{auth_flow.user.id}"))
        assert doc.data["name"] == "Dana"

    def test_reset_password(self, auth_flow, auth_backend, audit_storage):
        """Test password reset hand-off."""
        run(auth_flow.sign_up("alice@example.com", "secret123", "Alice"))
        assert run(auth_flow.reset_password("alice@example.com"))
        assert auth_backend.reset_requests == ["alice@example.com"]
        assert audit_storage.events[-1].event_type == AuditEventType.PASSWORD_RESET_REQUESTED
