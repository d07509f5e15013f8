"""
auth/errors.py -- Typed error kinds for the credential lifecycle.

Every exception carries a machine-readable `code` and a `message` that is
safe to show to an external caller. The HTTP layer maps classes to status
codes; it never inspects message text.

Store-internal kinds:
  DuplicateKeyError        email or login_name already taken
  StorageUnavailableError  any other database failure
  (NotFound is expressed as a None return from find_by_identity.)

Caller-facing kinds raised by AuthService:
  InvalidInputError          missing or empty field
  AccountExistsError         translated from DuplicateKeyError
  AuthenticationFailedError  unknown identity OR wrong password
  StorageUnavailableError    passed through unchanged

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all credential-service errors."""

    code: str = "auth_error"
    message: str = "Authentication service error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInputError(AuthError):
    code = "invalid_input"
    message = "All fields are required."


class DuplicateKeyError(AuthError):
    """Raised by CredentialStore.insert when a UNIQUE constraint fires."""

    code = "duplicate_key"
    message = "Duplicate key."


class AccountExistsError(AuthError):
    # Combined message on purpose: never say which field collided.
    code = "account_exists"
    message = "Email or login name already exists."


class AuthenticationFailedError(AuthError):
    code = "bad_credentials"
    message = "Invalid login name, email or password."


class StorageUnavailableError(AuthError):
    code = "storage_unavailable"
    message = "Credential storage is unavailable."
