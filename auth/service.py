"""
auth/service.py -- Registration and login rules on top of CredentialStore.

AuthService owns every piece of password handling. The store only ever sees
bcrypt hashes; the caller only ever sees AccountSummary objects or one of the
caller-facing errors in auth/errors.py.

Enumeration resistance:
  - Duplicate email and duplicate login_name raise the same AccountExistsError
    with one combined message.
  - Unknown identity and wrong password raise the same
    AuthenticationFailedError. Unknown identities still run bcrypt, against a
    dummy hash of the same cost, so response time does not reveal whether
    the identity exists.

Concurrency:
  No locks. Hashing happens before the store call and outside any
  transaction; the store's UNIQUE constraints settle registration races.

Layer rule: no imports from api/ or core/. Configuration arrives through the
constructor.
"""

from __future__ import annotations

import logging

from auth.errors import (
    AccountExistsError,
    AuthenticationFailedError,
    DuplicateKeyError,
    InvalidInputError,
)
from auth.models import Account, AccountSummary
from auth.passwords import hash_password, verify_password
from auth.store import CredentialStore

logger = logging.getLogger("userauth.auth")


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _has_password(value) -> bool:
    # Passwords are not stripped: whitespace is a legitimate password character.
    return isinstance(value, str) and value != ""


def _to_summary(account: Account) -> AccountSummary:
    return AccountSummary(
        id=account.id,
        display_name=account.display_name,
        email=account.email,
        login_name=account.login_name,
        created_at=account.created_at,
    )


class AuthService:
    """Registration and authentication for one CredentialStore.

    Usage:
        service = AuthService(CredentialStore(), rounds=12)
        summary = service.register("Ana", "ana@x.com", "ana1", "secret123")
        summary = service.authenticate("ana1", "secret123")
    """

    def __init__(self, store: CredentialStore, rounds: int = 12) -> None:
        self.store = store
        self.rounds = rounds
        # Timing equalization dummy hash. Computed once, at the same cost as
        # real hashes, so a miss costs the same bcrypt work as a hit.
        self._dummy_hash = hash_password("userauth_timing_dummy", rounds=rounds)

    def register(self, display_name: str, email: str, login_name: str, password: str) -> AccountSummary:
        """Create an account and return its non-secret projection.

        Raises:
            InvalidInputError: any field missing or empty.
            AccountExistsError: email or login_name already registered.
            StorageUnavailableError: the store could not be reached.
        """
        if any(_is_blank(v) for v in (display_name, email, login_name)) or not _has_password(password):
            raise InvalidInputError()

        credential_hash = hash_password(password, rounds=self.rounds)
        try:
            account = self.store.insert(display_name, email, login_name, credential_hash)
        except DuplicateKeyError as exc:
            logger.info("Registration rejected: duplicate email or login name")
            raise AccountExistsError() from exc

        logger.info("Registered account id=%s login_name=%s", account.id, account.login_name)
        return _to_summary(account)

    def authenticate(self, identity: str, password: str) -> AccountSummary:
        """Verify a password for the account matching identity.

        identity is compared against both login_name and email.

        Raises:
            InvalidInputError: identity or password missing or empty.
            AuthenticationFailedError: unknown identity or wrong password.
            StorageUnavailableError: the store could not be reached.
        """
        if _is_blank(identity) or not _has_password(password):
            raise InvalidInputError("Identity and password are required.")

        account = self.store.find_by_identity(identity)
        if account is None:
            # Equalize timing -- do NOT return before running bcrypt.
            verify_password(password, self._dummy_hash)
            logger.info("Login failed")
            raise AuthenticationFailedError()
        if not verify_password(password, account.credential_hash):
            logger.info("Login failed")
            raise AuthenticationFailedError()

        logger.info("Login succeeded for account id=%s", account.id)
        return _to_summary(account)

    def list_summaries(self) -> list[AccountSummary]:
        """Return every account's non-secret projection, ordered by id."""
        return self.store.list_summaries()
