"""Unit tests for auth/service.py -- AuthService registration and login.

Covers:
- The reference scenario (register Ana, log in, wrong password, duplicate)
- Duplicate email / login_name give AccountExistsError and write nothing
- Unknown identity and wrong password are indistinguishable
- Unknown identity still runs bcrypt (timing equalization)
- Concurrent registrations of one login_name: exactly one success
- Store failures propagate as StorageUnavailableError
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from unittest.mock import MagicMock, patch

import pytest

from auth.errors import (
    AccountExistsError,
    AuthenticationFailedError,
    DuplicateKeyError,
    InvalidInputError,
    StorageUnavailableError,
)
from auth.models import AccountSummary
from auth.service import AuthService
from auth.store import CredentialStore

# ---------------------------------------------------------------------------
# TestScenario
# ---------------------------------------------------------------------------


class TestScenario:
    def test_register_login_wrong_password_duplicate(self, service: AuthService) -> None:
        registered = service.register("Ana", "ana@x.com", "ana1", "secret123")
        assert isinstance(registered.id, int) and registered.id > 0
        assert registered.created_at

        logged_in = service.authenticate("ana1", "secret123")
        assert logged_in == registered

        with pytest.raises(AuthenticationFailedError):
            service.authenticate("ana1", "wrong")

        with pytest.raises(AccountExistsError):
            service.register("Ana Again", "other@x.com", "ana1", "secret123")


# ---------------------------------------------------------------------------
# TestRegister
# ---------------------------------------------------------------------------


class TestRegister:
    def test_returns_summary_without_secrets(self, service: AuthService) -> None:
        summary = service.register("Ana", "ana@x.com", "ana1", "secret123")
        assert isinstance(summary, AccountSummary)
        data = asdict(summary)
        assert set(data) == {"id", "display_name", "email", "login_name", "created_at"}
        assert "secret123" not in repr(summary)

    def test_password_is_hashed_in_store(self, service: AuthService, store: CredentialStore) -> None:
        service.register("Ana", "ana@x.com", "ana1", "secret123")
        stored = store.find_by_identity("ana1")
        assert stored.credential_hash != "secret123"
        assert stored.credential_hash.startswith("$2b$04$")

    def test_duplicate_email(self, service: AuthService, store: CredentialStore, ana) -> None:
        with pytest.raises(AccountExistsError):
            service.register("Other", "ana@x.com", "other", "pw")
        assert store.count() == 1

    def test_duplicate_login_name(self, service: AuthService, store: CredentialStore, ana) -> None:
        with pytest.raises(AccountExistsError):
            service.register("Other", "other@x.com", "ana1", "pw")
        assert store.count() == 1

    def test_duplicate_message_does_not_name_the_field(self, service: AuthService, ana) -> None:
        with pytest.raises(AccountExistsError) as by_email:
            service.register("Other", "ana@x.com", "other", "pw")
        with pytest.raises(AccountExistsError) as by_login:
            service.register("Other", "other@x.com", "ana1", "pw")
        assert by_email.value.message == by_login.value.message

    @pytest.mark.parametrize(
        "args",
        [
            ("", "ana@x.com", "ana1", "secret123"),
            ("Ana", "", "ana1", "secret123"),
            ("Ana", "ana@x.com", "", "secret123"),
            ("Ana", "ana@x.com", "ana1", ""),
            ("   ", "ana@x.com", "ana1", "secret123"),
            (None, "ana@x.com", "ana1", "secret123"),
            ("Ana", "ana@x.com", "ana1", None),
        ],
    )
    def test_invalid_input(self, service: AuthService, store: CredentialStore, args) -> None:
        with pytest.raises(InvalidInputError):
            service.register(*args)
        assert store.count() == 0

    def test_no_password_policy_beyond_non_empty(self, service: AuthService) -> None:
        summary = service.register("Ana", "ana@x.com", "ana1", "a")
        assert service.authenticate("ana1", "a") == summary

    def test_store_failure_propagates(self) -> None:
        store = MagicMock(spec=CredentialStore)
        store.insert.side_effect = StorageUnavailableError()
        with pytest.raises(StorageUnavailableError):
            AuthService(store, rounds=4).register("Ana", "ana@x.com", "ana1", "secret123")

    def test_duplicate_key_translated(self) -> None:
        store = MagicMock(spec=CredentialStore)
        store.insert.side_effect = DuplicateKeyError()
        with pytest.raises(AccountExistsError):
            AuthService(store, rounds=4).register("Ana", "ana@x.com", "ana1", "secret123")


# ---------------------------------------------------------------------------
# TestAuthenticate
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_login_by_email(self, service: AuthService, ana) -> None:
        assert service.authenticate("ana@x.com", "secret123") == ana

    def test_unknown_identity_and_wrong_password_are_indistinguishable(self, service: AuthService, ana) -> None:
        with pytest.raises(AuthenticationFailedError) as unknown:
            service.authenticate("nobody", "secret123")
        with pytest.raises(AuthenticationFailedError) as wrong:
            service.authenticate("ana1", "wrong")
        assert type(unknown.value) is type(wrong.value)
        assert unknown.value.code == wrong.value.code
        assert unknown.value.message == wrong.value.message

    def test_unknown_identity_still_runs_bcrypt(self, service: AuthService) -> None:
        with patch("auth.service.verify_password", return_value=False) as verify:
            with pytest.raises(AuthenticationFailedError):
                service.authenticate("nobody", "secret123")
        verify.assert_called_once_with("secret123", service._dummy_hash)

    def test_dummy_hash_uses_service_cost(self, service: AuthService) -> None:
        assert service._dummy_hash.startswith("$2b$04$")

    def test_identity_is_case_sensitive(self, service: AuthService, ana) -> None:
        with pytest.raises(AuthenticationFailedError):
            service.authenticate("ANA1", "secret123")

    @pytest.mark.parametrize("identity, password", [("", "secret123"), ("ana1", ""), ("  ", "x"), (None, "x")])
    def test_invalid_input(self, service: AuthService, ana, identity, password) -> None:
        with pytest.raises(InvalidInputError):
            service.authenticate(identity, password)

    def test_store_failure_propagates(self) -> None:
        store = MagicMock(spec=CredentialStore)
        store.find_by_identity.side_effect = StorageUnavailableError()
        with pytest.raises(StorageUnavailableError):
            AuthService(store, rounds=4).authenticate("ana1", "secret123")


# ---------------------------------------------------------------------------
# TestListSummaries
# ---------------------------------------------------------------------------


class TestListSummaries:
    def test_lists_registered_accounts(self, service: AuthService, ana) -> None:
        bob = service.register("Bob", "bob@x.com", "bob1", "hunter2")
        assert service.list_summaries() == [ana, bob]

    def test_never_contains_hash(self, service: AuthService, ana) -> None:
        for summary in service.list_summaries():
            assert "credential_hash" not in asdict(summary)
            assert "$2b$" not in repr(summary)


# ---------------------------------------------------------------------------
# TestConcurrentRegistration
# ---------------------------------------------------------------------------


class TestConcurrentRegistration:
    def test_same_login_name_yields_one_success(self, tmp_path) -> None:
        """N threads racing on one login_name: 1 success, N-1 AccountExistsError.

        Uses a file database so every thread gets its own connection and the
        UNIQUE constraint, not Python scheduling, decides the winner.
        """
        store = CredentialStore(f"sqlite:///{tmp_path / 'race.db'}")
        service = AuthService(store, rounds=4)
        n = 8

        def attempt(i: int) -> str:
            try:
                service.register(f"User {i}", f"user{i}@x.com", "racer", "secret123")
            except AccountExistsError:
                return "exists"
            return "ok"

        with ThreadPoolExecutor(max_workers=n) as pool:
            outcomes = list(pool.map(attempt, range(n)))

        assert outcomes.count("ok") == 1
        assert outcomes.count("exists") == n - 1
        assert store.count() == 1
        store.close()
