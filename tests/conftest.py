"""
tests/conftest.py -- Shared test fixtures for userauth.

This module provides:
  - store / service: in-memory CredentialStore and an AuthService on top of it
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient backed by an isolated in-memory store

TestClient runs sync route handlers in a thread pool. That works against a
plain in-memory URL because CredentialStore keeps one connection for it.

DEBUG and BCRYPT_ROUNDS must be set before any project import so
get_settings() accepts the fast test cost.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import. Cost 4 keeps bcrypt fast in tests;
# the Settings validator only allows it when DEBUG is true.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import CredentialStore

TEST_ROUNDS = 4


# ---------------------------------------------------------------------------
# Store / service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[CredentialStore, None, None]:
    """Fresh in-memory CredentialStore per test."""
    s = CredentialStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: CredentialStore) -> AuthService:
    return AuthService(store, rounds=TEST_ROUNDS)


@pytest.fixture
def ana(service: AuthService):
    """The reference account: Ana / ana@x.com / ana1 / secret123."""
    return service.register("Ana", "ana@x.com", "ana1", "secret123")


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: CredentialStore, service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    The store is owned by the fixture, so the test lifespan does not close it.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, service) for API integration tests.

    One in-memory database per test module. The store gives an in-memory URL
    a single shared connection, so the TestClient worker threads all see it.
    """
    store = CredentialStore("sqlite://")
    service = AuthService(store, rounds=TEST_ROUNDS)
    app.router.lifespan_context = _patch_lifespan(store, service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, service

    store.close()
