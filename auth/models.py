"""
auth/models.py -- Domain dataclasses for credential entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own the
domain shape; the store and service do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Account:
    """One registered user as stored by CredentialStore.

    credential_hash is a bcrypt string ($2b$<cost>$<salt><digest>). It is
    excluded from repr() so an Account that lands in a log line or traceback
    never prints it.

    id and created_at are assigned by the store on insert and never change.
    """

    display_name: str
    email: str
    login_name: str
    credential_hash: str = field(repr=False)
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class AccountSummary:
    """Non-secret projection of an Account. Safe to return to callers."""

    id: int
    display_name: str
    email: str
    login_name: str
    created_at: str
