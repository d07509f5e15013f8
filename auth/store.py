"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper. CredentialStore is the repository;
_row_to_account / _row_to_summary are the mappers. Service and route code
never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  list_summaries() selects the non-secret columns explicitly -- the hash
  column is never read on that path.

Uniqueness:
  UNIQUE(email) and UNIQUE(login_name) are enforced by the database, not by a
  check-then-insert in Python. Two concurrent inserts with the same key can
  therefore never both commit; the loser gets IntegrityError, which insert()
  turns into DuplicateKeyError. The exception class is the discriminant --
  driver message text is never inspected.

IDs:
  sqlite_autoincrement=True makes SQLite use AUTOINCREMENT, so an id is never
  handed out twice, even after the highest row is gone.

DB path: auth/userauth.db unless DATABASE_URL says otherwise.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    case,
    create_engine,
    event,
    func,
    or_,
    select,
    text,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from auth.errors import DuplicateKeyError, StorageUnavailableError
from auth.models import Account, AccountSummary

logger = logging.getLogger("userauth.store")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'userauth.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("display_name", Text, nullable=False),
    Column("email", Text, nullable=False, unique=True),
    Column("login_name", Text, nullable=False, unique=True),
    Column("credential_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    sqlite_autoincrement=True,
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so logins can read while a registration writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_sqlite_memory(db_url: str) -> bool:
    """True for sqlite://, sqlite:///:memory: and file:...?mode=memory URLs."""
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return False
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for Account records.

    Usage:
        store = CredentialStore()
        account = store.insert("Ana", "ana@x.com", "ana1", hash_password("secret123"))
        found = store.find_by_identity("ana1")
        store.close()

    Thread safety: the store holds no Python-level lock. Each call checks out
    its own pooled connection, so one instance can be shared by every
    request-handling thread.

    In-memory SQLite URLs use StaticPool: one connection, and so one
    database, shared by every thread. The default per-thread pool would give
    each worker thread its own empty database.
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, busy_timeout: float = 30.0) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = busy_timeout
        engine_kwargs: dict = {}
        if _is_sqlite_memory(db_url):
            engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.error("Could not create account schema: %s", type(exc).__name__)
            raise StorageUnavailableError() from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, display_name: str, email: str, login_name: str, credential_hash: str) -> Account:
        """Persist a new account and return it exactly as stored.

        The INSERT and the read-back run in one transaction (engine.begin()),
        so a failure at any point rolls back and leaves no partial row.

        Raises:
            ValueError: any argument is not a non-empty string.
            DuplicateKeyError: email or login_name is already taken.
            StorageUnavailableError: any other database failure, including
                a busy timeout while waiting for the writer lock.
        """
        fields = {
            "display_name": display_name,
            "email": email,
            "login_name": login_name,
            "credential_hash": credential_hash,
        }
        for name, value in fields.items():
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string")

        try:
            with self.engine.begin() as conn:
                result = conn.execute(_accounts.insert().values(created_at=_now_iso(), **fields))
                account_id = result.inserted_primary_key[0]
                row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        except IntegrityError as exc:
            raise DuplicateKeyError() from exc
        except SQLAlchemyError as exc:
            logger.error("Account insert failed: %s", type(exc).__name__)
            raise StorageUnavailableError() from exc
        return _row_to_account(row)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_identity(self, identity: str) -> Account | None:
        """Look up an account whose login_name OR email equals identity.

        Exact, case-sensitive match. Returns None if nothing matches.

        email and login_name are unique within their own column only, so one
        identity can match account A by login_name and account B by email.
        The login_name match wins; remaining ties go to the lowest id.
        """
        login_match = _accounts.c.login_name == identity
        stmt = (
            select(_accounts)
            .where(or_(login_match, _accounts.c.email == identity))
            .order_by(case((login_match, 0), else_=1), _accounts.c.id)
            .limit(1)
        )
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).fetchone()
        except SQLAlchemyError as exc:
            logger.error("Account lookup failed: %s", type(exc).__name__)
            raise StorageUnavailableError() from exc
        return _row_to_account(row) if row is not None else None

    def list_summaries(self) -> list[AccountSummary]:
        """Return every account's non-secret fields, ordered by ascending id."""
        stmt = select(
            _accounts.c.id,
            _accounts.c.display_name,
            _accounts.c.email,
            _accounts.c.login_name,
            _accounts.c.created_at,
        ).order_by(_accounts.c.id)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as exc:
            logger.error("Account listing failed: %s", type(exc).__name__)
            raise StorageUnavailableError() from exc
        return [_row_to_summary(r) for r in rows]

    def count(self) -> int:
        """Return the number of stored accounts."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(select(func.count()).select_from(_accounts)).scalar()
        except SQLAlchemyError as exc:
            raise StorageUnavailableError() from exc
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Never raises."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        display_name=row.display_name,
        email=row.email,
        login_name=row.login_name,
        credential_hash=row.credential_hash,
        created_at=row.created_at,
    )


def _row_to_summary(row) -> AccountSummary:
    return AccountSummary(
        id=row.id,
        display_name=row.display_name,
        email=row.email,
        login_name=row.login_name,
        created_at=row.created_at,
    )
