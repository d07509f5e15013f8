"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for userauth happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. bcrypt_rounds -> BCRYPT_ROUNDS). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Used to keep low bcrypt costs (the ones
      tests use) out of production.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("userauth.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parents[1] / 'auth' / 'userauth.db'}"

# Below this cost bcrypt verifies in well under 100ms on commodity hardware.
_MIN_PRODUCTION_ROUNDS = 10


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 3000

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL
    # SQLite busy timeout. Bounds how long an insert waits on a writer lock
    # before failing with StorageUnavailableError.
    db_busy_timeout_seconds: float = Field(default=30.0, gt=0)

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    # GET /api/v1/accounts lists every registered account. Off by default.
    expose_account_list: bool = False

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_bcrypt_rounds(self) -> "Settings":
        """Refuse a weak bcrypt cost outside development mode.

        Dev mode (DEBUG=true): any cost in 4..31 is accepted. Costs below 10
            log a warning -- test suites use 4 so hashing stays fast.

        Production mode: BCRYPT_ROUNDS below 10 is a startup failure.
        """
        if self.bcrypt_rounds < _MIN_PRODUCTION_ROUNDS:
            if not self.debug:
                raise ValueError(
                    f"BCRYPT_ROUNDS must be at least {_MIN_PRODUCTION_ROUNDS} in production mode. "
                    "To use a lower cost for local testing, set DEBUG=true."
                )
            logger.warning("Using bcrypt cost %d. Only acceptable in development.", self.bcrypt_rounds)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
