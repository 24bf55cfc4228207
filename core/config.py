"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TicketDesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret_key -> JWT_SECRET_KEY). Complex fields such as `users`
      are read as JSON.

  @model_validator(mode="after"): Runs cross-field validation once, after all
      fields are resolved. A missing signing key is a hard startup failure.

Security notes:
  Passwords in `users` are plaintext and compared as such. This is a known
  weakness of the configuration format; hashing is out of scope.

  JWT_SECRET_KEY shorter than 32 chars is rejected outright. HS256 signing
  relies on key entropy -- a short key weakens every issued token.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or tickets/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("ticketdesk.config")

_MIN_SECRET_KEY_LENGTH = 32


class ConfigurationError(ValueError):
    """Raised when a component is built from settings that cannot work."""


class UserEntry(BaseModel):
    """One statically configured login. Immutable at runtime."""

    username: str = Field(min_length=1)
    password: str
    role: str = Field(min_length=1)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except jwt_secret_key has a default so tests only need to set
    the key. The model_validator enforces the startup rules.

    USERS is JSON, e.g.:
        USERS='[{"username": "alice", "password": "pw1", "role": "Admin"}]'
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

    # ------------------------------------------------------------------
    # JWT
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured"; the validator raises.
    jwt_secret_key: str = ""
    jwt_issuer: str = ""
    jwt_audience: str = ""
    jwt_expiry_minutes: int = Field(default=60, gt=0)
    jwt_refresh_expiry_minutes: int = Field(default=1440, gt=0)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    users: list[UserEntry] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Tickets
    # ------------------------------------------------------------------

    tickets_csv_path: Path = Path("tickets.csv")

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = Field(default_factory=lambda: ["*"])
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost", "http://localhost:3000"])

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_startup_rules(self) -> "Settings":
        """Refuse to build settings the service cannot run with.

        - JWT_SECRET_KEY missing: fatal. There is no dev-mode fallback because
          tokens signed with a throwaway key would die with the process.
        - JWT_SECRET_KEY shorter than 32 characters: fatal.
        - Two users whose names differ only by case: fatal, since login
          matches usernames case-insensitively.
        """
        if not self.jwt_secret_key:
            raise ValueError(
                "JWT_SECRET_KEY is required. " "Set JWT_SECRET_KEY in your environment or .env file."
            )
        if len(self.jwt_secret_key) < _MIN_SECRET_KEY_LENGTH:
            raise ValueError(f"JWT_SECRET_KEY must be at least {_MIN_SECRET_KEY_LENGTH} characters.")

        seen: set[str] = set()
        for user in self.users:
            folded = user.username.casefold()
            if folded in seen:
                raise ValueError(f"Duplicate username in USERS: {user.username!r}")
            seen.add(folded)

        if not self.users:
            logger.warning("No users configured -- every login attempt will fail")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings()
    directly; tests that need other values construct Settings(...) explicitly
    and pass it to the component under test.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
