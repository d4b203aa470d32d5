"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TicketDesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Only the application factory (api/main.py) calls get_settings(). Services
receive the values they need through their constructors, so nothing below the
HTTP layer depends on ambient configuration.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. token_secret -> TOKEN_SECRET).

  @model_validator(mode="after"): DEBUG-conditional TOKEN_SECRET handling.
      Dev mode generates a key with a warning, production mode refuses to
      start without one.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or tickets/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("ticketdesk.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'ticketdesk.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
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
    # Empty string is the sentinel for "not configured". The validator below
    # either generates a dev key or raises, so callers never see "".
    token_secret: str = ""

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    token_expire_seconds: int = 86400
    # SameSite=None cookies are rejected by browsers unless Secure is set.
    secure_cookies: bool = True
    # Collapse "unknown email" and "wrong password" into one 401.
    strict_login_errors: bool = False
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL
    db_timeout_seconds: float = 5.0

    # ------------------------------------------------------------------
    # Registration defaults
    # ------------------------------------------------------------------

    default_role: str = "ejecutor"
    default_internal_sec: str = "Guest"
    default_dependency: str = "General"
    seed_defaults: bool = True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    host: str = "127.0.0.1"
    port: int = 8000

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_token_secret(self) -> "Settings":
        """Enforce the TOKEN_SECRET policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start without TOKEN_SECRET.

        Both modes: reject keys shorter than 32 characters. HS256 signing
            relies on key entropy.
        """
        if not self.token_secret:
            if self.debug:
                self.token_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated TOKEN_SECRET. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "TOKEN_SECRET is required in production mode. "
                    "Set TOKEN_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.token_secret) < 32:
            raise ValueError("TOKEN_SECRET must be at least 32 characters.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
