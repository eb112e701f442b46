"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for CoverDesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode (DEBUG=true) generates a signing
      key with a warning; production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies on
  key entropy -- a short key makes HS256 tokens forgeable by brute force.

  The key is read once per process. Rotating it invalidates every outstanding
  session token; there is no migration path.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
audit/, or client/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("coverdesk.config")


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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Sessions and passwords
    # ------------------------------------------------------------------

    # Tokens live for one hour. There is no refresh -- expiry forces re-login.
    token_expire_seconds: int = Field(default=3600, gt=0)
    # bcrypt cost factor. 10 keeps verification in the tens of milliseconds.
    bcrypt_rounds: int = Field(default=10, ge=4, le=16)

    # ------------------------------------------------------------------
    # Persistence (empty string = SQLite file beside the store module)
    # ------------------------------------------------------------------

    auth_db_url: str = ""
    audit_db_url: str = ""

    # ------------------------------------------------------------------
    # Registration and rate limiting
    # ------------------------------------------------------------------

    registration_enabled: bool = True
    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    register_rate_limit: str = "5/minute"

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:4200", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------

    # Recorded as the origin address when the real client address is unknown.
    audit_default_origin: str = "127.0.0.1"

    # ------------------------------------------------------------------
    # Client session restoration
    # ------------------------------------------------------------------

    api_base_url: str = "http://localhost:8000/api/v1"
    session_restore_retries: int = Field(default=2, ge=0)
    session_restore_delay: float = Field(default=1.0, ge=0)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    All modules should call get_settings() rather than constructing Settings()
    directly. In tests: call get_settings.cache_clear() between test cases if
    you need to inject different environment variables.
    """
    return Settings()
