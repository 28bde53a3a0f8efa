"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for LibraryHub happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET).

  @model_validator(mode="after"): AES_KEY, ALGORITHM and JWT_SECRET are
      required. A missing value, or a cipher name we cannot build, is a hard
      startup failure.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or catalog/.
"""

import logging
import re
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("libraryhub.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'libraryhub.db'}"

# OpenSSL-style cipher names, e.g. "aes-256-cbc".
CIPHER_NAME_RE = re.compile(r"^aes-(128|192|256)-(cbc|ctr|cfb|ofb)$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    The three secrets default to the empty string, which is the sentinel for
    "not configured". The model_validator turns any empty one into a
    ValueError so the process refuses to start.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Crypto / auth (required)
    # ------------------------------------------------------------------

    aes_key: str = ""
    algorithm: str = ""
    jwt_secret: str = ""
    # Signs the session cookie. Falls back to jwt_secret when unset.
    cookie_secret: str = ""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list. An empty string yields no origins, never "*"."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def effective_cookie_secret(self) -> str:
        return self.cookie_secret or self.jwt_secret

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Refuse to start without AES_KEY, ALGORITHM and JWT_SECRET.

        ALGORITHM is normalized to lower case and must name an AES mode the
        crypto helper supports.
        """
        missing = [
            name.upper() for name in ("aes_key", "algorithm", "jwt_secret") if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                f"Environment variables not defined: {', '.join(missing)}. "
                "Set them in your environment or .env file."
            )
        self.algorithm = self.algorithm.strip().lower()
        if not CIPHER_NAME_RE.match(self.algorithm):
            raise ValueError(
                f"Unsupported ALGORITHM {self.algorithm!r}. Expected e.g. 'aes-256-cbc' "
                "(key size 128/192/256, mode cbc/ctr/cfb/ofb)."
            )
        if not self.cookie_secret:
            logger.info("COOKIE_SECRET not set; signing cookies with JWT_SECRET")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
