"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from environment
variables.  Defaults are provided for all fields.  A single instance is
built at startup by ``create_app`` and handed to every component that
needs it (database, credential manager, routers); nothing below the
application factory reads the environment on its own.
"""

import os
from dataclasses import dataclass


PLACEHOLDER_SECRET = "change_me"


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Events API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Signing secret for session tokens.  Tokens are HMAC-SHA256 signed and
    # carry a fixed lifetime in seconds.
    secret_key: str = os.getenv("SECRET_KEY", PLACEHOLDER_SECRET)
    token_lifetime: int = int(os.getenv("TOKEN_LIFETIME", "3600"))

    # Cost factor for PBKDF2 password hashing.  Stored digests record the
    # iteration count they were created with.
    password_hash_iterations: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "100000"))

    # Path to the SQLite database file.  Relative paths are resolved against
    # the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "events.db")
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))

    # Prefix under which the versioned routers are mounted, e.g. "/api/v1".
    api_prefix: str = os.getenv("API_PREFIX", "")
    default_page_limit: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))

    @property
    def uses_placeholder_secret(self) -> bool:
        return self.secret_key == PLACEHOLDER_SECRET
