"""
Runtime configuration for statesync.

All settings come from environment variables; secrets go through
utils.secrets so they can also be mounted as files.
"""
import os
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List, Optional

from . import __version__
from .utils.secrets import get_secret

logger = logging.getLogger(__name__)


def _database_url_from_env() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    # Compose a PostgreSQL URL when the individual POSTGRES_* vars are present
    if os.getenv("POSTGRES_HOST"):
        host = os.getenv("POSTGRES_HOST", "localhost")
        port = os.getenv("POSTGRES_PORT", "5432")
        db = os.getenv("POSTGRES_DB", "statesync")
        user = os.getenv("POSTGRES_USER", "statesync")
        password = get_secret("POSTGRES_PASSWORD", "")
        return f"postgresql://{user}:{password}@{host}:{port}/{db}"

    return "sqlite:///./statesync.db"


@dataclass
class Settings:
    """Application settings."""
    database_url: str = "sqlite:///./statesync.db"
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24
    totp_issuer: str = "statesync"
    totp_valid_window: int = 1
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    app_env: str = "production"
    app_version: str = __version__

    @property
    def jwt_expires_in(self) -> timedelta:
        return timedelta(hours=self.jwt_expire_hours)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=_database_url_from_env(),
            jwt_secret=get_secret("JWT_SECRET"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expire_hours=int(os.getenv("JWT_EXPIRE_HOURS", "24")),
            totp_issuer=os.getenv("TOTP_ISSUER", "statesync"),
            totp_valid_window=int(os.getenv("TOTP_VALID_WINDOW", "1")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            app_env=os.getenv("APP_ENV", "production"),
            app_version=os.getenv("APP_VERSION", __version__),
        )

    def validate(self) -> None:
        """
        Check settings required to serve requests.

        Raises:
            RuntimeError: If the token signing key is missing.
        """
        if not self.jwt_secret:
            raise RuntimeError(
                "JWT_SECRET is not configured. Set JWT_SECRET or JWT_SECRET_FILE."
            )
