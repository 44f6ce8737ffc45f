"""Runtime configuration for the notes backend.

Values come from environment variables; a ``.env`` file in the working
directory is loaded first if present.
"""
import logging
import os
import secrets
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class Settings(BaseModel):
    """Configuration for the notes API."""

    env: str = Field(default_factory=lambda: os.getenv("ENV", "dev"))

    # Auth
    secret_key: str = Field(
        default_factory=lambda: os.getenv("SECRET_KEY") or secrets.token_urlsafe(32)
    )
    access_token_expire_minutes: int = Field(
        default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))
    )
    reset_code_ttl_minutes: int = Field(
        default_factory=lambda: int(os.getenv("RESET_CODE_TTL_MINUTES", "10"))
    )

    # Storage
    database_url: str = Field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./notes.db")
    )

    # CORS
    frontend_origin: str = Field(
        default_factory=lambda: os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
    )

    # Google OAuth
    google_client_id: Optional[str] = Field(default_factory=lambda: os.getenv("GOOGLE_CLIENT_ID"))
    google_client_secret: Optional[str] = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLIENT_SECRET")
    )
    google_redirect_uri: str = Field(
        default_factory=lambda: os.getenv(
            "GOOGLE_REDIRECT_URI", "http://localhost:3000/auth/google/callback"
        )
    )

    # Mail; console delivery when SMTP_HOST is unset
    smtp_host: Optional[str] = Field(default_factory=lambda: os.getenv("SMTP_HOST"))
    smtp_port: int = Field(default_factory=lambda: int(os.getenv("SMTP_PORT", "587")))
    smtp_user: Optional[str] = Field(default_factory=lambda: os.getenv("SMTP_USER"))
    smtp_password: Optional[str] = Field(default_factory=lambda: os.getenv("SMTP_PASSWORD"))
    mail_from: str = Field(
        default_factory=lambda: os.getenv("MAIL_FROM", "no-reply@notetaker.local")
    )

    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


# PUBLIC_INTERFACE
@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for the service."""
    level_name = level or get_settings().log_level
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
