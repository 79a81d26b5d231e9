"""
Application configuration using environment variables.
"""
import re
from datetime import timedelta
from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import List

INSECURE_SECRET = "your-super-secret-jwt-key-change-this-in-production"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Blog API"
    debug: bool = False
    environment: str = "development"
    port: int = 5000

    # Security
    jwt_secret: str = INSECURE_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_in: str = "7d"

    # Database
    database_url: str = "sqlite:///./blog.db"

    # CORS
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Rate limiting
    register_rate_limit: str = "5/minute"
    login_rate_limit: str = "10/minute"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def token_lifetime(self) -> timedelta:
        return parse_duration(self.jwt_expires_in)


def parse_duration(value: str) -> timedelta:
    """Parse ``7d``, ``12h``, ``30m``, ``45s`` or a bare number of seconds."""
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Validate secret key on startup
settings = get_settings()
if settings.environment == "production" and settings.jwt_secret == INSECURE_SECRET:
    raise ValueError(
        "JWT_SECRET must be set in production! "
        "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
    )
