"""
Configuration helpers for the storefront backend.

Services and routers read configuration through ``get_settings()`` instead of
fetching ``os.environ`` directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

ONE_YEAR_SECONDS = 365 * 24 * 60 * 60


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    frontend_url: str
    database_url: str
    app_secret: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    password_reset_ttl: int
    session_cookie_max_age: int
    currency: str
    stripe_secret_key: str
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:7777").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", ""),
        app_secret=os.getenv("APP_SECRET", ""),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")),
        password_reset_ttl=_int(os.getenv("PASSWORD_RESET_TTL", "3600"), 3600),
        session_cookie_max_age=_int(os.getenv("SESSION_COOKIE_MAX_AGE", str(ONE_YEAR_SECONDS)), ONE_YEAR_SECONDS),
        currency=(os.getenv("CURRENCY") or "usd").lower(),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", ""),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


def require_app_secret() -> str:
    """Return the session signing secret, failing loudly when it is missing."""
    secret = get_settings().app_secret
    if not secret:
        raise RuntimeError("APP_SECRET must be configured to sign session tokens.")
    return secret
