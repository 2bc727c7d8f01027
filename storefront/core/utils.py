"""
Utility helpers shared across routers/services.
"""

from urllib.parse import urlencode
from typing import Optional

from .config import get_settings


def frontend_url(path: str, params: Optional[dict] = None, base: Optional[str] = None) -> str:
    """
    Build an absolute front-end URL from FRONTEND_URL plus an optional query string.
    """
    settings = get_settings()
    base_url = (base or settings.frontend_url).rstrip("/")
    if not path:
        path = "/"
    if not path.startswith("/"):
        path = "/" + path
    url = base_url + path
    if params:
        url = f"{url}?{urlencode(params)}"
    return url


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()
