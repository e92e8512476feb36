"""Resolution of the send-email endpoint for the contact form client."""
import os
from dataclasses import dataclass
from typing import Optional

from ..config import _normalize_env

DEFAULT_DEV_API_URL = "http://localhost:8001"
DEFAULT_SITE_URL = "http://localhost:5000"
PRODUCTION_PATH = "/api/send-email"
DEVELOPMENT_PATH = "/send-email"


@dataclass(frozen=True)
class ClientSettings:
    """
    Build-time settings of the contact form client.

    In production the API is same-origin with the site; in development it is
    a standalone backend reachable at ``api_url``.
    """

    production: bool = False
    api_url: str = DEFAULT_DEV_API_URL
    site_url: str = DEFAULT_SITE_URL
    timeout: float = 15.0

    @property
    def environment_label(self) -> str:
        return "production" if self.production else "local"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ClientSettings":
        environ = os.environ if environ is None else environ
        app_env = _normalize_env(environ.get("PORTFOLIO_APP_ENV") or environ.get("APP_ENV") or "development")
        try:
            timeout = float(environ.get("PORTFOLIO_CLIENT_TIMEOUT", "15"))
        except ValueError:
            timeout = 15.0
        return cls(
            production=app_env == "production",
            api_url=(environ.get("PORTFOLIO_API_URL") or DEFAULT_DEV_API_URL).rstrip("/"),
            site_url=(environ.get("PORTFOLIO_SITE_URL") or DEFAULT_SITE_URL).rstrip("/"),
            timeout=timeout,
        )


def get_api_url(settings: ClientSettings) -> str:
    """Empty base in production (same origin), the configured backend otherwise."""
    if settings.production:
        return ""
    return settings.api_url


def send_email_path(settings: ClientSettings) -> str:
    return PRODUCTION_PATH if settings.production else DEVELOPMENT_PATH


def resolve_send_email_url(settings: ClientSettings) -> str:
    base = get_api_url(settings) or settings.site_url
    return f"{base}{send_email_path(settings)}"
