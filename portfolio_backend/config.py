"""Application configuration values."""
import os
import sys
import json
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple, Union
from pathlib import Path
from dotenv import load_dotenv


# --- Load environment variables ---
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent

_ENV_ALIASES = {
    "dev": "development",
    "development": "development",
    "prod": "production",
    "production": "production",
    "staging": "staging",
    "testing": "test",
    "tests": "test",
    "pytest": "test",
    "test": "test",
}

_TRUTHY = {"1", "true", "yes", "on"}

ACK_FAILURE_POLICIES = ("fail", "ignore")


def _normalize_env(value: str) -> str:
    normalized = _ENV_ALIASES.get(value.strip().lower(), value.strip().lower())
    return normalized or "production"


def _env_flag(*names: str, default: str = "false") -> bool:
    """Reads the first defined variable among ``names`` as a boolean."""
    for name in names:
        raw = os.getenv(name)
        if raw is not None and raw.strip():
            return raw.strip().lower() in _TRUTHY
    return default in _TRUTHY


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        raw = os.getenv(name)
        if raw is not None and raw.strip():
            return raw.strip()
    return None


def as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUTHY


def detect_runtime_env() -> str:
    """Determines the current environment (production, development, test)."""
    explicit = (
        os.getenv("APP_ENV")
        or os.getenv("FLASK_ENV")
        or os.getenv("NODE_ENV")
        or os.getenv("ENV")
        or ""
    ).strip()
    if explicit:
        return _normalize_env(explicit)

    if os.getenv("PYTEST_CURRENT_TEST") or any("pytest" in arg for arg in sys.argv):
        return "test"

    debug_flag = os.getenv("FLASK_DEBUG", "").strip().lower()
    if debug_flag in _TRUTHY:
        return "development"

    return "production"


def parse_list_env(name: str) -> List[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return []
    if raw.startswith("["):
        try:
            return [str(s) for s in json.loads(raw)]
        except ValueError:
            return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def init_app_config(app) -> None:
    """Applies environment-derived values without forcing early evaluation."""
    runtime_env = _normalize_env(
        str(app.config.get("APP_ENV", "") or app.config.get("ENV", "")).strip()
        or detect_runtime_env()
    )
    app.config["APP_ENV"] = runtime_env
    app.config["ENV"] = runtime_env

    app.config["TESTING"] = bool(app.config.get("TESTING")) or runtime_env == "test"
    app.config["DEBUG"] = bool(app.config.get("DEBUG")) or runtime_env == "development"

    for key in ("CONTACT_SEND_AUTO_REPLY", "CONTACT_STRICT_NAMES"):
        app.config[key] = as_bool(app.config.get(key, False))

    policy = str(app.config.get("CONTACT_ACK_FAILURE_POLICY") or "fail").strip().lower()
    if policy not in ACK_FAILURE_POLICIES:
        app.logger.warning(
            "Unknown CONTACT_ACK_FAILURE_POLICY %r, falling back to 'fail'", policy
        )
        policy = "fail"
    app.config["CONTACT_ACK_FAILURE_POLICY"] = policy

    expose = app.config.get("CONTACT_EXPOSE_ERRORS")
    if expose is None:
        expose = runtime_env != "production"
    app.config["CONTACT_EXPOSE_ERRORS"] = as_bool(expose)


def _address_list(value) -> Tuple[str, ...]:
    """Accepts a comma separated string or a sequence of addresses."""
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(item.strip() for item in value if isinstance(item, str) and item.strip())


SenderValue = Union[str, Tuple[str, ...]]


@dataclass(frozen=True)
class ContactSettings:
    """Read-only settings consumed by the contact dispatch pipeline."""

    sender: Optional[SenderValue]
    admin_recipients: Tuple[str, ...]
    send_auto_reply: bool = False
    expose_error_detail: bool = False
    strict_names: bool = False
    ack_failure_policy: str = "fail"
    owner_name: str = "Manikanta Ruppa"
    owner_title: str = "Senior Data Scientist | GenAI Engineer | Agentic AI Specialist"

    @property
    def is_configured(self) -> bool:
        return bool(self.sender and self.admin_recipients)

    @classmethod
    def from_config(cls, config: Mapping) -> "ContactSettings":
        # Imported lazily: the services package imports Flask-Mail.
        from .app.services.mail import resolve_mail_sender

        recipients = (
            _address_list(config.get("CONTACT_RECIPIENTS"))
            or _address_list(config.get("CONTACT_RECIPIENT"))
            or _address_list(config.get("MAIL_USERNAME"))
        )
        return cls(
            sender=resolve_mail_sender(config),
            admin_recipients=recipients,
            send_auto_reply=as_bool(config.get("CONTACT_SEND_AUTO_REPLY")),
            expose_error_detail=as_bool(config.get("CONTACT_EXPOSE_ERRORS")),
            strict_names=as_bool(config.get("CONTACT_STRICT_NAMES")),
            ack_failure_policy=config.get("CONTACT_ACK_FAILURE_POLICY") or "fail",
            owner_name=config.get("CONTACT_OWNER_NAME") or cls.owner_name,
            owner_title=config.get("CONTACT_OWNER_TITLE") or cls.owner_title,
        )


class Config:
    _runtime = detect_runtime_env()
    APP_ENV = _runtime
    TESTING = _runtime == "test"
    ENV = _runtime
    DEBUG = _runtime == "development"

    # --- mail transport ---
    MAIL_SERVER = os.getenv('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.getenv('MAIL_PORT', 587))
    MAIL_USE_TLS = os.getenv('MAIL_USE_TLS', 'true').lower() == 'true'
    MAIL_USE_SSL = os.getenv('MAIL_USE_SSL', 'false').lower() == 'true'
    MAIL_USERNAME = _first_env('MAIL_USERNAME', 'EMAIL_USER')
    MAIL_PASSWORD = _first_env('MAIL_PASSWORD', 'EMAIL_APP_PASSWORD')
    MAIL_DEFAULT_SENDER = _first_env('MAIL_DEFAULT_SENDER', 'EMAIL_FROM') or MAIL_USERNAME
    MAIL_SUPPRESS_SEND = _env_flag('MAIL_SUPPRESS_SEND')

    # --- contact form ---
    CONTACT_RECIPIENTS = parse_list_env('CONTACT_RECIPIENTS') or parse_list_env('EMAIL_TO')
    CONTACT_RECIPIENT = _first_env('CONTACT_RECIPIENT')
    CONTACT_SEND_AUTO_REPLY = _env_flag('CONTACT_SEND_AUTO_REPLY', 'SEND_AUTO_REPLY')
    CONTACT_STRICT_NAMES = _env_flag('CONTACT_STRICT_NAMES')
    CONTACT_ACK_FAILURE_POLICY = os.getenv('CONTACT_ACK_FAILURE_POLICY', 'fail')
    # None = expose transport error detail everywhere except production
    CONTACT_EXPOSE_ERRORS = None
    CONTACT_OWNER_NAME = os.getenv('CONTACT_OWNER_NAME')
    CONTACT_OWNER_TITLE = os.getenv('CONTACT_OWNER_TITLE')

    # --- CORS for the remaining /api endpoints ---
    CORS_ORIGINS = parse_list_env('CORS_ORIGINS')

    # --- Logging Configuration ---
    LOG_LEVEL = os.getenv('LOG_LEVEL', None)  # None = auto-detect based on APP_ENV
    LOG_JSON_ENABLED = None  # None = auto-detect (True for production, False otherwise)
    _log_json_env = os.getenv('LOG_JSON_ENABLED', '').strip().lower()
    if _log_json_env in {'1', 'true', 'yes', 'on'}:
        LOG_JSON_ENABLED = True
    elif _log_json_env in {'0', 'false', 'no', 'off'}:
        LOG_JSON_ENABLED = False
    del _log_json_env

    # --- Sentry Configuration ---
    SENTRY_DSN = os.getenv('SENTRY_DSN')
    SENTRY_ENVIRONMENT = os.getenv('SENTRY_ENVIRONMENT')  # None = auto-detect from APP_ENV
    try:
        _traces_sample_rate = float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', '0.1'))
    except ValueError:
        _traces_sample_rate = 0.1
    SENTRY_TRACES_SAMPLE_RATE = max(0.0, min(1.0, _traces_sample_rate))
    del _traces_sample_rate
    SENTRY_ENABLE_IN_DEV = _env_flag('SENTRY_ENABLE_IN_DEV')
