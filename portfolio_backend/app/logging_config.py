"""
Structured logging configuration for the portfolio contact backend.

JSON logs in production (for log aggregation), colored human-readable logs
in development and quiet logs under test. Every request gets a request_id
that is attached to the records emitted while it is being handled.
"""

import logging
import sys
import time
import uuid
from typing import Any, Dict
from datetime import datetime, timezone

from flask import Flask, g, has_request_context, request
from pythonjsonlogger import jsonlogger


def _remote_addr() -> str:
    # access_route honours X-Forwarded-For when the app runs behind a proxy
    route = request.access_route
    return route[0] if route else request.remote_addr


class ContextualJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that adds contextual fields from Flask's request context.

    Includes timestamp, level, logger, app_env and, inside a request,
    request_id, method, path, remote_addr, user_agent and response_time_ms.
    """

    def __init__(self, *args, app_env: str = "production", **kwargs):
        super().__init__(*args, **kwargs)
        self.app_env = app_env

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["app_env"] = self.app_env

        if has_request_context():
            log_record["request_id"] = getattr(g, "request_id", None)
            log_record["method"] = request.method
            log_record["path"] = request.path
            log_record["remote_addr"] = _remote_addr()
            if request.user_agent.string:
                log_record["user_agent"] = request.user_agent.string

            request_start_time = getattr(g, "request_start_time", None)
            if request_start_time:
                response_time_ms = (time.time() - request_start_time) * 1000
                log_record["response_time_ms"] = round(response_time_ms, 2)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


class DevelopmentFormatter(logging.Formatter):
    """Colored single-line formatter for the terminal."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        reset = self.COLORS["RESET"]

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        base = f"{color}[{timestamp}] {record.levelname:8s}{reset} {record.name:30s} | {record.getMessage()}"

        context_parts = []
        if has_request_context():
            request_id = getattr(g, "request_id", None)
            if request_id:
                context_parts.append(f"request_id={request_id[:8]}")
            context_parts.append(f"{request.method} {request.path}")

        event = getattr(record, "event", None)
        if event:
            context_parts.append(f"event={event}")

        if context_parts:
            base += f" [{' | '.join(context_parts)}]"

        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)

        return base


def resolve_log_level(app_env: str, configured: str = None) -> int:
    if configured:
        return getattr(logging, configured.upper(), logging.INFO)
    if app_env == "test":
        return logging.WARNING
    if app_env == "development":
        return logging.DEBUG
    return logging.INFO


def configure_logging(app: Flask) -> None:
    """
    Configure structured logging for the Flask application.

    Picks the formatter from APP_ENV / LOG_JSON_ENABLED and attaches a stdout
    handler to both app.logger and the root logger, so module loggers
    obtained with get_logger() share the same output. Under test no handler
    is installed.
    """
    app_env = app.config.get("APP_ENV", "production")
    log_level = resolve_log_level(app_env, app.config.get("LOG_LEVEL"))

    json_enabled = app.config.get("LOG_JSON_ENABLED", None)
    if json_enabled is None:
        json_enabled = app_env == "production"

    if json_enabled:
        formatter = ContextualJsonFormatter(fmt="%(message)s", app_env=app_env)
    else:
        formatter = DevelopmentFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Under test, records propagate to the root logger where pytest captures
    # them; app.logger also parents the service loggers and keeps no level
    if app_env == "test":
        app.logger.setLevel(logging.NOTSET)
        app.logger.propagate = True
    else:
        app.logger.setLevel(log_level)
        app.logger.handlers.clear()
        app.logger.addHandler(handler)
        app.logger.propagate = False
        root_logger.handlers.clear()
        root_logger.addHandler(handler)

    if app_env == "development":
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    app.logger.info(
        "Logging configured",
        extra={
            "app_env": app_env,
            "log_level": logging.getLevelName(log_level),
            "json_enabled": json_enabled,
        },
    )


def setup_request_logging(app: Flask) -> None:
    """Registers the request_id / timing hooks and the uncaught-exception logger."""

    @app.before_request
    def before_request_logging():
        g.request_id = str(uuid.uuid4())
        g.request_start_time = time.time()
        app.logger.debug(
            "Request started",
            extra={"event": "request.started", "method": request.method, "path": request.path},
        )

    @app.after_request
    def after_request_logging(response):
        if hasattr(g, "request_start_time"):
            response_time_ms = (time.time() - g.request_start_time) * 1000
            app.logger.info(
                "Request completed",
                extra={
                    "event": "request.completed",
                    "status_code": response.status_code,
                    "response_time_ms": round(response_time_ms, 2),
                },
            )
            response.headers.setdefault("X-Request-ID", g.request_id)
        return response

    @app.errorhandler(Exception)
    def handle_exception(error: Exception):
        from werkzeug.exceptions import HTTPException

        # 4xx and friends are regular responses, not faults
        if isinstance(error, HTTPException):
            return error

        app.logger.error(
            f"Uncaught exception: {error}",
            exc_info=True,
            extra={
                "event": "exception.uncaught",
                "exception_type": type(error).__name__,
            },
        )
        raise error


def get_logger(name: str) -> logging.Logger:
    """Module logger sharing the handlers installed by configure_logging."""
    return logging.getLogger(name)
