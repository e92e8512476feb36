"""Service health check."""

from datetime import datetime, timezone
from flask import jsonify, current_app

from . import api


@api.get("/health")
def health_check():
    """Reports whether the mail pipeline is configured; does not contact the SMTP server."""
    settings = current_app.extensions["contact_settings"]

    payload = {
        "status": "ok" if settings.is_configured else "degraded",
        "mail": {
            "configured": settings.is_configured,
            "indicator": "ok" if settings.is_configured else "unconfigured",
            "auto_reply": settings.send_auto_reply,
        },
        "env": current_app.config.get("APP_ENV", "production"),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return jsonify(payload), 200
