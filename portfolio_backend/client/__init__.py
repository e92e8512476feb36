"""Python client of the contact form (submission controller + endpoint resolution)."""
from .controller import (
    Notification,
    OutcomeKind,
    SubmissionController,
    SubmissionOutcome,
    SubmissionState,
)
from .endpoint import ClientSettings, get_api_url, resolve_send_email_url, send_email_path

__all__ = [
    "ClientSettings",
    "Notification",
    "OutcomeKind",
    "SubmissionController",
    "SubmissionOutcome",
    "SubmissionState",
    "get_api_url",
    "resolve_send_email_url",
    "send_email_path",
]
