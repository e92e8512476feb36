"""
Contact dispatch orchestration.

Sequence per request: method check -> validation -> rendering -> transport
verification -> admin notification -> optional acknowledgment. Each terminal
state is returned as a DispatchResult; build_response maps it to the HTTP
envelope.
"""
import re
from datetime import datetime, timezone
from typing import Mapping, Optional, Tuple

from ...config import ContactSettings
from ..logging_config import get_logger
from ..models import (
    ContactEmails,
    ContactSubmission,
    DispatchResult,
    MethodNotAllowed,
    OutboundEmail,
    Preflight,
    Success,
    TransportFailed,
    ValidationFailed,
)
from .email_templates import OwnerProfile, render_contact_emails
from .mail import MailTransport, TransportError
from .validate import normalize_submission, validate_contact_submission

logger = get_logger(__name__)

SUCCESS_MESSAGE = "Email sent successfully"
VALIDATION_FAILED_MESSAGE = "Validation failed"
TRANSPORT_FAILED_MESSAGE = "Failed to send email. Please try again later."
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed. Use POST."
CONFIG_MISSING_DETAIL = "Mail sender or admin recipient is not configured"

_HEADER_BREAKS = re.compile(r"[\r\n]+\s*")


def iso_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def header_safe(value: str) -> str:
    """Folds CR/LF runs into single spaces; mail headers must stay on one line."""
    return _HEADER_BREAKS.sub(" ", value)


def build_admin_email(submission: ContactSubmission, emails: ContactEmails, settings: ContactSettings) -> OutboundEmail:
    return OutboundEmail(
        sender=settings.sender,
        to=settings.admin_recipients,
        subject=header_safe(f"Contact Form: {submission.subject}"),
        html=emails.admin.html,
        text=emails.admin.text,
        reply_to=submission.email,
    )


def build_acknowledgment_email(submission: ContactSubmission, emails: ContactEmails, settings: ContactSettings) -> OutboundEmail:
    return OutboundEmail(
        sender=settings.sender,
        to=submission.email,
        subject=header_safe(f"Thanks for reaching out - {settings.owner_name}"),
        html=emails.acknowledgment.html,
        text=emails.acknowledgment.text,
    )


def dispatch_submission(
    submission: ContactSubmission,
    transport: MailTransport,
    settings: ContactSettings,
    now: Optional[datetime] = None,
) -> DispatchResult:
    """
    Renders and sends the emails of an already validated submission.

    The acknowledgment is only sent when settings.send_auto_reply is set.
    A failed acknowledgment still yields TransportFailed (with
    admin_delivered=True) unless ack_failure_policy is "ignore".
    """
    profile = OwnerProfile(name=settings.owner_name, title=settings.owner_title)
    emails = render_contact_emails(submission, profile, now.astimezone() if now else None)

    if not settings.is_configured:
        logger.error(
            "Cannot forward contact message: %s", CONFIG_MISSING_DETAIL,
            extra={"event": "contact.transport_failed", "stage": "config"},
        )
        return TransportFailed(stage="config", detail=CONFIG_MISSING_DETAIL)

    stage = "verify"
    admin_delivered = False
    try:
        transport.verify()
        stage = "admin"
        transport.send(build_admin_email(submission, emails, settings))
        admin_delivered = True
        if settings.send_auto_reply:
            stage = "acknowledgment"
            transport.send(build_acknowledgment_email(submission, emails, settings))
    except TransportError as exc:
        if stage == "acknowledgment" and settings.ack_failure_policy == "ignore":
            logger.warning(
                "Acknowledgment to %s failed after admin notification: %s", submission.email, exc,
                extra={"event": "contact.acknowledgment_failed", "sender_email": submission.email},
            )
        else:
            logger.error(
                "Error sending email: %s", exc,
                exc_info=True,
                extra={
                    "event": "contact.transport_failed",
                    "stage": stage,
                    "admin_delivered": admin_delivered,
                },
            )
            return TransportFailed(stage=stage, detail=str(exc), admin_delivered=admin_delivered)

    logger.info(
        "Contact form submitted by: %s (%s)", submission.full_name, submission.email,
        extra={
            "event": "contact.submitted",
            "sender_name": submission.full_name,
            "sender_email": submission.email,
            "auto_reply": settings.send_auto_reply,
        },
    )
    return Success(timestamp=iso_timestamp(now or datetime.now(timezone.utc)))


def handle_contact_request(
    method: str,
    payload: Optional[Mapping],
    transport: MailTransport,
    settings: ContactSettings,
    now: Optional[datetime] = None,
) -> DispatchResult:
    """Runs one contact request through the dispatch state machine."""
    method = (method or "").upper()
    if method == "OPTIONS":
        return Preflight()
    if method != "POST":
        return MethodNotAllowed(method=method)

    errors = validate_contact_submission(payload, strict=settings.strict_names)
    if errors:
        logger.info(
            "Contact submission rejected by validation",
            extra={"event": "contact.validation_failed", "fields": [error.field for error in errors]},
        )
        return ValidationFailed(errors=errors)

    return dispatch_submission(normalize_submission(payload), transport, settings, now)


def build_response(result: DispatchResult, settings: ContactSettings) -> Tuple[Optional[dict], int]:
    """Maps a DispatchResult to (JSON body, HTTP status); the preflight body is None."""
    if isinstance(result, Preflight):
        return None, 200
    if isinstance(result, MethodNotAllowed):
        return {"success": False, "message": METHOD_NOT_ALLOWED_MESSAGE}, 405
    if isinstance(result, ValidationFailed):
        return {
            "success": False,
            "message": VALIDATION_FAILED_MESSAGE,
            "errors": [error.to_dict() for error in result.errors],
        }, 400
    if isinstance(result, TransportFailed):
        body = {"success": False, "message": TRANSPORT_FAILED_MESSAGE}
        if settings.expose_error_detail and result.detail:
            body["error"] = result.detail
        return body, 500
    return {"success": True, "message": SUCCESS_MESSAGE, "timestamp": result.timestamp}, 200
