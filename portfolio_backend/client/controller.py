"""
Client-side controller of the contact form.

Owns the form fields, runs the strict validation pass before anything is
sent, guards against overlapping submissions and turns every outcome into a
user-facing notification (the toast of the web form).
"""
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import requests

from ..app.models import CONTACT_FIELDS, ValidationError
from ..app.services.validate import clean_value, validate_contact_submission
from .endpoint import ClientSettings, resolve_send_email_url

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class SubmissionState(Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OutcomeKind(Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    SERVER_ERROR = "server_error"
    CONNECTION_ERROR = "connection_error"
    MALFORMED_RESPONSE = "malformed_response"
    BUSY = "busy"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    destructive: bool = True


@dataclass(frozen=True)
class SubmissionOutcome:
    kind: OutcomeKind
    notification: Optional[Notification] = None
    errors: Tuple[ValidationError, ...] = ()
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


def _empty_form() -> Dict[str, str]:
    return {name: "" for name in CONTACT_FIELDS}


class SubmissionController:
    """
    Form state machine: IDLE -> SUBMITTING -> SUCCEEDED (fields reset) or
    FAILED (fields kept).
    """

    def __init__(
        self,
        settings: ClientSettings,
        session: Optional[requests.Session] = None,
        notify: Optional[Callable[[Notification], None]] = None,
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.notify = notify or (lambda notification: None)
        self.state = SubmissionState.IDLE
        self._fields = _empty_form()
        self._guard = threading.Lock()

    @property
    def fields(self) -> Dict[str, str]:
        return dict(self._fields)

    @property
    def is_submitting(self) -> bool:
        return self.state is SubmissionState.SUBMITTING

    def set_field(self, name: str, value: str) -> None:
        if name not in self._fields:
            raise KeyError(f"Unknown contact field: {name}")
        self._fields[name] = value

    def reset(self) -> None:
        self._fields = _empty_form()

    def submit(self) -> SubmissionOutcome:
        """Validates and sends the current form; overlapping calls get a BUSY outcome."""
        if not self._guard.acquire(blocking=False):
            return SubmissionOutcome(OutcomeKind.BUSY)
        try:
            self.state = SubmissionState.SUBMITTING
            outcome = self._submit()
            if outcome.ok:
                self.reset()
                self.state = SubmissionState.SUCCEEDED
            else:
                self.state = SubmissionState.FAILED
            if outcome.notification is not None:
                self.notify(outcome.notification)
            return outcome
        finally:
            self._guard.release()

    def _submit(self) -> SubmissionOutcome:
        payload = {name: clean_value(value) for name, value in self._fields.items()}

        errors = validate_contact_submission(payload, strict=True)
        if errors:
            return SubmissionOutcome(
                OutcomeKind.VALIDATION_ERROR,
                Notification("Validation Error", "\n".join(error.message for error in errors)),
                errors=tuple(errors),
            )

        try:
            response = self.session.post(
                resolve_send_email_url(self.settings),
                json=payload,
                headers=JSON_HEADERS,
                timeout=self.settings.timeout,
            )
        except (requests.ConnectionError, requests.Timeout):
            return SubmissionOutcome(
                OutcomeKind.CONNECTION_ERROR,
                Notification(
                    "Connection Error",
                    f"Cannot connect to {self.settings.environment_label} backend. "
                    "Please check if the server is running.",
                ),
            )
        except requests.RequestException as exc:
            return SubmissionOutcome(
                OutcomeKind.CONNECTION_ERROR,
                Notification("Error", f"Request failed: {exc}"),
            )

        return self._interpret(response)

    def _interpret(self, response: requests.Response) -> SubmissionOutcome:
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            return SubmissionOutcome(
                OutcomeKind.MALFORMED_RESPONSE,
                Notification("Error", "Invalid response from server"),
                status_code=response.status_code,
            )

        if response.ok and data.get("success"):
            return SubmissionOutcome(
                OutcomeKind.SUCCESS,
                Notification(
                    "Message Sent Successfully!",
                    "Thank you for your message. I'll get back to you soon.",
                    destructive=False,
                ),
                status_code=response.status_code,
            )

        raw_errors = data.get("errors")
        if isinstance(raw_errors, list) and raw_errors:
            errors = tuple(
                ValidationError(str(item.get("field", "")), str(item.get("message", "")))
                for item in raw_errors
                if isinstance(item, dict)
            )
            return SubmissionOutcome(
                OutcomeKind.SERVER_ERROR,
                Notification("Validation Error", "\n".join(f"{e.field}: {e.message}" for e in errors)),
                errors=errors,
                status_code=response.status_code,
            )

        return SubmissionOutcome(
            OutcomeKind.SERVER_ERROR,
            Notification("Error", data.get("message") or f"Server error: {response.status_code}"),
            status_code=response.status_code,
        )
