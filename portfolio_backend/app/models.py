"""
Data model of the contact pipeline.

Nothing here is persisted: every object lives for the duration of one request.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

CONTACT_FIELDS = ("first_name", "last_name", "email", "subject", "message")


@dataclass(frozen=True)
class ContactSubmission:
    """The five-field payload a visitor sends through the contact form."""

    first_name: str
    last_name: str
    email: str
    subject: str
    message: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_payload(self) -> dict:
        return {name: getattr(self, name) for name in CONTACT_FIELDS}


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class RenderedEmail:
    html: str
    text: str


@dataclass(frozen=True)
class ContactEmails:
    admin: RenderedEmail
    acknowledgment: RenderedEmail


@dataclass(frozen=True)
class OutboundEmail:
    """A single message handed to the mail transport."""

    sender: Union[str, Tuple[str, ...]]
    to: Union[str, Tuple[str, ...]]
    subject: str
    html: str
    text: str
    reply_to: Optional[str] = None

    @property
    def recipients(self) -> Tuple[str, ...]:
        if isinstance(self.to, str):
            return (self.to,)
        return tuple(self.to)


# --- Dispatch results ---

@dataclass(frozen=True)
class Success:
    timestamp: str


@dataclass(frozen=True)
class ValidationFailed:
    errors: List[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class TransportFailed:
    # config, verify, admin or acknowledgment
    stage: str
    detail: Optional[str] = None
    admin_delivered: bool = False


@dataclass(frozen=True)
class MethodNotAllowed:
    method: str


@dataclass(frozen=True)
class Preflight:
    pass


DispatchResult = Union[Success, ValidationFailed, TransportFailed, MethodNotAllowed, Preflight]
