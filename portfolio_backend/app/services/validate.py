"""
Validation and normalization of contact submissions.

``CONTACT_FIELD_RULES`` is the single rule table for the contact form. The
server boundary runs it in lenient mode (length and email format) and the
client pre-submission guard runs it in strict mode, which also applies the
character class of each name field.
"""
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Pattern

from ..models import CONTACT_FIELDS, ContactSubmission, ValidationError

NAME_PATTERN = re.compile(r"[a-zA-Z\s]{2,50}")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


@dataclass(frozen=True)
class FieldRule:
    field: str
    label: str
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern] = None
    strict_pattern_only: bool = False
    server_message: str = ""
    client_message: str = ""

    @property
    def required_message(self) -> str:
        return f"{self.label} is required."

    def length_ok(self, value: str) -> bool:
        if self.min_length is not None and len(value) < self.min_length:
            return False
        if self.max_length is not None and len(value) > self.max_length:
            return False
        return True

    def pattern_ok(self, value: str, strict: bool) -> bool:
        if self.pattern is None or (self.strict_pattern_only and not strict):
            return True
        return self.pattern.fullmatch(value) is not None

    def message(self, strict: bool) -> str:
        return self.client_message if strict else self.server_message


CONTACT_FIELD_RULES = (
    FieldRule(
        field="first_name",
        label="First name",
        min_length=2,
        max_length=50,
        pattern=NAME_PATTERN,
        strict_pattern_only=True,
        server_message="First name must be between 2 and 50 characters",
        client_message="First name must be 2-50 characters and contain only letters and spaces.",
    ),
    FieldRule(
        field="last_name",
        label="Last name",
        min_length=2,
        max_length=50,
        pattern=NAME_PATTERN,
        strict_pattern_only=True,
        server_message="Last name must be between 2 and 50 characters",
        client_message="Last name must be 2-50 characters and contain only letters and spaces.",
    ),
    FieldRule(
        field="email",
        label="Email",
        pattern=EMAIL_PATTERN,
        server_message="Please provide a valid email address",
        client_message="Please enter a valid email address.",
    ),
    FieldRule(
        field="subject",
        label="Subject",
        min_length=5,
        max_length=100,
        server_message="Subject must be between 5 and 100 characters",
        client_message="Subject must be between 5 and 100 characters.",
    ),
    FieldRule(
        field="message",
        label="Message",
        min_length=10,
        max_length=1000,
        server_message="Message must be between 10 and 1000 characters",
        client_message="Message must be between 10 and 1000 characters.",
    ),
)


def clean_value(value: Any) -> str:
    """Trims a raw field value; anything that is not a string counts as absent."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def normalize_email(value):
    """
    Normalizes an email address by removing surrounding whitespace.

    Case is preserved so that replies go to the address exactly as typed.
    """
    return clean_value(value)


def validate_contact_submission(data: Optional[Mapping], strict: bool = False) -> List[ValidationError]:
    """
    Validates a contact form payload.

    Args:
        data: Mapping keyed by wire field names (first_name, last_name, ...)
        strict: Also enforce the name character class (client-side guard)

    Returns:
        Ordered list of ValidationError, at most one per field; empty if valid
    """
    if not isinstance(data, Mapping):
        data = {}

    errors = []
    for rule in CONTACT_FIELD_RULES:
        value = clean_value(data.get(rule.field))
        if not value:
            errors.append(ValidationError(rule.field, rule.required_message))
        elif not rule.length_ok(value) or not rule.pattern_ok(value, strict):
            errors.append(ValidationError(rule.field, rule.message(strict)))
    return errors


def normalize_submission(data: Mapping) -> ContactSubmission:
    """Builds the submission from a payload that already passed validation."""
    values = {name: clean_value(data.get(name)) for name in CONTACT_FIELDS}
    values["email"] = normalize_email(data.get("email"))
    # The message body is forwarded as typed; trimming only applies to its length check
    message = data.get("message")
    values["message"] = message if isinstance(message, str) else ""
    return ContactSubmission(**values)
