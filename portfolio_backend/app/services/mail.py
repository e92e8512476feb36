"""
Mail transport service.

Functions:
- resolve_mail_sender: Determines the configured sender address
- FlaskMailTransport: Authenticated SMTP transport backed by Flask-Mail
"""
from typing import Mapping, Protocol

from flask_mail import Mail, Message

from ..models import OutboundEmail


class TransportError(Exception):
    """Raised when the mail transport cannot connect, authenticate or deliver."""


class MailTransport(Protocol):
    def verify(self) -> None:
        ...

    def send(self, message: OutboundEmail) -> None:
        ...


def resolve_mail_sender(config: Mapping):
    """
    Determines the configured mail sender.

    Prefers MAIL_DEFAULT_SENDER over MAIL_USERNAME.
    Supports plain strings or (name, address) tuples.

    Returns:
        Configured sender (str or tuple) or None if unavailable
    """
    sender = config.get('MAIL_DEFAULT_SENDER')

    if isinstance(sender, str):
        stripped = sender.strip()
        if stripped:
            return stripped
    elif isinstance(sender, (list, tuple)):
        cleaned = []
        for part in sender:
            if isinstance(part, str):
                part = part.strip()
            if part:
                cleaned.append(part)
        if cleaned:
            return tuple(cleaned)

    fallback = config.get('MAIL_USERNAME')
    if isinstance(fallback, str):
        fallback = fallback.strip()
        if fallback:
            return fallback
    return None


class FlaskMailTransport:
    """
    Process-wide transport handle over a Flask-Mail extension.

    Both operations need an application context, since Flask-Mail reads its
    SMTP settings from the current app.
    """

    def __init__(self, mail: Mail):
        self.mail = mail

    def verify(self) -> None:
        """Opens and closes an authenticated SMTP connection."""
        try:
            with self.mail.connect():
                pass
        except Exception as exc:
            raise TransportError(f"Mail transport verification failed: {exc}") from exc

    def send(self, message: OutboundEmail) -> None:
        msg = Message(
            subject=message.subject,
            sender=message.sender,
            recipients=list(message.recipients),
            body=message.text,
            html=message.html,
            reply_to=message.reply_to,
        )
        try:
            self.mail.send(msg)
        except Exception as exc:
            raise TransportError(
                f"Could not deliver mail to {', '.join(message.recipients)}: {exc}"
            ) from exc
