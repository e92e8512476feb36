"""
Rendering of the contact emails.

Two HTML + plain-text pairs are produced per submission: the notification
sent to the site owner and the acknowledgment sent back to the visitor.
HTML templates are autoescaped; plain-text templates render values verbatim.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from ..models import ContactEmails, ContactSubmission, RenderedEmail

RESPONSE_WINDOW = "24-48 hours"
TIMESTAMP_FORMAT = "%B %d, %Y at %I:%M %p"


@dataclass(frozen=True)
class ProfileLink:
    name: str
    label: str
    url: str


PROFILE_LINKS = (
    ProfileLink("LinkedIn", "LinkedIn", "https://linkedin.com/in/manikanta-ruppa-496102217"),
    ProfileLink("GitHub", "GitHub", "https://github.com/manikantaruppa"),
    ProfileLink("Medium Blog", "Medium", "https://medium.com/@manikantaruppa"),
    ProfileLink("Kaggle", "Kaggle", "https://kaggle.com/manikantaruppa"),
)


@dataclass(frozen=True)
class OwnerProfile:
    """Signature block of the acknowledgment email."""

    name: str
    title: str


_env = Environment(
    loader=PackageLoader("portfolio_backend.app", "templates"),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


def _render(name: str, **context) -> RenderedEmail:
    return RenderedEmail(
        html=_env.get_template(f"email/{name}.html").render(**context),
        text=_env.get_template(f"email/{name}.txt").render(**context),
    )


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def render_admin_notification(submission: ContactSubmission, generated_at: Optional[datetime] = None) -> RenderedEmail:
    """Notification for the site owner, carrying the submission verbatim."""
    moment = generated_at or datetime.now().astimezone()
    return _render(
        "admin_notification",
        submission=submission,
        generated_at=format_timestamp(moment),
    )


def render_acknowledgment(first_name: str, profile: OwnerProfile) -> RenderedEmail:
    """Auto-reply for the visitor; only the first name is interpolated."""
    return _render(
        "acknowledgment",
        first_name=first_name,
        response_window=RESPONSE_WINDOW,
        links=PROFILE_LINKS,
        owner_name=profile.name,
        owner_title=profile.title,
    )


def render_contact_emails(
    submission: ContactSubmission,
    profile: OwnerProfile,
    generated_at: Optional[datetime] = None,
) -> ContactEmails:
    return ContactEmails(
        admin=render_admin_notification(submission, generated_at),
        acknowledgment=render_acknowledgment(submission.first_name, profile),
    )
