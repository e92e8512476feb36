import click
from flask import current_app

from . import create_app
from .app.services.mail import TransportError
from .client import ClientSettings, SubmissionController

app = create_app()


@app.cli.command("verify-mail")
def verify_mail():
    """
    Checks that the configured SMTP account can connect and authenticate.
    """
    settings = current_app.extensions["contact_settings"]
    transport = current_app.extensions["contact_transport"]

    click.echo(f"Sender: {settings.sender or '(not configured)'}")
    click.echo(f"Admin recipients: {', '.join(settings.admin_recipients) or '(not configured)'}")
    click.echo(f"Auto-reply: {'enabled' if settings.send_auto_reply else 'disabled'}")
    try:
        transport.verify()
    except TransportError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Mail transport verified.")


@app.cli.command("submit-contact")
@click.option("--first-name", prompt=True)
@click.option("--last-name", prompt=True)
@click.option("--email", prompt=True)
@click.option("--subject", prompt=True)
@click.option("--message", prompt=True)
@click.option("--api-url", default=None, help="Backend base URL (development).")
@click.option("--production", is_flag=True, help="Use the same-origin production path.")
def submit_contact(first_name, last_name, email, subject, message, api_url, production):
    """Sends a contact submission through the form client, as the website would."""
    settings = ClientSettings.from_env()
    if api_url or production:
        settings = ClientSettings(
            production=production or settings.production,
            api_url=(api_url or settings.api_url).rstrip("/"),
            site_url=settings.site_url,
            timeout=settings.timeout,
        )

    def echo_notification(notification):
        click.secho(notification.title, bold=True, fg="red" if notification.destructive else "green")
        click.echo(notification.description)

    controller = SubmissionController(settings, notify=echo_notification)
    for name, value in (
        ("first_name", first_name),
        ("last_name", last_name),
        ("email", email),
        ("subject", subject),
        ("message", message),
    ):
        controller.set_field(name, value)

    outcome = controller.submit()
    if not outcome.ok:
        raise SystemExit(1)


if __name__ == "__main__":
    app.run(debug=True, port=8001)
