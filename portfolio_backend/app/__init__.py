"""Application factory for the contact backend."""
from typing import Optional

from flask import Flask
from portfolio_backend.config import Config, ContactSettings, init_app_config

from .extensions import mail, cors
from .logging_config import configure_logging, setup_request_logging
from .services.mail import FlaskMailTransport, MailTransport


def init_sentry(app: Flask) -> None:
    """
    Initializes Sentry error monitoring.

    Only active when SENTRY_DSN is set and the environment is production or
    staging (or development with SENTRY_ENABLE_IN_DEV=true).
    """
    sentry_dsn = app.config.get('SENTRY_DSN')
    if not sentry_dsn:
        app.logger.info("Sentry not initialized: SENTRY_DSN is not set")
        return

    runtime_env = app.config.get('APP_ENV', 'production')
    enable_in_dev = app.config.get('SENTRY_ENABLE_IN_DEV', False)

    if runtime_env not in {'production', 'staging'}:
        if not (runtime_env == 'development' and enable_in_dev):
            app.logger.info(f"Sentry not initialized: environment '{runtime_env}' is not production/staging")
            return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration

    sentry_environment = app.config.get('SENTRY_ENVIRONMENT') or runtime_env
    traces_sample_rate = app.config.get('SENTRY_TRACES_SAMPLE_RATE', 0.1)

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=sentry_environment,
        integrations=[FlaskIntegration()],
        traces_sample_rate=traces_sample_rate,
        # Submissions carry visitor emails; keep them out of events
        send_default_pii=False,
    )
    app.logger.info(
        f"Sentry initialized [environment={sentry_environment}, traces_sample_rate={traces_sample_rate}]"
    )


def create_app(
    config_object=Config,
    transport: Optional[MailTransport] = None,
    contact_settings: Optional[ContactSettings] = None,
) -> Flask:
    """
    Flask application factory.

    ``transport`` and ``contact_settings`` default to the Flask-Mail transport
    and to settings derived from the configuration; tests inject their own.
    """
    app = Flask(__name__)

    app.config.from_object(config_object)
    init_app_config(app)

    configure_logging(app)
    setup_request_logging(app)
    init_sentry(app)

    mail.init_app(app)

    cors_origins = app.config.get("CORS_ORIGINS") or "*"
    cors.init_app(app, resources={r"/api/*": {"origins": cors_origins}})

    app.extensions["contact_transport"] = transport or FlaskMailTransport(mail)
    app.extensions["contact_settings"] = contact_settings or ContactSettings.from_config(app.config)

    from .routes import api as api_blueprint
    from .routes import contact as contact_blueprint

    app.register_blueprint(api_blueprint, url_prefix="/api")
    # Same handler on both paths: /api/send-email in production, /send-email in development
    app.register_blueprint(contact_blueprint, url_prefix="/api")
    app.register_blueprint(contact_blueprint, name="contact_dev", url_prefix="")

    return app
