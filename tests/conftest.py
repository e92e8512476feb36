# tests/conftest.py
import os
import sys
import pathlib
import json as jsonlib
from urllib.parse import urlsplit

import pytest
import requests

# ---------- repo root on sys.path ----------
THIS = pathlib.Path(__file__).resolve()
ROOT = THIS.parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Force the test environment before the config module is evaluated
os.environ.setdefault("APP_ENV", "test")

from portfolio_backend.app import create_app  # noqa: E402
from portfolio_backend.app.extensions import mail  # noqa: E402
from portfolio_backend.app.services.mail import TransportError  # noqa: E402
from portfolio_backend.config import ContactSettings  # noqa: E402


# ---------- test configuration ----------
class TestConfig:
    TESTING = True
    APP_ENV = "test"
    LOG_LEVEL = None  # auto-detect per APP_ENV
    MAIL_SUPPRESS_SEND = True
    MAIL_SERVER = "localhost"
    MAIL_PORT = 1025
    MAIL_USE_TLS = False
    MAIL_USE_SSL = False
    MAIL_USERNAME = "owner@example.com"
    MAIL_PASSWORD = "dummy"
    MAIL_DEFAULT_SENDER = "noreply@portfolio.test"
    CONTACT_RECIPIENT = "owner@example.com"
    CONTACT_SEND_AUTO_REPLY = False
    CONTACT_STRICT_NAMES = False
    CONTACT_ACK_FAILURE_POLICY = "fail"
    CONTACT_EXPOSE_ERRORS = None
    CONTACT_OWNER_NAME = "Ada Lovelace"
    CONTACT_OWNER_TITLE = "Analytical Engine Programmer"
    CORS_ORIGINS = []
    SENTRY_DSN = None


VALID_PAYLOAD = {
    "first_name": "Grace",
    "last_name": "Hopper",
    "email": "grace@example.com",
    "subject": "Compiler collaboration",
    "message": "Hello,\nI would like to talk about compilers.\n\nThanks!",
}


class FakeTransport:
    """
    Recording mail transport.

    ``fail_on_send`` holds 1-based send attempt numbers that must fail.
    """

    def __init__(self, fail_verify=False, fail_on_send=()):
        self.fail_verify = fail_verify
        self.fail_on_send = set(fail_on_send)
        self.verify_calls = 0
        self.attempts = []
        self.sent = []

    def verify(self):
        self.verify_calls += 1
        if self.fail_verify:
            raise TransportError("535 authentication failed")

    def send(self, message):
        self.attempts.append(message)
        if len(self.attempts) in self.fail_on_send:
            raise TransportError(f"could not deliver to {', '.join(message.recipients)}")
        self.sent.append(message)


class FlaskClientSession:
    """requests.Session stand-in that routes POSTs to a Flask test client."""

    def __init__(self, client):
        self.client = client
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append(url)
        res = self.client.post(urlsplit(url).path, json=json, headers=headers)
        response = requests.Response()
        response.status_code = res.status_code
        response._content = res.data
        response.headers["Content-Type"] = res.content_type
        response.url = url
        return response


def make_response(status_code, body=None, raw=None):
    response = requests.Response()
    response.status_code = status_code
    response._content = raw if raw is not None else jsonlib.dumps(body).encode("utf-8")
    return response


# ---------- fixtures ----------
@pytest.fixture()
def valid_payload():
    return dict(VALID_PAYLOAD)


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def make_app():
    def _make(transport=None, contact_settings=None, **overrides):
        config_object = type("OverriddenTestConfig", (TestConfig,), overrides)
        return create_app(config_object, transport=transport, contact_settings=contact_settings)
    return _make


@pytest.fixture()
def app(make_app, transport):
    return make_app(transport=transport)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def contact_settings():
    return ContactSettings(
        sender="noreply@portfolio.test",
        admin_recipients=("owner@example.com",),
        send_auto_reply=False,
        expose_error_detail=True,
        owner_name="Ada Lovelace",
        owner_title="Analytical Engine Programmer",
    )


@pytest.fixture()
def mail_outbox(app):
    with app.app_context():
        with mail.record_messages() as outbox:
            yield outbox


@pytest.fixture()
def make_transport():
    return FakeTransport


@pytest.fixture()
def json_response():
    return make_response


@pytest.fixture()
def flask_session(client):
    return FlaskClientSession(client)
