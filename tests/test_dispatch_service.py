"""
Tests for portfolio_backend/app/services/dispatch.py
Dispatch state machine and response envelope.
"""
import logging
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from portfolio_backend.app.models import (
    MethodNotAllowed,
    Preflight,
    Success,
    TransportFailed,
    ValidationError,
    ValidationFailed,
)
from portfolio_backend.app.services.dispatch import (
    METHOD_NOT_ALLOWED_MESSAGE,
    TRANSPORT_FAILED_MESSAGE,
    build_response,
    handle_contact_request,
    iso_timestamp,
)

NOW = datetime(2026, 10, 19, 12, 30, 45, 123000, tzinfo=timezone.utc)


class TestStateMachine:

    @pytest.mark.parametrize("method", ["OPTIONS", "options"])
    def test_options_is_a_preflight(self, method, transport, contact_settings):
        result = handle_contact_request(method, None, transport, contact_settings)
        assert isinstance(result, Preflight)
        assert transport.verify_calls == 0

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH", "HEAD"])
    def test_other_methods_are_not_allowed(self, method, transport, contact_settings, valid_payload):
        result = handle_contact_request(method, valid_payload, transport, contact_settings)
        assert result == MethodNotAllowed(method=method)
        assert transport.attempts == []

    def test_validation_failure_stops_before_transport(self, transport, contact_settings, valid_payload):
        valid_payload["subject"] = "abc"
        result = handle_contact_request("POST", valid_payload, transport, contact_settings)
        assert isinstance(result, ValidationFailed)
        assert [e.field for e in result.errors] == ["subject"]
        assert transport.verify_calls == 0
        assert transport.attempts == []

    def test_success_sends_only_admin_mail_when_auto_reply_disabled(self, transport, contact_settings, valid_payload):
        result = handle_contact_request("POST", valid_payload, transport, contact_settings, now=NOW)

        assert result == Success(timestamp="2026-10-19T12:30:45.123Z")
        assert transport.verify_calls == 1
        assert len(transport.sent) == 1
        admin = transport.sent[0]
        assert admin.recipients == ("owner@example.com",)
        assert admin.sender == "noreply@portfolio.test"
        assert admin.subject == "Contact Form: Compiler collaboration"
        assert admin.reply_to == "grace@example.com"
        assert valid_payload["message"] in admin.text

    def test_auto_reply_enabled_sends_acknowledgment_second(self, transport, contact_settings, valid_payload):
        settings = replace(contact_settings, send_auto_reply=True)
        result = handle_contact_request("POST", valid_payload, transport, settings)

        assert isinstance(result, Success)
        assert [m.recipients for m in transport.sent] == [("owner@example.com",), ("grace@example.com",)]
        ack = transport.sent[1]
        assert ack.subject == "Thanks for reaching out - Ada Lovelace"
        assert ack.reply_to is None
        assert "Hi Grace," in ack.text

    def test_payload_values_are_trimmed_before_dispatch(self, transport, contact_settings, valid_payload):
        valid_payload["email"] = "  grace@example.com  "
        valid_payload["subject"] = "  Compiler collaboration "
        handle_contact_request("POST", valid_payload, transport, contact_settings)
        assert transport.sent[0].reply_to == "grace@example.com"
        assert transport.sent[0].subject == "Contact Form: Compiler collaboration"

    def test_message_body_is_forwarded_untrimmed(self, transport, contact_settings, valid_payload):
        valid_payload["message"] = "\n    indented first line\nsecond line\n"
        handle_contact_request("POST", valid_payload, transport, contact_settings)
        assert valid_payload["message"] in transport.sent[0].text

    def test_admin_mail_goes_to_every_recipient(self, transport, contact_settings, valid_payload):
        settings = replace(contact_settings, admin_recipients=("owner@example.com", "team@example.com"))
        result = handle_contact_request("POST", valid_payload, transport, settings)
        assert isinstance(result, Success)
        assert len(transport.sent) == 1
        assert transport.sent[0].recipients == ("owner@example.com", "team@example.com")

    @pytest.mark.parametrize("subject", ["Project idea\nfollow up", "Project idea\r\nfollow up"])
    def test_line_breaks_in_subject_are_folded(self, transport, contact_settings, valid_payload, subject):
        valid_payload["subject"] = subject
        result = handle_contact_request("POST", valid_payload, transport, contact_settings)
        assert isinstance(result, Success)
        assert transport.sent[0].subject == "Contact Form: Project idea follow up"

    def test_verify_failure_sends_nothing(self, make_transport, contact_settings, valid_payload):
        transport = make_transport(fail_verify=True)
        result = handle_contact_request("POST", valid_payload, transport, contact_settings)
        assert result == TransportFailed(stage="verify", detail="535 authentication failed", admin_delivered=False)
        assert transport.attempts == []

    def test_admin_failure_skips_acknowledgment(self, make_transport, contact_settings, valid_payload):
        transport = make_transport(fail_on_send={1})
        settings = replace(contact_settings, send_auto_reply=True)
        result = handle_contact_request("POST", valid_payload, transport, settings)
        assert isinstance(result, TransportFailed)
        assert result.stage == "admin"
        assert result.admin_delivered is False
        assert len(transport.attempts) == 1

    def test_acknowledgment_failure_collapses_to_transport_failure(self, make_transport, contact_settings, valid_payload):
        transport = make_transport(fail_on_send={2})
        settings = replace(contact_settings, send_auto_reply=True)
        result = handle_contact_request("POST", valid_payload, transport, settings)
        assert isinstance(result, TransportFailed)
        assert result.stage == "acknowledgment"
        assert result.admin_delivered is True
        assert len(transport.sent) == 1

    def test_acknowledgment_failure_ignored_by_policy(self, make_transport, contact_settings, valid_payload, caplog):
        transport = make_transport(fail_on_send={2})
        settings = replace(contact_settings, send_auto_reply=True, ack_failure_policy="ignore")
        with caplog.at_level(logging.WARNING):
            result = handle_contact_request("POST", valid_payload, transport, settings)
        assert isinstance(result, Success)
        assert any(getattr(r, "event", None) == "contact.acknowledgment_failed" for r in caplog.records)

    def test_missing_configuration_is_a_transport_failure(self, transport, contact_settings, valid_payload):
        settings = replace(contact_settings, admin_recipients=())
        result = handle_contact_request("POST", valid_payload, transport, settings)
        assert isinstance(result, TransportFailed)
        assert result.stage == "config"
        assert transport.verify_calls == 0

    def test_strict_names_setting_applies_character_class(self, transport, contact_settings, valid_payload):
        valid_payload["first_name"] = "R2D2"
        lenient = handle_contact_request("POST", valid_payload, transport, contact_settings)
        strict = handle_contact_request(
            "POST", valid_payload, transport, replace(contact_settings, strict_names=True)
        )
        assert isinstance(lenient, Success)
        assert isinstance(strict, ValidationFailed)

    def test_identical_requests_dispatch_twice(self, transport, contact_settings, valid_payload):
        first = handle_contact_request("POST", valid_payload, transport, contact_settings)
        second = handle_contact_request("POST", dict(valid_payload), transport, contact_settings)
        assert isinstance(first, Success) and isinstance(second, Success)
        assert transport.verify_calls == 2
        assert len(transport.sent) == 2


class TestLogging:

    def test_success_logs_name_and_email(self, transport, contact_settings, valid_payload, caplog):
        with caplog.at_level(logging.INFO):
            handle_contact_request("POST", valid_payload, transport, contact_settings)
        submitted = [r for r in caplog.records if getattr(r, "event", None) == "contact.submitted"]
        assert len(submitted) == 1
        assert "Grace Hopper (grace@example.com)" in submitted[0].getMessage()

    def test_transport_failure_logged_with_detail(self, make_transport, contact_settings, valid_payload, caplog):
        transport = make_transport(fail_verify=True)
        with caplog.at_level(logging.ERROR):
            handle_contact_request("POST", valid_payload, transport, contact_settings)
        failures = [r for r in caplog.records if getattr(r, "event", None) == "contact.transport_failed"]
        assert len(failures) == 1
        assert failures[0].stage == "verify"
        assert "535 authentication failed" in failures[0].getMessage()
        assert failures[0].exc_info is not None

    def test_validation_failure_is_not_logged_as_error(self, transport, contact_settings, caplog):
        with caplog.at_level(logging.INFO):
            handle_contact_request("POST", {}, transport, contact_settings)
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


class TestBuildResponse:

    def test_preflight_has_no_body(self, contact_settings):
        assert build_response(Preflight(), contact_settings) == (None, 200)

    def test_method_not_allowed(self, contact_settings):
        body, status = build_response(MethodNotAllowed("GET"), contact_settings)
        assert status == 405
        assert body == {"success": False, "message": METHOD_NOT_ALLOWED_MESSAGE}

    def test_validation_failed(self, contact_settings):
        result = ValidationFailed([ValidationError("subject", "Subject must be between 5 and 100 characters")])
        body, status = build_response(result, contact_settings)
        assert status == 400
        assert body == {
            "success": False,
            "message": "Validation failed",
            "errors": [{"field": "subject", "message": "Subject must be between 5 and 100 characters"}],
        }

    def test_transport_failed_exposes_detail_outside_production(self, contact_settings):
        body, status = build_response(TransportFailed("admin", "boom"), contact_settings)
        assert status == 500
        assert body == {"success": False, "message": TRANSPORT_FAILED_MESSAGE, "error": "boom"}

    def test_transport_failed_hides_detail_in_production(self, contact_settings):
        settings = replace(contact_settings, expose_error_detail=False)
        body, status = build_response(TransportFailed("admin", "boom"), settings)
        assert status == 500
        assert "error" not in body

    def test_success(self, contact_settings):
        body, status = build_response(Success("2026-10-19T12:30:45.123Z"), contact_settings)
        assert status == 200
        assert body == {"success": True, "message": "Email sent successfully", "timestamp": "2026-10-19T12:30:45.123Z"}


def test_iso_timestamp_uses_utc_z_suffix():
    assert iso_timestamp(NOW) == "2026-10-19T12:30:45.123Z"
