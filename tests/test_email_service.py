"""Tests for notification composition and delivery outcomes."""

import logging

import pytest

from app.models.appointment import Appointment
from app.services import email_service
from app.services.email_service import NotificationDispatcher, SmtpTransport
from tests.conftest import RecordingTransport, make_settings


@pytest.fixture
def appointment() -> Appointment:
    return Appointment(
        id="apt_1767225600000_abc123",
        full_name="Tom & <Jerry>",
        email="tom@example.com",
        phone="5551234567",
        preferred_date="2999-01-01",
        preferred_time="9:00 AM",
        message="Sensitive tooth, \"upper left\"",
        status="pending",
    )


class TestTransportAbsent:
    async def test_returns_false_and_warns(self, appointment, caplog):
        dispatcher = NotificationDispatcher(make_settings())
        assert dispatcher.transport is None
        with caplog.at_level(logging.WARNING, logger="app.services.email_service"):
            assert await dispatcher.send_patient_confirmation(appointment) is False
        assert "not configured" in caplog.text

    def test_smtp_transport_built_when_credentials_set(self):
        dispatcher = NotificationDispatcher(make_settings(smtp_user="u@x.com", smtp_password="pw"))
        assert isinstance(dispatcher.transport, SmtpTransport)


class TestPatientEmails:
    async def test_confirmation(self, appointment):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(make_settings(), transport=transport)
        assert await dispatcher.send_patient_confirmation(appointment) is True
        [sent] = transport.sent
        assert sent["to"] == "tom@example.com"
        assert "Confirmed" in sent["subject"]
        assert "Tom &amp; &lt;Jerry&gt;" in sent["html"]
        assert "<Jerry>" not in sent["html"]
        assert "2999-01-01" in sent["html"] and "9:00 AM" in sent["html"]

    async def test_cancellation(self, appointment):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(make_settings(), transport=transport)
        assert await dispatcher.send_patient_cancellation(appointment) is True
        [sent] = transport.sent
        assert "Cancelled" in sent["subject"]
        assert "9:00 AM" in sent["text"]

    async def test_transport_failure_returns_false(self, appointment):
        dispatcher = NotificationDispatcher(make_settings(), transport=RecordingTransport(fail=True))
        assert await dispatcher.send_patient_confirmation(appointment) is False


class TestAdminEmails:
    async def test_new_request_goes_to_admin_with_all_fields(self, appointment):
        transport = RecordingTransport()
        settings = make_settings(admin_notification_email="frontdesk@smilecraft.test")
        dispatcher = NotificationDispatcher(settings, transport=transport)
        assert await dispatcher.send_admin_new_request(appointment) is True
        [sent] = transport.sent
        assert sent["to"] == "frontdesk@smilecraft.test"
        assert appointment.id in sent["html"]
        assert "&quot;upper left&quot;" in sent["html"]
        assert "5551234567" in sent["html"]

    async def test_admin_address_defaults_to_sender(self, appointment):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(make_settings(), transport=transport)
        await dispatcher.send_admin_new_request(appointment)
        assert transport.sent[0]["to"] == "clinic@smilecraft.test"

    async def test_status_change_includes_status(self, appointment):
        transport = RecordingTransport()
        dispatcher = NotificationDispatcher(make_settings(), transport=transport)
        assert await dispatcher.send_admin_status_change(appointment, "confirmed") is True
        [sent] = transport.sent
        assert sent["subject"].startswith("[Admin] Appointment Confirmed")
        assert "CONFIRMED" in sent["html"]


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.calls: list[str] = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append("login")

    def sendmail(self, from_addr, to_addrs, msg):
        self.calls.append("sendmail")
        self.to_addrs = to_addrs


class TestSmtpTransport:
    @pytest.fixture(autouse=True)
    def _fake_smtp(self, monkeypatch):
        FakeSMTP.instances = []
        monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
        monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", FakeSMTP)

    def test_starttls_with_bounded_timeout(self):
        settings = make_settings(smtp_user="u@x.com", smtp_password="pw")
        SmtpTransport(settings).send("p@x.com", "Hi", "<p>Hi</p>", "Hi")
        [smtp] = FakeSMTP.instances
        assert (smtp.host, smtp.port, smtp.timeout) == ("smtp.gmail.com", 587, 10.0)
        assert smtp.calls == ["starttls", "login", "sendmail"]
        assert smtp.to_addrs == ["p@x.com"]

    def test_secure_flag_uses_implicit_tls(self):
        settings = make_settings(smtp_user="u@x.com", smtp_password="pw", smtp_secure=True, smtp_port=465)
        SmtpTransport(settings).send("p@x.com", "Hi", "<p>Hi</p>", "Hi")
        [smtp] = FakeSMTP.instances
        assert smtp.port == 465
        assert smtp.calls == ["login", "sendmail"]
