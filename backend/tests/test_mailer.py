"""
Notification dispatcher
"""
import asyncio

import aiosmtplib
import pytest

from veriboard.core.config import settings
from veriboard.notifications import mailer as mailer_module
from veriboard.notifications.mailer import OtpMailer, dispatch_code
from veriboard.notifications.templates import render_code_message


@pytest.fixture
def smtp_settings(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_USER", "mailer@example.com")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "app-password")


class FakeSMTP:
    """Stands in for aiosmtplib.send; outcomes are consumed in order"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def __call__(self, message, **kwargs):
        self.calls.append({"message": message, **kwargs})
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        return ({}, "OK")


def test_templates_differ_by_purpose():
    register = render_code_message("123456", "register", 10)
    reset = render_code_message("123456", "reset-password", 10)
    assert register["subject"] != reset["subject"]
    assert "123456" in reset["text"]
    assert "<h2>123456</h2>" in reset["html"]
    assert "10 minutes" in register["text"]


def test_transport_order_with_explicit_port(smtp_settings, monkeypatch):
    monkeypatch.setattr(settings, "SMTP_PORT", 2525)
    transports = OtpMailer().build_transports()
    assert [(t["port"], t["use_tls"]) for t in transports] == [(2525, False), (587, False), (465, True)]


def test_transport_candidates_are_deduplicated(smtp_settings, monkeypatch):
    monkeypatch.setattr(settings, "SMTP_PORT", 465)
    transports = OtpMailer().build_transports()
    assert [(t["port"], t["use_tls"]) for t in transports] == [(465, True), (587, False)]


def test_postmark_is_tried_first_and_attempts_are_capped(smtp_settings, monkeypatch):
    monkeypatch.setattr(settings, "POSTMARK_API_KEY", "pm-token")
    monkeypatch.setattr(settings, "MAIL_MAX_TRANSPORT_ATTEMPTS", 2)
    transports = OtpMailer().build_transports()
    assert len(transports) == 2
    assert transports[0]["hostname"] == "smtp.postmarkapp.com"
    assert transports[0]["username"] == "pm-token"


def test_unconfigured_mail_is_skipped():
    result = asyncio.run(OtpMailer().send_code("jane@example.com", "123456", "register"))
    assert result["delivered"] is False
    assert result["skipped"] is True


def test_falls_over_to_next_transport(smtp_settings, monkeypatch):
    fake = FakeSMTP(aiosmtplib.SMTPConnectError("connection refused"), None)
    monkeypatch.setattr(mailer_module.aiosmtplib, "send", fake)

    result = asyncio.run(OtpMailer().send_code("jane@example.com", "654321", "login-2fa"))

    assert result["delivered"] is True
    assert result["attempts"] == 2
    assert result["transport"] == "smtp.example.com:465"
    assert [call["port"] for call in fake.calls] == [587, 465]
    message = fake.calls[1]["message"]
    assert message["To"] == "jane@example.com"
    assert message["Subject"] == "Your VeriBoard login code"


def test_reports_failure_when_every_transport_fails(smtp_settings, monkeypatch):
    fake = FakeSMTP(
        aiosmtplib.SMTPConnectError("refused"),
        aiosmtplib.SMTPTimeoutError("timed out"),
    )
    monkeypatch.setattr(mailer_module.aiosmtplib, "send", fake)

    result = asyncio.run(OtpMailer().send_code("jane@example.com", "654321", "register"))

    assert result["delivered"] is False
    assert result["skipped"] is False
    assert result["attempts"] == 2
    assert "SMTPTimeoutError" in result["error"]


def test_message_rejection_does_not_try_other_transports(smtp_settings, monkeypatch):
    fake = FakeSMTP(aiosmtplib.SMTPDataError(554, "rejected"))
    monkeypatch.setattr(mailer_module.aiosmtplib, "send", fake)

    result = asyncio.run(OtpMailer().send_code("jane@example.com", "654321", "register"))

    assert result["delivered"] is False
    assert result["attempts"] == 1
    assert len(fake.calls) == 1


def test_dispatch_never_raises(monkeypatch):
    async def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(mailer_module.mailer, "send_code", explode)
    asyncio.run(dispatch_code("jane@example.com", "123456", "register"))
