# tests/test_email_client.py
import smtplib

import pytest

from fridaygt.core import email_client
from fridaygt.core.email_client import SmtpConfig, send_email
from fridaygt.services.notification_service import NotificationService


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(f"login:{username}")

    def send_message(self, msg):
        self.sent.append(msg)

    def quit(self):
        self.calls.append("quit")
        raise smtplib.SMTPServerDisconnected("already closed")


@pytest.fixture(autouse=True)
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_client.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(email_client.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


@pytest.fixture
def smtp_env(monkeypatch):
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_USERNAME", "noreply@fridaygt.example")
    monkeypatch.setenv("SMTP_PASSWORD", "secret")
    monkeypatch.delenv("SMTP_FROM_EMAIL", raising=False)
    monkeypatch.delenv("SMTP_USE_SSL", raising=False)
    monkeypatch.delenv("SMTP_USE_TLS", raising=False)
    monkeypatch.delenv("SMTP_PORT", raising=False)


def test_config_from_env(smtp_env, monkeypatch):
    monkeypatch.setenv("SMTP_USE_SSL", "Yes")
    monkeypatch.setenv("SMTP_PORT", "465")
    config = SmtpConfig.from_env()
    assert config.complete
    assert config.use_ssl is True
    assert config.port == 465
    assert config.sender == "FridayGT <noreply@fridaygt.example>"


def test_send_uses_starttls_and_tolerates_quit_failure(smtp_env, fake_smtp):
    send_email("driver@example.com", "Hello", "Body text")

    server = fake_smtp.instances[0]
    assert server.host == "smtp.example.com"
    assert server.port == 587
    assert server.calls == ["starttls", "login:noreply@fridaygt.example", "quit"]
    msg = server.sent[0]
    assert msg["To"] == "driver@example.com"
    assert msg["Subject"] == "Hello"


def test_missing_configuration_raises(monkeypatch, fake_smtp):
    monkeypatch.delenv("SMTP_HOST", raising=False)
    with pytest.raises(RuntimeError):
        send_email("driver@example.com", "Hello", "Body text")
    assert fake_smtp.instances == []


def test_notification_swallows_unconfigured_smtp(monkeypatch):
    monkeypatch.delenv("SMTP_HOST", raising=False)
    notifications = NotificationService()
    assert notifications.send_approval("driver@example.com", approved=True) is False
