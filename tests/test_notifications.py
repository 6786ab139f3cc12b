"""Tests for delivering one-time parent credentials."""

import dataclasses
import logging
import smtplib

import pytest

from tuition_module import notifications
from tuition_module.notifications import CredentialDispatchError, notify_parent_credentials

LOGGER = "tuition_module.notifications"


class FakeSMTP:
    """Stands in for ``smtplib.SMTP`` and records what would have been sent."""

    instances = []

    def __init__(self, host, port, timeout=None, fail_with=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.fail_with = fail_with
        self.logged_in = None
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        self.logged_in = (username, password)

    def sendmail(self, sender, recipients, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((sender, recipients, message))


@pytest.fixture(autouse=True)
def reset_fake_smtp():
    FakeSMTP.instances = []


def use_settings(monkeypatch, **overrides):
    monkeypatch.setattr(notifications, "settings", dataclasses.replace(notifications.settings, **overrides))


def send(password="Temp1234xy"):
    return notify_parent_credentials(recipient_email="p@x.com", student_name="Alice", password=password)


class TestConsoleFallback:
    def test_missing_smtp_logs_password_once(self, monkeypatch, caplog):
        use_settings(monkeypatch, smtp_username="", smtp_password="", allow_console_fallback=True)

        with caplog.at_level(logging.INFO, logger=LOGGER):
            delivered = send()

        assert delivered is False
        mentions = [record for record in caplog.records if "Temp1234xy" in record.getMessage()]
        assert len(mentions) == 1
        assert mentions[0].levelno == logging.WARNING
        assert "p@x.com" in mentions[0].getMessage()

    def test_missing_smtp_raises_without_fallback(self, monkeypatch, caplog):
        use_settings(monkeypatch, smtp_username="", smtp_password="", allow_console_fallback=False)

        with caplog.at_level(logging.INFO, logger=LOGGER):
            with pytest.raises(CredentialDispatchError):
                send()

        assert not any("Temp1234xy" in record.getMessage() for record in caplog.records)

    def test_smtp_failure_falls_back(self, monkeypatch, caplog):
        use_settings(monkeypatch, smtp_username="tutor@x.com", smtp_password="app-pass", allow_console_fallback=True)
        monkeypatch.setattr(
            notifications.smtplib,
            "SMTP",
            lambda host, port, timeout=None: FakeSMTP(host, port, timeout, fail_with=smtplib.SMTPException("relay denied")),
        )

        with caplog.at_level(logging.INFO, logger=LOGGER):
            delivered = send()

        assert delivered is False
        assert len([record for record in caplog.records if "Temp1234xy" in record.getMessage()]) == 1

    def test_smtp_failure_raises_without_fallback(self, monkeypatch):
        use_settings(monkeypatch, smtp_username="tutor@x.com", smtp_password="app-pass", allow_console_fallback=False)
        monkeypatch.setattr(
            notifications.smtplib,
            "SMTP",
            lambda host, port, timeout=None: FakeSMTP(host, port, timeout, fail_with=OSError("connection refused")),
        )

        with pytest.raises(CredentialDispatchError) as exc_info:
            send()

        assert "connection refused" in str(exc_info.value)


class TestEmailDelivery:
    def test_sends_credentials_email(self, monkeypatch, caplog):
        use_settings(
            monkeypatch,
            smtp_host="smtp.example.com",
            smtp_port=2525,
            smtp_username="tutor@x.com",
            smtp_password="app-pass",
            allow_console_fallback=True,
        )
        monkeypatch.setattr(notifications.smtplib, "SMTP", FakeSMTP)

        with caplog.at_level(logging.INFO, logger=LOGGER):
            delivered = send()

        assert delivered is True
        [server] = FakeSMTP.instances
        assert (server.host, server.port) == ("smtp.example.com", 2525)
        assert server.logged_in == ("tutor@x.com", "app-pass")
        [(sender, recipients, message)] = server.sent
        assert sender == "tutor@x.com"
        assert recipients == ["p@x.com"]
        assert "Temp1234xy" in message
        assert "Alice" in message
        assert not any("Temp1234xy" in record.getMessage() for record in caplog.records)
