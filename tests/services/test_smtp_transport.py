"""Tests for the SMTP transport and its delayed outbox."""

from datetime import timedelta

import pytest

import stackboot.services.mail as mail
from stackboot.services.mail import MailEnvelope, MailMessage, SmtpTransport
from stackboot.settings import RuntimeConfig


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, message, to_addrs=None):
        self.calls.append(("send", message, list(to_addrs)))


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mail.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(mail.smtplib, "SMTP_SSL", type("FakeSSL", (FakeSMTP,), {}))
    return FakeSMTP


def envelope(**kwargs):
    message = MailMessage("Report", "plain", html_body=kwargs.pop("html", None))
    return MailEnvelope(
        to=kwargs.pop("to", ("a@x.io",)), bcc=kwargs.pop("bcc", ()), message=message
    )


def test_build_message_hides_bcc():
    transport = SmtpTransport("mail.test", from_address="noreply@x.io")
    email = transport.build_message(envelope(to=("a@x.io", "b@x.io"), bcc=("c@x.io",),
                                             html="<p>hi</p>"))
    assert email["From"] == "noreply@x.io"
    assert email["To"] == "a@x.io, b@x.io"
    assert email["Bcc"] is None
    assert email.is_multipart()


def test_send_with_starttls_and_login(smtp):
    transport = SmtpTransport(
        "mail.test", 587, username="bot", password="pw", encryption="tls"
    )
    transport.send(envelope(bcc=("audit@x.io",)))
    (client,) = smtp.instances
    assert (client.host, client.port) == ("mail.test", 587)
    assert client.calls[0] == "starttls"
    assert client.calls[1] == ("login", "bot", "pw")
    assert client.calls[2][2] == ["a@x.io", "audit@x.io"]
    assert client.calls[-1] == "quit"


def test_send_over_ssl_without_login(smtp):
    transport = SmtpTransport("mail.test", 465, encryption="ssl")
    transport.send(envelope())
    (client,) = smtp.instances
    assert type(client).__name__ == "FakeSSL"
    assert [c for c in client.calls if c == "starttls" or c[0] == "login"] == []


def test_outbox_delivers_when_due(smtp):
    now = [100.0]
    transport = SmtpTransport("mail.test", clock=lambda: now[0])
    transport.later(timedelta(milliseconds=900), envelope(to=("late@x.io",)))
    transport.later(timedelta(milliseconds=200), envelope(to=("early@x.io",)))
    assert transport.pending() == 2
    assert transport.flush() == 0
    now[0] = 100.5
    assert transport.flush() == 1
    assert smtp.instances[0].calls[0][2] == ["early@x.io"]
    assert transport.flush(now=101.0) == 1
    assert transport.pending() == 0


def test_from_config():
    config = RuntimeConfig.from_environment(
        {"MAIL_HOST": "smtp.x.io", "MAIL_PORT": "2525", "MAIL_USERNAME": "u"}
    )
    transport = SmtpTransport.from_config(config)
    assert (transport.host, transport.port, transport.username) == ("smtp.x.io", 2525, "u")
    assert transport.encryption is None


def test_failed_flush_keeps_envelope_queued(monkeypatch):
    class RefusingSMTP(FakeSMTP):
        def __init__(self, host, port, timeout=None):
            raise OSError("connection refused")

    monkeypatch.setattr(mail.smtplib, "SMTP", RefusingSMTP)
    transport = SmtpTransport("mail.test", clock=lambda: 0.0)
    transport.later(timedelta(0), envelope())
    with pytest.raises(OSError):
        transport.flush(now=1.0)
    assert transport.pending() == 1


def test_flush_retries_after_failure(smtp, monkeypatch):
    def refuse(host, port, timeout=None):
        raise OSError("down")

    transport = SmtpTransport("mail.test", clock=lambda: 0.0)
    transport.later(timedelta(0), envelope(to=("retry@x.io",)))
    monkeypatch.setattr(mail.smtplib, "SMTP", refuse)
    with pytest.raises(OSError):
        transport.flush(now=1.0)
    monkeypatch.setattr(mail.smtplib, "SMTP", smtp)
    assert transport.flush(now=1.0) == 1
    assert transport.pending() == 0
    assert smtp.instances[0].calls[0][2] == ["retry@x.io"]
