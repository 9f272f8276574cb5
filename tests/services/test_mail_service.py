"""Tests for the mail dispatch helper."""

import random
from datetime import timedelta

import pytest

from stackboot.exceptions import ConfigurationError
from stackboot.services.mail import (
    MailMessage,
    MailService,
    merge_unique,
    parse_address_list,
)
from stackboot.services.reporting import DispatchStatus
from stackboot.settings import RuntimeConfig

MESSAGE = MailMessage("Welcome", "Hello there")


class RecordingTransport:
    def __init__(self, fail=None):
        self.fail = fail
        self.sent = []
        self.queued = []

    def send(self, envelope):
        if self.fail:
            raise self.fail
        self.sent.append(envelope)

    def later(self, delay, envelope):
        if self.fail:
            raise self.fail
        self.queued.append((delay, envelope))


def make_service(env=None, transport=None, **kwargs):
    config = RuntimeConfig.from_environment(env or {})
    return MailService(transport or RecordingTransport(), config, **kwargs)


def test_address_helpers():
    assert parse_address_list(None) == []
    assert parse_address_list("a@x.io, b@x.io,,") == ["a@x.io", "b@x.io"]
    assert merge_unique(["a", "b"], ["b", "c", "a"]) == ["a", "b", "c"]


@pytest.mark.parametrize("to", [None, "", [], ["  "]])
def test_no_recipients_never_touches_transport(to, caplog):
    transport = RecordingTransport()
    service = make_service(transport=transport)
    for result in (service.send_now(to, MESSAGE), service.send_to_queue(to, MESSAGE)):
        assert result.status is DispatchStatus.SKIPPED
        assert result.ok
    assert transport.sent == [] and transport.queued == []
    assert "without a recipient" in caplog.text


def test_filtered_recipients_are_skipped():
    class NobodyWantsMail(MailService):
        def filter_enabled_recipients(self, to):
            return []

    transport = RecordingTransport()
    service = NobodyWantsMail(transport, RuntimeConfig.from_environment({}))
    assert service.send_now("a@x.io", MESSAGE).status is DispatchStatus.SKIPPED
    assert transport.sent == []


def test_bcc_only_in_prod():
    env = {"APP_ENV": "production", "MAIL_BCC": "audit@x.io"}
    assert make_service(env).build_bcc_list(["extra@x.io"]) == []
    env["APP_ENV"] = "prod"
    assert make_service(env).build_bcc_list(["extra@x.io", "audit@x.io"]) == [
        "audit@x.io",
        "extra@x.io",
    ]


def test_send_now_attaches_bcc():
    transport = RecordingTransport()
    service = make_service({"APP_ENV": "prod", "MAIL_BCC": "audit@x.io"}, transport)
    result = service.send_now("user@x.io", MESSAGE, additional_bcc=["boss@x.io"])
    assert result.status is DispatchStatus.SENT
    envelope = transport.sent[0]
    assert envelope.to == ("user@x.io",)
    assert envelope.bcc == ("audit@x.io", "boss@x.io")
    assert envelope.queue is None


def test_do_not_attach_bcc():
    transport = RecordingTransport()
    service = make_service({"APP_ENV": "prod", "MAIL_BCC": "audit@x.io"}, transport)
    service.send_now(["a@x.io", "b@x.io"], MESSAGE, do_not_attach_bcc=True)
    assert transport.sent[0].bcc == ()
    assert transport.sent[0].to == ("a@x.io", "b@x.io")


def test_queue_uses_mail_queue_and_jitter():
    transport = RecordingTransport()
    service = make_service(transport=transport, rng=random.Random(7))
    for _ in range(20):
        result = service.send_to_queue("user@x.io", MESSAGE)
        assert result.status is DispatchStatus.QUEUED
    for delay, envelope in transport.queued:
        assert timedelta(milliseconds=100) <= delay <= timedelta(milliseconds=1000)
        assert envelope.queue == "mail"


def test_configurable_jitter_window():
    transport = RecordingTransport()
    service = make_service(
        {"MAIL_QUEUE_JITTER_MIN_MS": "5", "MAIL_QUEUE_JITTER_MAX_MS": "5"}, transport
    )
    result = service.send_to_queue("user@x.io", MESSAGE)
    assert result.reason == "delay=5ms"
    fixed = make_service(transport=transport, jitter_ms=(0, 0))
    assert fixed.queue_delay() == timedelta(0)


@pytest.mark.parametrize("window", [(-1, 10), (500, 100)])
def test_invalid_jitter_window(window):
    with pytest.raises(ConfigurationError):
        make_service(jitter_ms=window)


def test_transport_errors_become_failed_results():
    error = ConnectionRefusedError("smtp down")
    service = make_service(transport=RecordingTransport(fail=error))
    for result in (
        service.send_now("user@x.io", MESSAGE),
        service.send_to_queue("user@x.io", MESSAGE),
    ):
        assert result.status is DispatchStatus.FAILED
        assert result.error is error
        assert "smtp down" in result.reason
