"""Mail dispatch helper.

:class:`MailService` sends a :class:`MailMessage` to one or more
recipients, either immediately or through a delayed queue, and merges a
global BCC list (``app.mail_bcc``) with per-call additions when the
application runs under the ``prod`` designation. Delivery itself is
delegated to a :class:`MailTransport`; the default :class:`SmtpTransport`
uses ``smtplib`` and keeps delayed messages in an in-memory outbox.

No method raises. Every call returns a
:class:`~stackboot.services.reporting.DispatchResult`; callers log and
forward failures through :class:`~stackboot.services.reporting.ErrorReporter`.

Examples
--------
>>> from stackboot.settings import RuntimeConfig
>>> class NullTransport:
...     def send(self, envelope): pass
...     def later(self, delay, envelope): pass
>>> service = MailService(NullTransport(), RuntimeConfig.from_environment({}))
>>> service.send_now([], MailMessage("Hi", "Body")).status.value
'skipped'
"""

from __future__ import annotations

import heapq
import itertools
import logging
import random
import smtplib
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import timedelta
from email.message import EmailMessage
from typing import Any, Protocol

from stackboot.config import (
    MAIL_BCC_ENVIRONMENT,
    MAIL_QUEUE_JITTER_MAX_MS,
    MAIL_QUEUE_JITTER_MIN_MS,
    MAIL_QUEUE_NAME,
)
from stackboot.exceptions import ConfigurationError

from .reporting import DispatchResult

logger = logging.getLogger(__name__)

Recipients = str | Sequence[str]


class ConfigReader(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


@dataclass(frozen=True)
class MailMessage:
    """Content of an email."""

    subject: str
    text_body: str
    html_body: str | None = None
    sender: str | None = None


@dataclass(frozen=True)
class MailEnvelope:
    """A message together with its recipients and optional queue name."""

    to: tuple[str, ...]
    bcc: tuple[str, ...]
    message: MailMessage
    queue: str | None = None


class MailTransport(Protocol):
    """Delivery backend used by :class:`MailService`."""

    def send(self, envelope: MailEnvelope) -> None: ...

    def later(self, delay: timedelta, envelope: MailEnvelope) -> None: ...


def parse_address_list(value: str | None) -> list[str]:
    r"""Split a comma-separated address list, trimming blanks.

    Examples
    --------
    >>> parse_address_list(" a@x.io, ,b@x.io ")
    ['a@x.io', 'b@x.io']
    """
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def merge_unique(*groups: Iterable[str]) -> list[str]:
    """Concatenate address groups, keeping the first occurrence of each."""
    return list(dict.fromkeys(addr for group in groups for addr in group))


def _normalize_recipients(to: Recipients | None) -> list[str]:
    if not to:
        return []
    if isinstance(to, str):
        return [to.strip()] if to.strip() else []
    return [addr.strip() for addr in to if addr and addr.strip()]


class MailService:
    r"""Send mail immediately or through a jittered queue.

    Parameters
    ----------
    transport : MailTransport
        Delivery backend.
    config : ConfigReader
        Runtime configuration (``app.env``, ``app.mail_bcc``,
        ``mail.queue_jitter_ms``).
    jitter_ms : tuple[int, int] | None, optional
        Inclusive window, in milliseconds, for the random delay applied to
        queued mail. Defaults to ``mail.queue_jitter_ms`` (100-1000 ms).
    rng : random.Random | None, optional
        Random source, injectable for deterministic tests.

    Raises
    ------
    ConfigurationError
        If the jitter window is negative or inverted.
    """

    def __init__(
        self,
        transport: MailTransport,
        config: ConfigReader,
        *,
        jitter_ms: tuple[int, int] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.transport = transport
        self.config = config
        if jitter_ms is None:
            jitter_ms = tuple(
                config.get(
                    "mail.queue_jitter_ms",
                    [MAIL_QUEUE_JITTER_MIN_MS, MAIL_QUEUE_JITTER_MAX_MS],
                )
            )
        low, high = (int(v) for v in jitter_ms)
        if low < 0 or high < low:
            raise ConfigurationError(
                "Invalid mail queue jitter window",
                context={"jitter_ms": [low, high]},
            )
        self.jitter_ms = (low, high)
        self.rng = rng or random.Random()

    def filter_enabled_recipients(self, to: list[str]) -> list[str]:
        """Hook for per-recipient notification preferences; identity by default."""
        return to

    def build_bcc_list(self, additional_bcc: Iterable[str] = ()) -> list[str]:
        r"""Return the BCC list for the current environment.

        Outside ``prod`` the list is always empty. Inside ``prod`` it is the
        comma-separated ``app.mail_bcc`` value merged with
        ``additional_bcc``, without duplicates.
        """
        if self.config.get("app.env") != MAIL_BCC_ENVIRONMENT:
            return []
        general = parse_address_list(self.config.get("app.mail_bcc"))
        return merge_unique(general, additional_bcc)

    def queue_delay(self) -> timedelta:
        """Draw the random delay applied to a queued message."""
        low, high = self.jitter_ms
        return timedelta(milliseconds=self.rng.randint(low, high))

    def _prepare(
        self,
        operation: str,
        to: Recipients | None,
        message: MailMessage,
        additional_bcc: Iterable[str],
        do_not_attach_bcc: bool,
    ) -> MailEnvelope | DispatchResult:
        recipients = _normalize_recipients(to)
        if not recipients:
            logger.error(
                "%s called without a recipient for message: %s",
                operation,
                message.subject,
            )
            return DispatchResult.skipped(operation, "no recipients")

        recipients = self.filter_enabled_recipients(recipients)
        if not recipients:
            return DispatchResult.skipped(operation, "all recipients filtered")

        bcc = self.build_bcc_list(additional_bcc)
        if do_not_attach_bcc:
            bcc = []
        return MailEnvelope(to=tuple(recipients), bcc=tuple(bcc), message=message)

    def send_to_queue(
        self,
        to: Recipients | None,
        message: MailMessage,
        additional_bcc: Iterable[str] = (),
        do_not_attach_bcc: bool = False,
    ) -> DispatchResult:
        """Queue ``message`` on the ``mail`` queue after a random delay."""
        operation = "send_to_queue"
        try:
            prepared = self._prepare(
                operation, to, message, additional_bcc, do_not_attach_bcc
            )
            if isinstance(prepared, DispatchResult):
                return prepared
            delay = self.queue_delay()
            self.transport.later(delay, replace(prepared, queue=MAIL_QUEUE_NAME))
            return DispatchResult.queued(
                operation, f"delay={int(delay.total_seconds() * 1000)}ms"
            )
        except Exception as error:
            return DispatchResult.failed(
                operation, f"Exception caught in {operation}: {error}", error
            )

    def send_now(
        self,
        to: Recipients | None,
        message: MailMessage,
        additional_bcc: Iterable[str] = (),
        do_not_attach_bcc: bool = False,
    ) -> DispatchResult:
        """Send ``message`` immediately, bypassing the queue."""
        operation = "send_now"
        try:
            prepared = self._prepare(
                operation, to, message, additional_bcc, do_not_attach_bcc
            )
            if isinstance(prepared, DispatchResult):
                return prepared
            self.transport.send(prepared)
            return DispatchResult.sent(operation)
        except Exception as error:
            return DispatchResult.failed(
                operation, f"Exception caught in {operation}: {error}", error
            )


class SmtpTransport:
    r"""Deliver mail over SMTP with an in-memory outbox for delayed sends.

    Parameters
    ----------
    host, port : str, int
        SMTP server address.
    username, password : str | None, optional
        Credentials; login is attempted only when a username is set.
    encryption : str | None, optional
        ``"tls"`` for STARTTLS, ``"ssl"`` for implicit TLS, None for plain.
    from_address : str, optional
        Sender used when a message has no explicit sender.
    timeout : float, optional
        Socket timeout passed to ``smtplib``.
    clock : Callable[[], float], optional
        Monotonic clock used to schedule delayed messages.

    Notes
    -----
    ``later`` only records the envelope with its due time. Delayed messages
    are delivered by :meth:`flush`, in due order.
    """

    def __init__(
        self,
        host: str,
        port: int = 25,
        *,
        username: str | None = None,
        password: str | None = None,
        encryption: str | None = None,
        from_address: str = "hello@example.com",
        timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.encryption = encryption
        self.from_address = from_address
        self.timeout = timeout
        self.clock = clock
        self._outbox: list[tuple[float, int, MailEnvelope]] = []
        self._sequence = itertools.count()

    @classmethod
    def from_config(cls, config: ConfigReader) -> "SmtpTransport":
        return cls(
            config.get("mail.host", "127.0.0.1"),
            int(config.get("mail.port", 25)),
            username=config.get("mail.username"),
            password=config.get("mail.password"),
            encryption=config.get("mail.encryption"),
            from_address=config.get("mail.from_address", "hello@example.com"),
        )

    def build_message(self, envelope: MailEnvelope) -> EmailMessage:
        """Render an envelope as an ``EmailMessage``; BCC stays out of the headers."""
        message = envelope.message
        email = EmailMessage()
        email["From"] = message.sender or self.from_address
        email["To"] = ", ".join(envelope.to)
        email["Subject"] = message.subject
        email.set_content(message.text_body)
        if message.html_body:
            email.add_alternative(message.html_body, subtype="html")
        return email

    def _connect(self) -> smtplib.SMTP:
        if self.encryption == "ssl":
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def send(self, envelope: MailEnvelope) -> None:
        email = self.build_message(envelope)
        with self._connect() as smtp:
            if self.encryption == "tls":
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(email, to_addrs=[*envelope.to, *envelope.bcc])
        logger.info("Mail sent to %d recipient(s): %s", len(envelope.to), envelope.message.subject)

    def later(self, delay: timedelta, envelope: MailEnvelope) -> None:
        due = self.clock() + delay.total_seconds()
        heapq.heappush(self._outbox, (due, next(self._sequence), envelope))
        logger.debug("Queued mail on %s, due in %.3fs", envelope.queue, delay.total_seconds())

    def pending(self) -> int:
        return len(self._outbox)

    def flush(self, now: float | None = None) -> int:
        """Deliver every queued envelope that is due; return how many were sent.

        An envelope leaves the outbox only after it was sent, so a failed
        delivery stays queued and the error propagates.
        """
        now = self.clock() if now is None else now
        sent = 0
        while self._outbox and self._outbox[0][0] <= now:
            envelope = self._outbox[0][2]
            self.send(envelope)
            heapq.heappop(self._outbox)
            sent += 1
        return sent


__all__ = [
    "MailEnvelope",
    "MailMessage",
    "MailService",
    "MailTransport",
    "SmtpTransport",
    "merge_unique",
    "parse_address_list",
]
