"""Exception alerts for a Discord webhook.

:class:`DiscordNotifier` turns an exception into a Discord embed payload
(message, location, request details and runtime metadata) and POSTs it to
the configured webhook with ``aiohttp``. It is wired into an
:class:`~stackboot.services.reporting.ErrorReporter` as a reportable
callback so every reported or unhandled exception raises an alert.

Alerts are sent only when all of the following hold:

- ``services.discord.exceptions`` is enabled,
- ``app.env`` is ``production`` or ``prod``,
- ``services.discord.webhook_url`` (``DISCORD_ALERT_WEBHOOK``) is non-empty.

The notifier never raises; it returns a
:class:`~stackboot.services.reporting.DispatchResult`.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

import aiohttp

from stackboot import __version__
from stackboot.config import (
    DISCORD_ALERT_ENVIRONMENTS,
    DISCORD_DEFAULT_USERNAME,
    DISCORD_EMBED_COLOR,
    DISCORD_REQUEST_TIMEOUT,
)
from stackboot.exceptions import ExternalServiceError
from stackboot.settings import env_flag

from .reporting import DispatchResult, ErrorReporter

logger = logging.getLogger(__name__)

OPERATION = "discord_webhook"


class ConfigReader(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


@dataclass(frozen=True)
class RequestContext:
    """Request details attached to an alert; CLI runs use the defaults."""

    method: str = "CLI"
    full_url: str = "N/A"
    server_addr: str = "N/A"
    client_ip: str = "N/A"


def exception_location(error: BaseException) -> tuple[str, str]:
    r"""Return ``(file, line)`` of the innermost frame of ``error``.

    Exceptions that were never raised have no traceback and report
    ``("N/A", "N/A")``.

    Examples
    --------
    >>> exception_location(ValueError("x"))
    ('N/A', 'N/A')
    """
    frames = traceback.extract_tb(error.__traceback__)
    if not frames:
        return "N/A", "N/A"
    last = frames[-1]
    return last.filename, str(last.lineno)


def _field(name: str, value: Any, inline: bool = True) -> dict[str, Any]:
    text = "N/A" if value is None or value == "" else str(value)
    return {"name": name, "value": text, "inline": inline}


class DiscordNotifier:
    r"""Format and post exception alerts to a Discord webhook.

    Parameters
    ----------
    config : ConfigReader
        Runtime configuration (``app.*``, ``database.default`` and
        ``services.discord.*``).
    session_factory : Callable[[], aiohttp.ClientSession], optional
        Creates the HTTP session; injectable for tests.
    timeout : float, optional
        Total request timeout in seconds.
    clock : Callable[[], datetime] | None, optional
        Source of the embed timestamp.
    """

    def __init__(
        self,
        config: ConfigReader,
        *,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
        timeout: float = DISCORD_REQUEST_TIMEOUT,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.session_factory = session_factory
        self.timeout = timeout
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def enabled(self) -> bool:
        return env_flag(self.config.get("services.discord.exceptions", False))

    @property
    def webhook_url(self) -> str:
        return self.config.get("services.discord.webhook_url") or ""

    @property
    def environment(self) -> str:
        return str(self.config.get("app.env", ""))

    def should_post(self) -> bool:
        return (
            self.environment in DISCORD_ALERT_ENVIRONMENTS and bool(self.webhook_url)
        )

    def build_payload(
        self, error: BaseException, request: RequestContext | None = None
    ) -> dict[str, Any]:
        r"""Build the webhook payload for ``error``.

        Parameters
        ----------
        error : BaseException
            The exception being reported.
        request : RequestContext | None, optional
            Request details; defaults to a CLI context.

        Returns
        -------
        dict[str, Any]
            JSON-serialisable payload with a single embed.
        """
        request = request or RequestContext()
        file, line = exception_location(error)
        environment = self.environment
        fields = [
            _field("File", file, inline=False),
            _field("Line", line),
            _field("Environment", environment),
            _field("Request Method", request.method),
            _field("Request", request.full_url, inline=False),
            _field("App Name", self.config.get("app.name")),
            _field("Environment", environment),
            _field("Debug Mode", "Enabled" if self.config.get("app.debug") else "Disabled"),
            _field("Python Version", platform.python_version()),
            _field("Stackboot Version", __version__),
            _field("DB Connection", self.config.get("database.default")),
            _field("Server IP", request.server_addr),
            _field("Client IP", request.client_ip),
        ]
        payload: dict[str, Any] = {
            "username": self.config.get(
                "services.discord.username", DISCORD_DEFAULT_USERNAME
            ),
            "embeds": [
                {
                    "title": "Exception Alert",
                    "description": f"**Message:** {error}",
                    "color": DISCORD_EMBED_COLOR,
                    "fields": fields,
                    "timestamp": self.clock().isoformat(),
                }
            ],
        }
        avatar_url = self.config.get("services.discord.avatar_url")
        if avatar_url:
            payload["avatar_url"] = avatar_url
        return payload

    def _gate(self) -> DispatchResult | None:
        if not self.enabled:
            return DispatchResult.skipped(OPERATION, "exception alerts disabled")
        if not self.should_post():
            return DispatchResult.skipped(
                OPERATION, f"not posting for environment {self.environment!r}"
            )
        return None

    async def post(self, payload: dict[str, Any]) -> DispatchResult:
        """POST ``payload`` to the webhook; failures become a failed result."""
        try:
            async with self.session_factory() as session:
                async with session.post(
                    self.webhook_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status = response.status
                    if status >= 400:
                        body = await response.text()
                        error = ExternalServiceError(
                            f"Discord webhook returned HTTP {status}",
                            context={"status": status, "body": body[:200]},
                        )
                        return DispatchResult.failed(OPERATION, error.message, error)
        except (aiohttp.ClientError, asyncio.TimeoutError) as error:
            return DispatchResult.failed(
                OPERATION, f"Discord webhook request failed: {error!r}", error
            )
        return DispatchResult.sent(OPERATION, f"HTTP {status}")

    async def notify_async(
        self, error: BaseException, request: RequestContext | None = None
    ) -> DispatchResult:
        """Coroutine variant of :meth:`notify` for callers with a running loop."""
        gated = self._gate()
        if gated is not None:
            return gated
        return await self.post(self.build_payload(error, request))

    def notify(
        self, error: BaseException, request: RequestContext | None = None
    ) -> DispatchResult:
        r"""Send an alert for ``error`` if alerts are enabled for this environment.

        Returns
        -------
        DispatchResult
            ``skipped`` when disabled, outside production or without a
            webhook URL; ``sent`` or ``failed`` otherwise. Called from a
            running event loop the alert is not posted and the result is
            ``failed``; use :meth:`notify_async` there.
        """
        gated = self._gate()
        if gated is not None:
            return gated
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.post(self.build_payload(error, request)))
        loop_error = RuntimeError("notify() called from a running event loop")
        return DispatchResult.failed(
            OPERATION, "use notify_async() inside an event loop", loop_error
        )

    def register(self, reporter: ErrorReporter) -> None:
        """Register this notifier as a reportable callback on ``reporter``."""

        def _alert(error: BaseException) -> None:
            reporter.handle_result(self.notify(error), logger, forward=False)

        reporter.reportable(_alert)


__all__ = ["DiscordNotifier", "RequestContext", "exception_location"]
