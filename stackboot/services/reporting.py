"""Result values and error reporting for the service helpers.

Mail delivery and webhook alerts never raise to their callers. Instead
they return a :class:`DispatchResult` describing what happened. The
"log and continue" behaviour for those results is implemented once, in
:meth:`ErrorReporter.handle_result`: failures are logged with their stack
trace and the captured error is forwarded to every registered reportable
callback (for example the Discord notifier).

Typical usage::

    reporter = ErrorReporter()
    notifier.register(reporter)
    reporter.handle_result(mail.send_now("ops@example.com", message))

"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from types import TracebackType

logger = logging.getLogger(__name__)

ReportCallback = Callable[[BaseException], None]


class DispatchStatus(str, Enum):
    """Outcome of a mail or webhook dispatch."""

    SENT = "sent"
    QUEUED = "queued"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class DispatchResult:
    r"""Explicit result of a dispatch attempt.

    Attributes
    ----------
    operation : str
        Name of the operation (``send_now``, ``send_to_queue``, ``discord_webhook``).
    status : DispatchStatus
        What happened.
    reason : str
        Human-readable detail; empty for plain successes.
    error : BaseException | None
        Captured exception for failed dispatches.

    Examples
    --------
    >>> DispatchResult.skipped("send_now", "no recipients").ok
    True
    >>> DispatchResult.failed("send_now", "boom").ok
    False
    """

    operation: str
    status: DispatchStatus
    reason: str = ""
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status is not DispatchStatus.FAILED

    @classmethod
    def sent(cls, operation: str, reason: str = "") -> "DispatchResult":
        return cls(operation, DispatchStatus.SENT, reason)

    @classmethod
    def queued(cls, operation: str, reason: str = "") -> "DispatchResult":
        return cls(operation, DispatchStatus.QUEUED, reason)

    @classmethod
    def skipped(cls, operation: str, reason: str = "") -> "DispatchResult":
        return cls(operation, DispatchStatus.SKIPPED, reason)

    @classmethod
    def failed(
        cls, operation: str, reason: str, error: BaseException | None = None
    ) -> "DispatchResult":
        return cls(operation, DispatchStatus.FAILED, reason, error)


class ErrorReporter:
    """Registry of callbacks that receive reported exceptions."""

    def __init__(self) -> None:
        self._callbacks: list[ReportCallback] = []

    def reportable(self, callback: ReportCallback) -> ReportCallback:
        """Register ``callback``; usable as a decorator."""
        self._callbacks.append(callback)
        return callback

    def report(self, error: BaseException) -> None:
        r"""Forward ``error`` to every registered callback.

        A callback that raises is logged and does not prevent the others
        from running.
        """
        for callback in list(self._callbacks):
            try:
                callback(error)
            except Exception:
                logger.exception("Reportable callback %r failed", callback)

    def handle_result(
        self,
        result: DispatchResult,
        log: logging.Logger | None = None,
        forward: bool = True,
    ) -> DispatchResult:
        r"""Log a dispatch result and forward captured failures.

        Parameters
        ----------
        result : DispatchResult
            Result returned by a service helper.
        log : logging.Logger | None, optional
            Logger to write to; defaults to this module's logger.
        forward : bool, optional
            When False a failure is logged but not passed to ``report``.
            Callbacks handling their own results use this to avoid
            reporting their failures back to themselves.

        Returns
        -------
        DispatchResult
            The same result, for chaining.
        """
        log = log or logger
        if result.status is DispatchStatus.FAILED:
            exc_info = None
            if result.error is not None:
                exc_info = (type(result.error), result.error, result.error.__traceback__)
            log.error(
                "%s failed: %s", result.operation, result.reason, exc_info=exc_info
            )
            if forward and result.error is not None:
                self.report(result.error)
        elif result.status is DispatchStatus.SKIPPED:
            log.debug("%s skipped: %s", result.operation, result.reason)
        else:
            log.info("%s %s", result.operation, result.status.value)
        return result


def install_excepthook(reporter: ErrorReporter) -> Callable[[], None]:
    r"""Route unhandled exceptions through ``reporter``.

    The previous ``sys.excepthook`` still runs afterwards, so the usual
    traceback is printed. ``KeyboardInterrupt`` is not reported.

    Returns
    -------
    Callable[[], None]
        Function that reinstates the previous hook.
    """
    previous = sys.excepthook

    def _hook(
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            reporter.report(exc)
        previous(exc_type, exc, tb)

    sys.excepthook = _hook

    def _restore() -> None:
        sys.excepthook = previous

    return _restore


__all__ = [
    "DispatchResult",
    "DispatchStatus",
    "ErrorReporter",
    "install_excepthook",
]
