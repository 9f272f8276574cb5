"""Rendering helpers for the setup run summary.

Collects per-step outcomes into a :class:`SetupReport` and renders it as
a Rich table with localized status labels once the pipeline finishes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.markup import escape
from rich.table import Table

from stackboot.setup.i18n import _ as _

from .steps import Environment, StepResult, StepStatus


@dataclass(frozen=True)
class StepOutcome:
    """What happened to one step during a run.

    ``number`` is the position shown in the ``Step i/N`` announcement, or
    None for an optional step that was not announced.
    """

    name: str
    title: str
    number: int | None
    result: StepResult


@dataclass
class SetupReport:
    """Ordered outcomes of a setup run."""

    environment: Environment
    total_steps: int
    outcomes: list[StepOutcome] = field(default_factory=list)

    def record(self, outcome: StepOutcome) -> None:
        self.outcomes.append(outcome)

    def executed(self) -> list[str]:
        """Names of the steps whose action actually ran."""
        return [
            o.name
            for o in self.outcomes
            if o.result.status in (StepStatus.RAN, StepStatus.FAILED)
        ]

    def failures(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if not o.result.success]


def status_label(status: StepStatus) -> str:
    r"""Return a localized label for a step status.

    Examples
    --------
    >>> status_label(StepStatus.RAN)
    '✅ Done'
    """
    return _(f"status_{status.value}")


def render_summary(report: SetupReport) -> Table:
    """Build the summary table for ``report``."""
    table = Table(
        title=_("summary_title"),
        show_header=True,
        header_style="bold blue",
    )
    table.add_column(_("summary_step"), style="bold")
    table.add_column(_("summary_status"))
    table.add_column(_("summary_message"), overflow="fold")
    for outcome in report.outcomes:
        label = outcome.name if outcome.number is None else f"{outcome.number}. {outcome.name}"
        table.add_row(
            label, status_label(outcome.result.status), escape(outcome.result.message)
        )
    return table


__all__ = ["SetupReport", "StepOutcome", "render_summary", "status_label"]
