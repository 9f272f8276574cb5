"""Orchestrator for the setup pipeline.

Provides the entrypoint used by the CLI to validate a setup request and
iterate the declarative step list (:data:`steps.DEFAULT_STEPS`) in order.
Every step is either executed or explicitly reported as skipped. Fatal
steps abort the run; all other failures are reported and the pipeline
continues to completion.

This module focuses on sequencing and console reporting; the work itself
lives in the step actions and their collaborators.

Typical usage::

    from stackboot.setup.pipeline.orchestrator import SetupOrchestrator

    orchestrator = SetupOrchestrator(project_root)
    code = orchestrator.run_from_arguments("local", skip_flags=["serve"])

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from enum import IntEnum
from pathlib import Path

from stackboot.exceptions import StepFailedError, UserInputError
from stackboot.settings import ConfigWriter, EnvironmentReader, RuntimeConfig
from stackboot.setup.dispatcher import ArtisanDispatcher, CommandDispatcher
from stackboot.setup.i18n import _ as _
from stackboot.setup.ui.basic import (
    get_console,
    ui_comment,
    ui_error,
    ui_header,
    ui_new_line,
    ui_success,
)
from stackboot.setup.ui.prompts import ask_confirm

from .run import ProcessRunner, run_shell
from .status import SetupReport, StepOutcome, render_summary
from .steps import (
    DEFAULT_STEPS,
    EnvironmentLookup,
    SetupRequest,
    StepContext,
    StepDescriptor,
    StepResult,
)

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """Process exit status of the setup command."""

    SUCCESS = 0
    FAILURE = 1
    INVALID = 2


def count_steps(
    request: SetupRequest, steps: Sequence[StepDescriptor] = DEFAULT_STEPS
) -> int:
    r"""Return the total shown in ``Step i/N`` announcements.

    Optional (environment-gated) steps count only when they will run, so
    the default pipeline totals 8 for a local run that starts the dev
    server and 7 otherwise.

    Examples
    --------
    >>> count_steps(SetupRequest.from_cli("local"))
    8
    >>> count_steps(SetupRequest.from_cli("local", skip_flags=["serve"]))
    7
    """
    return sum(1 for step in steps if step.is_counted(request))


class SetupOrchestrator:
    r"""Run the setup pipeline for an application checkout.

    Parameters
    ----------
    project_root : Path
        Root of the application being set up; commands run from here and
        the ``.env`` files live here.
    steps : Sequence[StepDescriptor], optional
        Ordered pipeline definition. Defaults to ``DEFAULT_STEPS``.
    runner : ProcessRunner, optional
        Shell runner used by shell steps and the default dispatcher.
    dispatcher : CommandDispatcher | None, optional
        Framework command dispatcher. Defaults to ``php artisan``.
    config : ConfigWriter | None, optional
        Runtime configuration receiving the database engine override.
    env : EnvironmentLookup | None, optional
        Environment lookup; defaults to ``.env`` overlaid by ``os.environ``.
    confirm : Callable[[str, bool], bool] | None, optional
        Yes/no prompt. Defaults to :func:`ask_confirm`, honouring the
        request's ``interactive`` flag.
    platform_name : str | None, optional
        Host OS family as reported by ``platform.system()``.

    Attributes
    ----------
    last_report : SetupReport | None
        Outcomes of the most recent run that passed validation.
    """

    def __init__(
        self,
        project_root: Path,
        *,
        steps: Sequence[StepDescriptor] = DEFAULT_STEPS,
        runner: ProcessRunner = run_shell,
        dispatcher: CommandDispatcher | None = None,
        config: ConfigWriter | None = None,
        env: EnvironmentLookup | None = None,
        confirm: Callable[[str, bool], bool] | None = None,
        platform_name: str | None = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.steps = tuple(steps)
        self.runner = runner
        self.dispatcher = dispatcher or ArtisanDispatcher(self.project_root, runner)
        self.config = config if config is not None else RuntimeConfig()
        self.env = env if env is not None else EnvironmentReader(self.project_root)
        self.confirm = confirm
        self.platform_name = platform_name
        self.last_report: SetupReport | None = None

    def run_from_arguments(
        self,
        environment: str,
        skip_flags: Iterable[str] = (),
        interactive: bool = True,
    ) -> ExitCode:
        """Validate raw CLI values and run; invalid input yields ``INVALID``."""
        try:
            request = SetupRequest.from_cli(environment, skip_flags, interactive)
        except UserInputError as error:
            logger.error("Rejected setup request: %s", error)
            ui_error(error.message)
            return ExitCode.INVALID
        return self.run(request)

    def run(self, request: SetupRequest) -> ExitCode:
        r"""Execute the pipeline for ``request``.

        Parameters
        ----------
        request : SetupRequest
            Validated setup request.

        Returns
        -------
        ExitCode
            ``FAILURE`` when a fatal step failed, otherwise ``SUCCESS`` (also
            when non-fatal steps failed, were skipped or were declined).
        """
        total = count_steps(request, self.steps)
        report = SetupReport(environment=request.environment, total_steps=total)
        self.last_report = report
        context = self._context(request)

        ui_header(_("header_started", environment=request.environment.value.upper()))
        ui_new_line()
        logger.info(
            "Setup started: environment=%s skip=%s",
            request.environment.value,
            sorted(request.skip),
        )

        try:
            self._run_steps(request, context, report, total)
        except StepFailedError as error:
            logger.error("Setup aborted: %s", error)
            ui_new_line()
            ui_error(_("setup_aborted", title=error.message))
            return ExitCode.FAILURE

        ui_new_line()
        ui_success(_("setup_completed"))
        get_console().print(render_summary(report))
        logger.info("Setup completed with %d failed step(s)", len(report.failures()))
        return ExitCode.SUCCESS

    def _context(self, request: SetupRequest) -> StepContext:
        confirm = self.confirm
        if confirm is None:

            def confirm(prompt: str, default: bool) -> bool:
                return ask_confirm(prompt, default, interactive=request.interactive)

        context = StepContext(
            request=request,
            project_root=self.project_root,
            runner=self.runner,
            dispatcher=self.dispatcher,
            config=self.config,
            env=self.env,
            confirm=confirm,
        )
        if self.platform_name is not None:
            context.platform_name = self.platform_name
        return context

    def _run_steps(
        self,
        request: SetupRequest,
        context: StepContext,
        report: SetupReport,
        total: int,
    ) -> None:
        number = 1
        for step in self.steps:
            title = _(step.title_key)
            if step.optional and not step.should_run(request):
                notice = step.skip_notice(request)
                ui_comment(notice)
                report.record(StepOutcome(step.name, title, None, StepResult.skipped(notice)))
                ui_new_line()
                continue

            ui_comment(_("step_progress", step=number, total=total, title=title))
            if request.skips(step.skip_flag):
                notice = step.skip_notice(request)
                ui_comment(notice)
                result = StepResult.skipped(notice)
            else:
                logger.info("Running step %d/%d: %s", number, total, step.name)
                result = step.action(context)
                logger.info("Step %s finished: %s", step.name, result.status.value)
            report.record(StepOutcome(step.name, title, number, result))

            if not result.success and step.fatal:
                raise StepFailedError(
                    result.message or title,
                    context={"step": step.name, "number": number},
                )
            ui_new_line()
            number += 1


__all__ = ["ExitCode", "SetupOrchestrator", "count_steps"]
