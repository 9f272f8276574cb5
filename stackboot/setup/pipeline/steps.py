"""Step descriptors and actions for the setup pipeline.

The setup pipeline is an ordered tuple of :class:`StepDescriptor` values
(``DEFAULT_STEPS``). Each descriptor names its skip flag, whether its
failure is fatal, an optional environment gate and the action to run.
Actions receive a :class:`StepContext` holding every collaborator they
may touch (process runner, framework dispatcher, configuration writer,
environment lookup and confirmation prompt), so each one can be tested in
isolation with plain fakes.

Typical usage::

    from stackboot.setup.pipeline.steps import DEFAULT_STEPS, SetupRequest

    request = SetupRequest.from_cli("production", skip_flags=["serve"])
    for step in DEFAULT_STEPS:
        print(step.name, step.should_run(request))

"""

from __future__ import annotations

import logging
import platform
import shutil
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from stackboot.config import (
    COMPOSER_INSTALL_LOCAL,
    COMPOSER_INSTALL_PRODUCTION,
    COMPOSER_WINDOWS_FLAGS,
    DB_ENGINE_CONFIG_KEYS,
    DB_ENGINE_ENV_KEY,
    ENV_EXAMPLE_FILENAME,
    ENV_FILENAME,
    GIT_HOOKS_COMMAND,
    NPM_BUILD_COMMAND,
    SKIP_FLAGS,
)
from stackboot.exceptions import UserInputError
from stackboot.settings import ConfigWriter, normalize_env_value
from stackboot.setup.dispatcher import CommandDispatcher
from stackboot.setup.i18n import _ as _
from stackboot.setup.ui.basic import (
    ui_comment,
    ui_error,
    ui_info,
    ui_line,
    ui_warning,
)

from .run import ProcessRunner, run_labelled

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Target environment of a setup run."""

    LOCAL = "local"
    PRODUCTION = "production"


def parse_environment(raw: str) -> Environment:
    r"""Parse the environment argument (case-insensitive).

    Parameters
    ----------
    raw : str
        Value given on the command line.

    Returns
    -------
    Environment
        The matching environment.

    Raises
    ------
    UserInputError
        If the value is not ``local`` or ``production``.

    Examples
    --------
    >>> parse_environment("PRODUCTION")
    <Environment.PRODUCTION: 'production'>
    """
    value = (raw or "").lower()
    try:
        return Environment(value)
    except ValueError:
        raise UserInputError(
            _("invalid_environment", environment=value),
            context={"environment": raw},
        ) from None


@dataclass(frozen=True)
class SetupRequest:
    """Immutable description of one setup run.

    Attributes
    ----------
    environment : Environment
        Target environment.
    skip : frozenset[str]
        Skip flags set on the command line (names from ``SKIP_FLAGS``).
    interactive : bool
        False answers every confirmation with its default.
    """

    environment: Environment
    skip: frozenset[str] = frozenset()
    interactive: bool = True

    def __post_init__(self) -> None:
        unknown = sorted(set(self.skip) - set(SKIP_FLAGS))
        if unknown:
            raise UserInputError(
                f"Unknown skip flag(s): {', '.join(unknown)}",
                context={"flags": unknown},
            )

    @classmethod
    def from_cli(
        cls,
        environment: str,
        skip_flags: Iterable[str] = (),
        interactive: bool = True,
    ) -> "SetupRequest":
        """Build a request from raw CLI values, validating the environment."""
        return cls(
            environment=parse_environment(environment),
            skip=frozenset(skip_flags),
            interactive=interactive,
        )

    @property
    def is_local(self) -> bool:
        return self.environment is Environment.LOCAL

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    def skips(self, flag: str) -> bool:
        return flag in self.skip


class StepStatus(str, Enum):
    """How a step ended."""

    RAN = "ran"
    SKIPPED = "skipped"
    DECLINED = "declined"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Result of a single step: success flag, message and status."""

    success: bool
    message: str = ""
    status: StepStatus = StepStatus.RAN

    @classmethod
    def ok(cls, message: str = "") -> "StepResult":
        return cls(True, message, StepStatus.RAN)

    @classmethod
    def failed(cls, message: str = "") -> "StepResult":
        return cls(False, message, StepStatus.FAILED)

    @classmethod
    def skipped(cls, message: str = "") -> "StepResult":
        return cls(True, message, StepStatus.SKIPPED)

    @classmethod
    def declined(cls, message: str = "") -> "StepResult":
        return cls(True, message, StepStatus.DECLINED)


class EnvironmentLookup(Protocol):
    """Read access to environment values (``.env`` plus process env)."""

    def get(self, key: str, default: str | None = None) -> str | None: ...


@dataclass
class StepContext:
    """Collaborators available to step actions."""

    request: SetupRequest
    project_root: Path
    runner: ProcessRunner
    dispatcher: CommandDispatcher
    config: ConfigWriter
    env: EnvironmentLookup
    confirm: Callable[[str, bool], bool]
    platform_name: str = field(default_factory=platform.system)


def _always(request: SetupRequest) -> bool:
    return True


def _local_only(request: SetupRequest) -> bool:
    return request.is_local


@dataclass(frozen=True)
class StepDescriptor:
    r"""Declarative description of one pipeline step.

    Attributes
    ----------
    name : str
        Stable identifier, used in logs and the summary table.
    title_key : str
        Translation key of the step announcement.
    skip_flag : str
        Name of the ``--skip-<flag>`` option that disables the step.
    action : Callable[[StepContext], StepResult]
        Work performed when the step runs.
    fatal : bool
        When True a failed result aborts the pipeline.
    environment_gate : Callable[[SetupRequest], bool]
        Predicate that must hold for the step to run. A gated step is
        *optional*: it is announced and counted only when it runs.
    gate_notice_key, skip_notice_key : str | None
        Translation keys explaining why an optional step did not run
        (gate closed vs. skip flag set).
    """

    name: str
    title_key: str
    skip_flag: str
    action: Callable[[StepContext], StepResult]
    fatal: bool = False
    environment_gate: Callable[[SetupRequest], bool] = _always
    gate_notice_key: str | None = None
    skip_notice_key: str | None = None

    @property
    def optional(self) -> bool:
        return self.environment_gate is not _always

    def should_run(self, request: SetupRequest) -> bool:
        return self.environment_gate(request) and not request.skips(self.skip_flag)

    def is_counted(self, request: SetupRequest) -> bool:
        """Whether the step takes part in the ``Step i/N`` numbering."""
        return not self.optional or self.should_run(request)

    def skip_notice(self, request: SetupRequest) -> str:
        """Explain why the step does not run for ``request``."""
        if not self.environment_gate(request) and self.gate_notice_key:
            return _(self.gate_notice_key)
        if self.skip_notice_key:
            return _(self.skip_notice_key)
        return _("skipped_by_option", flag=self.skip_flag)


def composer_command(environment: Environment, platform_name: str) -> str:
    r"""Build the Composer install command line.

    Examples
    --------
    >>> composer_command(Environment.PRODUCTION, "Linux")
    'composer install --no-dev --optimize-autoloader'
    >>> composer_command(Environment.LOCAL, "Windows")
    'composer install --ignore-platform-req=ext-pcntl --ignore-platform-req=ext-posix'
    """
    if environment is Environment.PRODUCTION:
        command = COMPOSER_INSTALL_PRODUCTION
    else:
        command = COMPOSER_INSTALL_LOCAL
    if platform_name == "Windows":
        command = f"{command} {COMPOSER_WINDOWS_FLAGS}"
    return command


def _shell_step(ctx: StepContext, command: str, label: str) -> StepResult:
    result = run_labelled(command, label, ctx.project_root, ctx.runner)
    if result.succeeded:
        return StepResult.ok(_("process_completed", label=label))
    return StepResult.failed(_("process_failed", label=label))


def _dispatch(
    ctx: StepContext, name: str, options: Mapping[str, Any] | None = None
) -> StepResult:
    command = ctx.dispatcher.describe(name, options)
    ui_info(_("dispatch_running", command=command))
    code = ctx.dispatcher.call(name, options)
    if code == 0:
        return StepResult.ok(command)
    message = _("dispatch_failed", command=command, code=code)
    ui_error(message)
    return StepResult.failed(message)


def install_backend_dependencies(ctx: StepContext) -> StepResult:
    ui_info(_("composer_running"))
    command = composer_command(ctx.request.environment, ctx.platform_name)
    return _shell_step(ctx, command, _("label_composer"))


def build_frontend_assets(ctx: StepContext) -> StepResult:
    ui_info(_("npm_running"))
    return _shell_step(ctx, NPM_BUILD_COMMAND, _("label_npm"))


def ensure_env_file(ctx: StepContext) -> StepResult:
    """Create ``.env`` from ``.env.example`` unless it already exists."""
    env_path = ctx.project_root / ENV_FILENAME
    example_path = ctx.project_root / ENV_EXAMPLE_FILENAME

    if env_path.exists():
        message = _("env_exists")
        ui_comment(message)
        return StepResult.ok(message)

    if not example_path.exists():
        message = _("env_example_missing")
        ui_warning(message)
        return StepResult.skipped(message)

    try:
        shutil.copyfile(example_path, env_path)
    except OSError as error:
        logger.warning("Copying %s to %s failed: %s", example_path, env_path, error)
        message = _("env_copy_failed")
        ui_error(message)
        return StepResult.failed(message)

    message = _("env_created")
    ui_info(message)
    return StepResult.ok(message)


def configure_git_hooks(ctx: StepContext) -> StepResult:
    ui_info(_("hooks_running"))
    return _shell_step(ctx, GIT_HOOKS_COMMAND, _("label_hooks"))


def generate_app_key(ctx: StepContext) -> StepResult:
    return _dispatch(ctx, "key:generate", {"--force": True})


def migrate_and_seed(ctx: StepContext) -> StepResult:
    """Run migrations with seeders after confirmation; force in production."""
    if not ctx.confirm(_("migrate_confirm"), True):
        message = _("migrate_declined")
        ui_line(message)
        return StepResult.declined(message)
    return _dispatch(
        ctx, "migrate", {"--seed": True, "--force": ctx.request.is_production}
    )


def configure_database_engine(ctx: StepContext) -> StepResult:
    r"""Apply ``DB_ENGINE`` to the mysql and mariadb connections at runtime.

    The value is written to the in-memory configuration only; no file is
    modified. An unset or empty variable leaves the configuration untouched.
    """
    try:
        engine = normalize_env_value(ctx.env.get(DB_ENGINE_ENV_KEY))
    except OSError as error:
        logger.warning("Reading %s failed: %s", DB_ENGINE_ENV_KEY, error)
        message = str(error)
        ui_error(message)
        return StepResult.failed(message)

    if engine is None or engine == "":
        message = _("db_engine_unset")
        ui_comment(message)
        return StepResult.ok(message)

    for key in DB_ENGINE_CONFIG_KEYS:
        ctx.config.set(key, engine)
    message = _("db_engine_set", engine=engine)
    ui_info(message)
    return StepResult.ok(message)


def start_dev_server(ctx: StepContext) -> StepResult:
    return _dispatch(ctx, "serve")


DEFAULT_STEPS: tuple[StepDescriptor, ...] = (
    StepDescriptor(
        name="composer",
        title_key="step_composer",
        skip_flag="composer",
        action=install_backend_dependencies,
        fatal=True,
    ),
    StepDescriptor(
        name="npm",
        title_key="step_npm",
        skip_flag="npm",
        action=build_frontend_assets,
        fatal=True,
    ),
    StepDescriptor(
        name="env",
        title_key="step_env",
        skip_flag="env",
        action=ensure_env_file,
    ),
    StepDescriptor(
        name="hooks",
        title_key="step_hooks",
        skip_flag="hooks",
        action=configure_git_hooks,
    ),
    StepDescriptor(
        name="key",
        title_key="step_key",
        skip_flag="key",
        action=generate_app_key,
    ),
    StepDescriptor(
        name="migrate",
        title_key="step_migrate",
        skip_flag="migrate",
        action=migrate_and_seed,
    ),
    StepDescriptor(
        name="db-engine",
        title_key="step_db_engine",
        skip_flag="db-engine",
        action=configure_database_engine,
    ),
    StepDescriptor(
        name="serve",
        title_key="step_serve",
        skip_flag="serve",
        action=start_dev_server,
        environment_gate=_local_only,
        gate_notice_key="serve_skipped_production",
        skip_notice_key="serve_skipped",
    ),
)


__all__ = [
    "DEFAULT_STEPS",
    "Environment",
    "EnvironmentLookup",
    "SetupRequest",
    "StepContext",
    "StepDescriptor",
    "StepResult",
    "StepStatus",
    "build_frontend_assets",
    "composer_command",
    "configure_database_engine",
    "configure_git_hooks",
    "ensure_env_file",
    "generate_app_key",
    "install_backend_dependencies",
    "migrate_and_seed",
    "parse_environment",
    "start_dev_server",
]
