"""Framework command dispatcher.

Runs named framework sub-commands (``key:generate``, ``migrate``,
``serve``) for the application being set up. The default implementation
shells out to ``php artisan`` through the process runner, so output is
streamed and no timeout applies.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from stackboot.config import DEFAULT_ARTISAN_BINARY

from .pipeline.run import ProcessRunner, run_shell

logger = logging.getLogger(__name__)


class CommandDispatcher(Protocol):
    """Runs a named framework command and returns its exit status."""

    def describe(self, name: str, options: Mapping[str, Any] | None = None) -> str: ...

    def call(self, name: str, options: Mapping[str, Any] | None = None) -> int: ...


def format_options(options: Mapping[str, Any] | None) -> list[str]:
    r"""Render an option mapping as command-line arguments.

    ``True`` becomes a bare flag, ``False`` and ``None`` are omitted and any
    other value is rendered as ``--flag=value`` (shell-quoted).

    Examples
    --------
    >>> format_options({"--seed": True, "--force": False, "--port": 8080})
    ['--seed', '--port=8080']
    """
    args: list[str] = []
    for flag, value in (options or {}).items():
        if value is True:
            args.append(flag)
        elif value is False or value is None:
            continue
        else:
            args.append(f"{flag}={shlex.quote(str(value))}")
    return args


class ArtisanDispatcher:
    """Dispatch framework commands through ``php artisan``.

    Parameters
    ----------
    project_root : Path
        Application root the commands run from.
    runner : ProcessRunner, optional
        Shell runner, injectable for tests.
    binary : str, optional
        Command prefix; ``ARTISAN_BINARY`` overrides it from the CLI.
    """

    def __init__(
        self,
        project_root: Path,
        runner: ProcessRunner = run_shell,
        binary: str = DEFAULT_ARTISAN_BINARY,
    ) -> None:
        self.project_root = Path(project_root)
        self.runner = runner
        self.binary = binary

    def describe(self, name: str, options: Mapping[str, Any] | None = None) -> str:
        """Return the command line that ``call`` would run."""
        return " ".join([self.binary, name, *format_options(options)])

    def call(self, name: str, options: Mapping[str, Any] | None = None) -> int:
        command = self.describe(name, options)
        logger.info("Dispatching framework command: %s", command)
        return self.runner(command, self.project_root).return_code


__all__ = ["ArtisanDispatcher", "CommandDispatcher", "format_options"]
