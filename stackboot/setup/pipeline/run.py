"""Shell process runner for setup steps.

This module's sole responsibility is to launch external commands
(Composer, NPM, git, the framework CLI) for the setup pipeline, stream
their output to the console as it is produced and report the outcome.

Error & Result Branches
-----------------------
- Commands run through the shell from the application root.
- Combined stdout/stderr is streamed line by line; nothing is buffered
  beyond the current line.
- No timeout is applied; a command runs to completion however long it takes.
- Does not raise; spawn failures and non-zero exits return an explicit
  :class:`ProcessResult`.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from stackboot.setup.i18n import _ as _
from stackboot.setup.ui.basic import ui_error, ui_info, ui_write

logger = logging.getLogger(__name__)

SPAWN_FAILED_RETURN_CODE = -1


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a shell command."""

    succeeded: bool
    return_code: int


class ProcessRunner(Protocol):
    """Callable that runs a shell command from a working directory."""

    def __call__(self, command: str, cwd: Path) -> ProcessResult: ...


def run_shell(
    command: str,
    cwd: Path,
    output: Callable[[str], None] | None = None,
) -> ProcessResult:
    r"""Run ``command`` through the shell and stream its output.

    Parameters
    ----------
    command : str
        Shell command line, e.g. ``"npm install && npm run build"``.
    cwd : Path
        Working directory for the command.
    output : Callable[[str], None] | None, optional
        Receives every output line as it is produced. Defaults to the
        console passthrough :func:`stackboot.setup.ui.basic.ui_write`.

    Returns
    -------
    ProcessResult
        ``succeeded`` is True when the command exited with status 0. A
        command that could not be spawned reports return code ``-1``.

    Examples
    --------
    >>> from pathlib import Path
    >>> run_shell("exit 3", Path("."), output=lambda line: None)
    ProcessResult(succeeded=False, return_code=3)
    """
    write = output or ui_write
    logger.info("Running shell command: %s (cwd=%s)", command, cwd)
    try:
        proc = subprocess.Popen(
            command,
            shell=True,
            cwd=cwd,
            env=os.environ.copy(),
            text=True,
            errors="replace",
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            bufsize=1,
        )
    except OSError as error:
        logger.error("Could not start %r: %s", command, error)
        return ProcessResult(succeeded=False, return_code=SPAWN_FAILED_RETURN_CODE)

    assert proc.stdout is not None
    with proc.stdout:
        for line in proc.stdout:
            write(line)
    return_code = proc.wait()
    if return_code == 0:
        logger.info("Command succeeded: %s", command)
    else:
        logger.error("Command failed: %s (Return code: %s)", command, return_code)
    return ProcessResult(succeeded=return_code == 0, return_code=return_code)


def run_labelled(
    command: str,
    label: str,
    cwd: Path,
    runner: ProcessRunner = run_shell,
) -> ProcessResult:
    """Run a command and print ``<label> completed.`` or ``<label> failed.``."""
    result = runner(command, cwd)
    if result.succeeded:
        ui_info(_("process_completed", label=label))
    else:
        ui_error(_("process_failed", label=label))
    return result


__all__ = [
    "ProcessResult",
    "ProcessRunner",
    "SPAWN_FAILED_RETURN_CODE",
    "run_labelled",
    "run_shell",
]
