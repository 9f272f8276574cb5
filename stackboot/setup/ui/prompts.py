"""Prompt interaction helpers for the setup command.

Interactive confirmations are delegated to Questionary when a terminal is
attached. When standard input is not a TTY (CI, piped input, tests) or
interaction is disabled with ``--no-interaction``, the default answer is
returned without prompting, so unattended runs never block.
"""

from __future__ import annotations

import logging
import sys

import questionary

logger = logging.getLogger(__name__)


def _stdin_is_tty() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


def ask_confirm(prompt: str, default: bool = True, interactive: bool = True) -> bool:
    r"""Ask a yes/no question and return the answer.

    Parameters
    ----------
    prompt : str
        The question shown to the user.
    default : bool, optional
        Answer used for an empty reply and for non-interactive runs.
    interactive : bool, optional
        When False the default is returned without prompting.

    Returns
    -------
    bool
        True when the user confirmed. A cancelled prompt (Ctrl-C) counts as
        a refusal.

    Examples
    --------
    >>> ask_confirm("Continue?", default=True, interactive=False)
    True
    """
    if not interactive or not _stdin_is_tty():
        logger.debug("Non-interactive confirmation, using default %s", default)
        return default
    answer = questionary.confirm(prompt, default=default).ask()
    if answer is None:
        return False
    return bool(answer)


__all__ = ["ask_confirm"]
