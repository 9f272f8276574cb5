"""Minimal console output primitives for the setup command.

This module provides the presentation routines used by the setup pipeline:
banners, step announcements, informational, comment, warning, success and
error lines, and raw passthrough for streamed process output. It holds no
logic beyond rendering and never touches configuration or process state.

All output goes through a single Rich ``Console``. Messages are escaped
before styling so text such as ``[InnoDB]`` is printed literally instead
of being read as console markup. Long lines are soft-wrapped so copied
command lines and paths stay intact.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

_CONSOLE = Console()


def get_console() -> Console:
    """Return the shared console used for all setup output."""
    return _CONSOLE


def _styled(style: str, message: str) -> None:
    _CONSOLE.print(f"[{style}]{escape(message)}[/{style}]", soft_wrap=True)


def ui_header(title: str) -> None:
    r"""Render a prominent banner.

    Parameters
    ----------
    title : str
        Banner text to display.

    Examples
    --------
    >>> ui_header("Application Setup For LOCAL Started")  # doctest: +SKIP
    """
    _CONSOLE.print(
        Panel.fit(escape(title), style="bold white on blue", border_style="blue")
    )


def ui_info(message: str) -> None:
    r"""Display an informational message in green.

    Used for actions that are starting or have completed normally.

    Parameters
    ----------
    message : str
        Text of the informational message to display.
    """
    _styled("green", message)


def ui_comment(message: str) -> None:
    r"""Display a comment line in yellow.

    Used for step announcements and neutral notices such as skips.

    Parameters
    ----------
    message : str
        Text of the comment to display.
    """
    _styled("yellow", message)


def ui_line(message: str) -> None:
    """Display an unstyled line."""
    _CONSOLE.print(escape(message), soft_wrap=True)


def ui_success(message: str) -> None:
    """Display a success message in bold green."""
    _styled("bold green", message)


def ui_warning(message: str) -> None:
    r"""Display a warning message.

    Used for recoverable issues the user should act on.

    Parameters
    ----------
    message : str
        Warning text.
    """
    _styled("bold yellow", message)


def ui_error(message: str) -> None:
    r"""Display an error message in bold red.

    Parameters
    ----------
    message : str
        Error text.
    """
    _styled("bold red", message)


def ui_new_line(count: int = 1) -> None:
    """Print ``count`` empty lines."""
    _CONSOLE.line(count)


def ui_write(text: str) -> None:
    """Write raw text, such as a line of process output, without markup."""
    _CONSOLE.out(text, end="", highlight=False)


__all__ = [
    "get_console",
    "ui_comment",
    "ui_error",
    "ui_header",
    "ui_info",
    "ui_line",
    "ui_new_line",
    "ui_success",
    "ui_warning",
    "ui_write",
]
