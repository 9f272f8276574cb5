"""Console UI interface for the setup command.

This subpackage re-exports the output primitives from ``basic.py`` and
the confirmation prompt from ``prompts.py`` under a single namespace, so
setup modules can write ``from stackboot.setup.ui import ui_info``.

Examples
--------
>>> from stackboot.setup.ui import ui_comment, ask_confirm
>>> ask_confirm("Continue?", interactive=False)
True
"""

from .basic import (
    get_console,
    ui_comment,
    ui_error,
    ui_header,
    ui_info,
    ui_line,
    ui_new_line,
    ui_success,
    ui_warning,
    ui_write,
)
from .prompts import ask_confirm

__all__ = [
    "ask_confirm",
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
