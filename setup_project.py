"""Minimal runner for the setup command.

This file's single responsibility is to provide a tiny entrypoint that
delegates execution to :mod:`stackboot.setup.app_runner`, so the command
can be run from a checkout without installing the package.

Usage:
    python setup_project.py [local|production] [--skip-composer] [--skip-npm]
        [--skip-env] [--skip-hooks] [--skip-key] [--skip-migrate]
        [--skip-db-engine] [--skip-serve] [--no-interaction] [--lang en|sv]

"""

from __future__ import annotations


def entry_point(argv: list[str] | None = None) -> None:
    """Run the setup command.

    The import is performed inside the function to avoid importing the
    whole application at module import time.
    """
    from stackboot.setup.app_runner import entry_point as app_entry_point

    app_entry_point(argv)


if __name__ == "__main__":
    entry_point()
