"""Entrypoint, CLI parsing and logging setup for the setup command.

This module wires the setup command together: it parses the command line,
configures logging, loads the application environment into a runtime
configuration, registers the Discord notifier as an error reporter and
hands control to :class:`SetupOrchestrator`. The helpers are exposed
individually so tests can patch them.

Examples
--------
>>> from stackboot.setup import app_runner
>>> args = app_runner.parse_cli_args(["production", "--skip-serve"])
>>> args.environment, args.skip_serve
('production', True)
>>> app_runner.run(args)  # doctest: +SKIP

"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from stackboot.config import (
    DEFAULT_ARTISAN_BINARY,
    DEFAULT_ENVIRONMENT,
    LOG_DIR,
    LOG_FILENAME_SETUP,
    LOG_FORMAT,
    SKIP_FLAGS,
)
from stackboot.services.discord import DiscordNotifier
from stackboot.services.reporting import ErrorReporter
from stackboot.settings import RuntimeConfig, load_environment
from stackboot.setup import i18n
from stackboot.setup.dispatcher import ArtisanDispatcher
from stackboot.setup.pipeline.orchestrator import SetupOrchestrator
from stackboot.setup.pipeline.run import run_shell

logger = logging.getLogger(__name__)

SKIP_HELP: dict[str, str] = {
    "composer": "Skip installing PHP dependencies via Composer",
    "npm": "Skip installing and building frontend assets via NPM",
    "env": "Skip creating .env from .env.example",
    "hooks": "Skip configuring Git hooks (Husky)",
    "key": "Skip generating the application key",
    "migrate": "Skip running migrations and seeders",
    "db-engine": "Skip applying DB_ENGINE to the database connections",
    "serve": "Skip starting the local development server",
}

USAGE_EXAMPLES = """\
examples:
  stackboot-setup
  stackboot-setup local
  stackboot-setup production --skip-npm --skip-serve
"""


def configure_logging(
    level: str = "WARNING", enable_file: bool = True, log_dir: Path = LOG_DIR
) -> None:
    r"""Configure logging for the setup command.

    Console output is reserved for the Rich UI, so the stream handler only
    shows records at ``level`` and above, while the optional file handler
    (``logs/setup.log``) records everything from INFO up. All existing root
    handlers are replaced.

    Parameters
    ----------
    level : str, optional
        Console log level, e.g. ``"DEBUG"`` or ``"WARNING"``.
    enable_file : bool, optional
        Whether to add the file handler. A log file that cannot be opened
        is reported on stderr and file logging is skipped.
    log_dir : Path, optional
        Directory of the log file.

    Examples
    --------
    >>> configure_logging("DEBUG", enable_file=False)
    """
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)
    console_level = getattr(logging, level.upper(), logging.WARNING)
    stream = logging.StreamHandler()
    stream.setLevel(console_level)
    handlers: list[logging.Handler] = [stream]
    if enable_file:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / LOG_FILENAME_SETUP, mode="a")
        except OSError as error:
            print(f"File logging disabled: {error}", file=sys.stderr)
        else:
            file_handler.setLevel(logging.INFO)
            handlers.insert(0, file_handler)
    logging.basicConfig(
        level=min(console_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    r"""Parse command-line arguments for the setup command.

    Parameters
    ----------
    argv : list of str or None, optional
        Arguments to parse; ``None`` uses ``sys.argv[1:]``.

    Returns
    -------
    argparse.Namespace
        Fields ``environment``, ``skip_<flag>`` for every skip flag,
        ``no_interaction``, ``lang``, ``log_level`` and ``project_root``.

    Notes
    -----
    ``environment`` is deliberately not restricted with ``choices``: the
    orchestrator validates it and answers with the ``INVALID`` exit code.
    """
    parser = argparse.ArgumentParser(
        prog="stackboot-setup",
        description="Run application setup (local or production) in a single command.",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "environment",
        nargs="?",
        default=DEFAULT_ENVIRONMENT,
        help="Target environment (local or production)",
    )
    for flag in SKIP_FLAGS:
        parser.add_argument(f"--skip-{flag}", action="store_true", help=SKIP_HELP[flag])
    parser.add_argument(
        "-n",
        "--no-interaction",
        action="store_true",
        help="Answer every confirmation with its default",
    )
    parser.add_argument("--lang", choices=sorted(i18n.TEXTS), default="en")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Application root (defaults to the current directory)",
    )
    return parser.parse_args(argv)


def selected_skip_flags(args: argparse.Namespace) -> list[str]:
    """Return the skip flags set on ``args``, in pipeline order."""
    return [
        flag for flag in SKIP_FLAGS if getattr(args, "skip_" + flag.replace("-", "_"), False)
    ]


def build_reporter(config: RuntimeConfig) -> ErrorReporter:
    """Create an error reporter with the Discord notifier registered."""
    reporter = ErrorReporter()
    DiscordNotifier(config).register(reporter)
    return reporter


def build_orchestrator(
    project_root: Path, config: RuntimeConfig, environ: Mapping[str, str]
) -> SetupOrchestrator:
    """Assemble the orchestrator with the default collaborators."""
    binary = environ.get("ARTISAN_BINARY") or DEFAULT_ARTISAN_BINARY
    dispatcher = ArtisanDispatcher(project_root, run_shell, binary)
    return SetupOrchestrator(
        project_root, runner=run_shell, dispatcher=dispatcher, config=config
    )


def run(args: argparse.Namespace) -> int:
    r"""Run the setup command for parsed CLI arguments.

    Parameters
    ----------
    args : argparse.Namespace
        Result of :func:`parse_cli_args`.

    Returns
    -------
    int
        Exit code: 0 success, 1 fatal step failure, 2 invalid input.

    Raises
    ------
    Exception
        Unexpected errors propagate after being forwarded to the error
        reporter (and hence to the Discord webhook when enabled).
    """
    i18n.set_language(args.lang)
    configure_logging(args.log_level, enable_file=not os.environ.get("DISABLE_FILE_LOGS"))
    project_root = Path(args.project_root).resolve()
    environ = load_environment(project_root)
    config = RuntimeConfig.from_environment(environ)
    reporter = build_reporter(config)
    try:
        orchestrator = build_orchestrator(project_root, config, environ)
        code = orchestrator.run_from_arguments(
            args.environment,
            selected_skip_flags(args),
            interactive=not args.no_interaction,
        )
    except Exception as error:
        logger.exception("Setup crashed")
        reporter.report(error)
        raise
    return int(code)


def entry_point(argv: list[str] | None = None) -> None:
    """Run the setup command from the command line and exit with its code."""
    sys.exit(run(parse_cli_args(argv)))


__all__ = [
    "build_orchestrator",
    "build_reporter",
    "configure_logging",
    "entry_point",
    "parse_cli_args",
    "run",
    "selected_skip_flags",
]
