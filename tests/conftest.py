"""Pytest configuration for test environment setup.

- Forces ``DISABLE_FILE_LOGS=1`` to avoid writing log files during tests.
- Ensures the project root is available on ``sys.path`` for imports.
- Resets the UI language after every test.
- Provides fakes for the setup pipeline collaborators.
"""

import os
import signal
import sys

os.environ.setdefault("DISABLE_FILE_LOGS", "1")  # Avoid creating log files during tests
from pathlib import Path

import pytest

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from stackboot.setup import i18n  # noqa: E402
from stackboot.setup.dispatcher import format_options  # noqa: E402
from stackboot.setup.pipeline.run import ProcessResult  # noqa: E402

_TEST_TIMEOUT = int(os.environ.get("PYTEST_TEST_TIMEOUT", "10"))


def _timeout_handler(signum, frame):
    """Test Timeout handler."""
    raise TimeoutError(f"Test exceeded {_TEST_TIMEOUT} seconds timeout")


def pytest_runtest_setup(item):
    """Arm a per-test alarm where SIGALRM exists."""
    if hasattr(signal, "SIGALRM"):
        signal.signal(signal.SIGALRM, _timeout_handler)
        signal.alarm(_TEST_TIMEOUT)


def pytest_runtest_teardown(item, nextitem):
    """Disarm the per-test alarm."""
    if hasattr(signal, "SIGALRM"):
        signal.alarm(0)


@pytest.fixture(autouse=True)
def _reset_language():
    yield
    i18n.set_language("en")


class FakeRunner:
    """Records shell commands; commands starting with a failing prefix exit 1."""

    def __init__(self, failing=()):
        self.failing = tuple(failing)
        self.commands = []

    def __call__(self, command, cwd):
        self.commands.append(command)
        failed = any(command.startswith(prefix) for prefix in self.failing)
        return ProcessResult(succeeded=not failed, return_code=1 if failed else 0)


class FakeDispatcher:
    """Records framework commands and returns configured exit codes."""

    def __init__(self, codes=None):
        self.codes = dict(codes or {})
        self.calls = []

    def describe(self, name, options=None):
        return " ".join(["php artisan", name, *format_options(options)])

    def call(self, name, options=None):
        self.calls.append((name, dict(options or {})))
        return self.codes.get(name, 0)


class RecordingConfig:
    """ConfigWriter that only records writes."""

    def __init__(self):
        self.writes = []

    def set(self, key, value):
        self.writes.append((key, value))


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def fake_dispatcher():
    return FakeDispatcher()


@pytest.fixture
def recording_config():
    return RecordingConfig()


@pytest.fixture
def runner_factory():
    return FakeRunner


@pytest.fixture
def dispatcher_factory():
    return FakeDispatcher
