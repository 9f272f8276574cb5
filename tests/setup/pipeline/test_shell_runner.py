"""Tests for the streaming shell runner."""

import sys

import stackboot.setup.pipeline.run as run_mod
from stackboot.setup.pipeline.run import (
    SPAWN_FAILED_RETURN_CODE,
    ProcessResult,
    run_labelled,
    run_shell,
)


def _python(code):
    return f'"{sys.executable}" -c "{code}"'


def test_run_shell_streams_lines_in_order(tmp_path):
    lines = []
    result = run_shell(_python("print('one'); print('two')"), tmp_path, output=lines.append)
    assert result == ProcessResult(succeeded=True, return_code=0)
    assert [line.strip() for line in lines] == ["one", "two"]


def test_run_shell_merges_stderr(tmp_path):
    lines = []
    run_shell(_python("import sys; sys.stderr.write('oops\\n')"), tmp_path, output=lines.append)
    assert any("oops" in line for line in lines)


def test_run_shell_reports_exit_code(tmp_path):
    result = run_shell(_python("raise SystemExit(3)"), tmp_path, output=lambda line: None)
    assert result == ProcessResult(succeeded=False, return_code=3)


def test_run_shell_uses_working_directory(tmp_path):
    lines = []
    run_shell(_python("import os; print(os.getcwd())"), tmp_path, output=lines.append)
    assert lines[0].strip() == str(tmp_path.resolve())


def test_run_shell_spawn_failure(monkeypatch, tmp_path):
    def boom(*args, **kwargs):
        raise OSError("no shell")

    monkeypatch.setattr(run_mod.subprocess, "Popen", boom)
    result = run_shell("anything", tmp_path)
    assert result == ProcessResult(False, SPAWN_FAILED_RETURN_CODE)


def test_run_shell_defaults_to_console_passthrough(tmp_path, capsys):
    run_shell(_python("print('streamed')"), tmp_path)
    assert "streamed" in capsys.readouterr().out


def test_run_labelled_prints_outcome(tmp_path, capsys, runner_factory):
    ok = run_labelled("git status", "Git", tmp_path, runner_factory())
    bad = run_labelled("npm ci", "NPM", tmp_path, runner_factory(failing=["npm"]))
    out = capsys.readouterr().out
    assert ok.succeeded and not bad.succeeded
    assert "Git completed." in out
    assert "NPM failed." in out
