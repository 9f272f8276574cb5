"""Tests for the command-line entrypoint of the setup command."""

import logging

import pytest

import stackboot.setup.app_runner as app_runner
from stackboot.services.reporting import ErrorReporter
from stackboot.settings import RuntimeConfig
from stackboot.setup import i18n
from stackboot.setup.dispatcher import ArtisanDispatcher
from stackboot.setup.pipeline.orchestrator import ExitCode, SetupOrchestrator


@pytest.fixture
def quiet_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(
        app_runner, "configure_logging", lambda *a, **k: calls.append((a, k))
    )
    return calls


def test_parse_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    args = app_runner.parse_cli_args([])
    assert args.environment == "local"
    assert args.no_interaction is False
    assert args.lang == "en"
    assert app_runner.selected_skip_flags(args) == []


def test_parse_skip_flags_in_pipeline_order():
    args = app_runner.parse_cli_args(
        ["production", "--skip-serve", "--skip-db-engine", "--skip-composer", "-n"]
    )
    assert args.environment == "production"
    assert args.no_interaction is True
    assert app_runner.selected_skip_flags(args) == ["composer", "db-engine", "serve"]


def test_parse_keeps_unknown_environment_for_validation():
    assert app_runner.parse_cli_args(["staging"]).environment == "staging"


def test_parse_rejects_unknown_option():
    with pytest.raises(SystemExit):
        app_runner.parse_cli_args(["--skip-docker"])


def test_build_orchestrator_honours_artisan_binary(tmp_path):
    orch = app_runner.build_orchestrator(
        tmp_path, RuntimeConfig(), {"ARTISAN_BINARY": "sail artisan"}
    )
    assert isinstance(orch.dispatcher, ArtisanDispatcher)
    assert orch.dispatcher.binary == "sail artisan"
    assert orch.project_root == tmp_path


def test_build_reporter_registers_discord_alert():
    reporter = app_runner.build_reporter(RuntimeConfig.from_environment({}))
    assert len(reporter._callbacks) == 1


def test_run_passes_cli_values_to_orchestrator(tmp_path, monkeypatch, quiet_logging):
    seen = {}

    class FakeOrchestrator:
        def run_from_arguments(self, environment, skip_flags, interactive):
            seen.update(environment=environment, skip=skip_flags, interactive=interactive)
            return ExitCode.INVALID

    def fake_build(project_root, config, environ):
        seen["root"] = project_root
        seen["app_name"] = config.get("app.name")
        return FakeOrchestrator()

    (tmp_path / ".env").write_text("APP_NAME=Demo\n", encoding="utf-8")
    monkeypatch.delenv("APP_NAME", raising=False)
    monkeypatch.setattr(app_runner, "build_orchestrator", fake_build)
    args = app_runner.parse_cli_args(
        ["Prod", "--skip-npm", "-n", "--lang", "sv", "--project-root", str(tmp_path)]
    )
    assert app_runner.run(args) == 2
    assert seen == {
        "root": tmp_path.resolve(),
        "app_name": "Demo",
        "environment": "Prod",
        "skip": ["npm"],
        "interactive": False,
    }
    assert i18n.LANG == "sv"
    assert quiet_logging


def test_run_end_to_end_with_fakes(
    tmp_path, monkeypatch, capsys, quiet_logging, fake_runner, fake_dispatcher
):
    def fake_build(project_root, config, environ):
        return SetupOrchestrator(
            project_root,
            runner=fake_runner,
            dispatcher=fake_dispatcher,
            config=config,
            env=environ,
            confirm=lambda prompt, default: default,
            platform_name="Linux",
        )

    monkeypatch.setattr(app_runner, "build_orchestrator", fake_build)
    monkeypatch.setenv("DB_ENGINE", "InnoDB")
    args = app_runner.parse_cli_args(
        ["production", "--skip-serve", "--skip-migrate", "--project-root", str(tmp_path)]
    )
    assert app_runner.run(args) == 0
    out = capsys.readouterr().out
    assert "Step 7/7" in out
    assert "Database engine set to [InnoDB]" in out


def test_run_reports_crash_and_reraises(tmp_path, monkeypatch, quiet_logging):
    reported = []
    reporter = ErrorReporter()
    reporter.reportable(reported.append)
    monkeypatch.setattr(app_runner, "build_reporter", lambda config: reporter)

    def explode(*args):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(app_runner, "build_orchestrator", explode)
    args = app_runner.parse_cli_args(["local", "--project-root", str(tmp_path)])
    with pytest.raises(RuntimeError):
        app_runner.run(args)
    assert [str(e) for e in reported] == ["disk on fire"]


def test_entry_point_exits_with_code(monkeypatch):
    monkeypatch.setattr(app_runner, "run", lambda args: 1)
    with pytest.raises(SystemExit) as exc:
        app_runner.entry_point(["local"])
    assert exc.value.code == 1


def test_configure_logging_levels(tmp_path):
    saved = logging.root.handlers[:]
    saved_level = logging.root.level
    try:
        app_runner.configure_logging("DEBUG", enable_file=True, log_dir=tmp_path / "logs")
        kinds = {type(h) for h in logging.root.handlers}
        assert logging.FileHandler in kinds
        assert logging.root.level == logging.DEBUG
        logging.getLogger("stackboot.test").info("hello file")
        for handler in logging.root.handlers:
            handler.flush()
        assert "hello file" in (tmp_path / "logs" / "setup.log").read_text(encoding="utf-8")
    finally:
        for handler in logging.root.handlers[:]:
            handler.close()
            logging.root.removeHandler(handler)
        for handler in saved:
            logging.root.addHandler(handler)
        logging.root.setLevel(saved_level)


def test_configure_logging_without_file(tmp_path):
    saved = logging.root.handlers[:]
    saved_level = logging.root.level
    try:
        app_runner.configure_logging("warning", enable_file=False, log_dir=tmp_path)
        assert [type(h) for h in logging.root.handlers] == [logging.StreamHandler]
        assert logging.root.handlers[0].level == logging.WARNING
        assert not (tmp_path / "setup.log").exists()
    finally:
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)
        for handler in saved:
            logging.root.addHandler(handler)
        logging.root.setLevel(saved_level)


def test_run_survives_bad_mail_settings(tmp_path, monkeypatch, quiet_logging):
    (tmp_path / ".env").write_text(
        "MAIL_PORT=null\nMAIL_QUEUE_JITTER_MIN_MS=soon\n", encoding="utf-8"
    )
    monkeypatch.delenv("MAIL_PORT", raising=False)
    monkeypatch.delenv("MAIL_QUEUE_JITTER_MIN_MS", raising=False)
    skips = [f"--skip-{flag}" for flag in
             ("composer", "npm", "env", "hooks", "key", "migrate", "db-engine", "serve")]
    args = app_runner.parse_cli_args(
        ["production", *skips, "-n", "--project-root", str(tmp_path)]
    )
    assert app_runner.run(args) == 0
