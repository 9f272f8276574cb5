"""Tests for the console output primitives."""

from stackboot.setup.ui import basic


def test_messages_are_printed_literally(capsys):
    basic.ui_info("Database engine set to [InnoDB] for mysql")
    basic.ui_comment("[bold]not markup[/bold]")
    basic.ui_line("plain")
    out = capsys.readouterr().out
    assert "[InnoDB]" in out
    assert "[bold]not markup[/bold]" in out
    assert "plain" in out


def test_long_lines_are_not_wrapped(capsys):
    command = "composer install " + "--flag " * 30
    basic.ui_info(command.strip())
    assert command.strip() in capsys.readouterr().out


def test_status_helpers_and_header(capsys):
    basic.ui_header("Application Setup For LOCAL Started")
    basic.ui_success("done")
    basic.ui_warning("careful")
    basic.ui_error("broken")
    basic.ui_new_line(2)
    out = capsys.readouterr().out
    for text in ("Application Setup For LOCAL Started", "done", "careful", "broken"):
        assert text in out


def test_ui_write_passes_raw_text(capsys):
    basic.ui_write("[progress] 10%\n")
    basic.ui_write("partial")
    out = capsys.readouterr().out
    assert "[progress] 10%" in out
    assert out.rstrip().endswith("partial")


def test_get_console_is_shared():
    assert basic.get_console() is basic.get_console()
