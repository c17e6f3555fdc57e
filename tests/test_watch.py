import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from rustdrill.exercise import Exercise, Mode
from rustdrill.watch import WatchShell, WatchStatus, pending_after_change, watch

PENDING = "// I AM NOT DONE\nfn main() {}\n"
FINISHED = "fn main() {}\n"


@pytest.fixture
def exercises(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    folder = tmp_path / "exercises"
    folder.mkdir()
    result = []
    for name, text in (("a", PENDING), ("b", FINISHED), ("c", PENDING)):
        (folder / f"{name}.rs").write_text(text, encoding="utf-8")
        result.append(
            Exercise(name=name, path=Path("exercises") / f"{name}.rs", mode=Mode.COMPILE, hint=f"hint {name}")
        )
    return result


def test_hint_prints_current_hint(capsys):
    shell = WatchShell("try harder")
    shell.handle("hint\n")
    assert capsys.readouterr().out == "try harder\n"


def test_hint_without_hint_prints_nothing(capsys):
    WatchShell().handle("hint")
    assert capsys.readouterr().out == ""


def test_quit_sets_flag(capsys):
    shell = WatchShell()
    assert not shell.should_quit.is_set()
    shell.handle("quit")
    assert shell.should_quit.is_set()
    assert capsys.readouterr().out == "Bye!\n"


def test_help_lists_commands(capsys):
    WatchShell().handle("  help  ")
    out = capsys.readouterr().out
    assert out.startswith("Commands available to you in watch mode:")
    assert "!<cmd> - executes a command" in out


def test_clear_sends_escape(capsys):
    WatchShell().handle("clear")
    assert capsys.readouterr().out == "\x1b[2J\x1b[1;1H\n"


def test_unknown_command(capsys):
    WatchShell().handle("dance")
    assert capsys.readouterr().out == "unknown command: dance\n"


def test_bang_without_command(capsys):
    WatchShell().handle("!")
    assert capsys.readouterr().out == "no command provided\n"


def test_bang_runs_command(capsys):
    shell = WatchShell()
    with patch("subprocess.run", return_value=subprocess.CompletedProcess([], 0)) as run:
        shell.handle("!rustc --explain E0381")
    assert run.call_args.args[0] == ["rustc", "--explain", "E0381"]
    assert capsys.readouterr().out == ""
    assert not shell.should_quit.is_set()


def test_bang_reports_failure(capsys):
    with patch("subprocess.run", side_effect=FileNotFoundError("missing")):
        WatchShell().handle("!nothere arg")
    assert "failed to execute command `nothere arg`" in capsys.readouterr().out


def test_pending_after_change_puts_changed_first(exercises, tmp_path):
    result = list(pending_after_change(exercises, tmp_path / "exercises" / "c.rs"))
    assert [e.name for e in result] == ["c", "a"]


def test_pending_after_change_includes_changed_done_exercise(exercises, tmp_path):
    result = list(pending_after_change(exercises, tmp_path / "exercises" / "b.rs"))
    assert [e.name for e in result] == ["b", "a", "c"]


def test_pending_after_change_unrelated_file(exercises, tmp_path):
    other = tmp_path / "exercises" / "other.rs"
    other.write_text(FINISHED, encoding="utf-8")
    result = list(pending_after_change(exercises, other))
    assert [e.name for e in result] == ["a", "c"]


def test_watch_finishes_when_everything_is_done(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "exercises").mkdir()
    path = tmp_path / "exercises" / "done.rs"
    path.write_text(FINISHED, encoding="utf-8")
    exercise = Exercise(name="done", path=path, mode=Mode.COMPILE, hint="")
    with patch("subprocess.run", return_value=subprocess.CompletedProcess([], 0, b"", b"")):
        assert watch([exercise], False, False) is WatchStatus.FINISHED