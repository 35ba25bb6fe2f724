import io
import subprocess
import threading

import pytest

from rustdrills.exercise import Exercise, Mode, temp_file
from rustdrills.watch import WatchShell, WatchStatus, watch


def test_hint_prints_current_hint(capsys):
    shell = WatchShell(hint="use a reference")
    shell.handle("hint\n")
    assert capsys.readouterr().out == "use a reference\n"


def test_hint_without_hint_prints_nothing(capsys):
    shell = WatchShell()
    shell.handle("hint")
    assert capsys.readouterr().out == ""


def test_clear_prints_escape(capsys):
    WatchShell().handle("  clear  ")
    assert capsys.readouterr().out == "\x1b[2J\x1b[1;1H\n"


def test_quit_sets_flag(capsys):
    event = threading.Event()
    shell = WatchShell(should_quit=event)
    shell.handle("quit\n")
    assert event.is_set()
    assert capsys.readouterr().out == "Bye!\n"


def test_help_lists_commands(capsys):
    WatchShell().handle("help")
    out = capsys.readouterr().out
    assert "Commands available to you in watch mode:" in out
    assert "quit   - quits watch mode" in out


def test_unknown_command(capsys):
    WatchShell().handle("dance\n")
    assert capsys.readouterr().out == "unknown command: dance\n"


def test_bang_without_command(capsys):
    WatchShell().handle("!   ")
    assert capsys.readouterr().out == "no command provided\n"


def test_bang_with_missing_program(capsys):
    WatchShell().handle("!no-such-program-here --flag")
    out = capsys.readouterr().out
    assert out.startswith("failed to execute command `no-such-program-here --flag`:")


def test_bang_runs_command(monkeypatch, capsys):
    started = []

    def fake_run(args, **kwargs):
        started.append(list(args))
        return subprocess.CompletedProcess(args, 1)

    monkeypatch.setattr(subprocess, "run", fake_run)
    shell = WatchShell()
    shell.handle("!rustc --explain E0381")
    assert started == [["rustc", "--explain", "E0381"]]
    # A command that starts but exits non-zero is not reported as a failure.
    assert capsys.readouterr().out == ""
    assert not shell.should_quit.is_set()


def test_start_reads_until_end_of_input(capsys):
    shell = WatchShell(hint="first hint", stdin=io.StringIO("hint\nquit\n"))
    thread = shell.start()
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert shell.should_quit.is_set()
    out = capsys.readouterr().out
    assert "first hint\n" in out
    assert "Bye!" in out


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    (tmp_path / "exercises").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_watch_with_nothing_to_do_finishes(workspace):
    assert watch([], False, False) is WatchStatus.FINISHED


def test_watch_finishes_when_all_done(workspace, monkeypatch, capsys):
    def fake_run(args, **kwargs):
        if args[0] == temp_file():
            return subprocess.CompletedProcess(args, 0, b"all good", b"")
        return subprocess.CompletedProcess(args, 0, b"", b"")

    monkeypatch.setattr(subprocess, "run", fake_run)
    path = workspace / "exercises" / "done.rs"
    path.write_text("fn main() {\n}\n", encoding="utf-8")
    exercise = Exercise(name="done", path=path, mode=Mode.COMPILE)
    assert watch([exercise], False, False) is WatchStatus.FINISHED
    assert "1/1" in capsys.readouterr().out