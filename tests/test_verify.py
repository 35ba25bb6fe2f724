import subprocess
from pathlib import Path

import pytest

from rustdrills.exercise import Exercise, Mode, temp_file
from rustdrills.verify import ExerciseFailed, test, verify

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


class FakeToolchain:
    def __init__(self, compile_code=0, run_code=0, stdout=b"", stderr=b""):
        self.compile_code = compile_code
        self.run_code = run_code
        self.stdout = stdout
        self.stderr = stderr
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        if args[0] == temp_file():
            return subprocess.CompletedProcess(args, self.run_code, self.stdout, self.stderr)
        return subprocess.CompletedProcess(args, self.compile_code, b"", self.stderr)


@pytest.fixture
def toolchain(monkeypatch):
    fake = FakeToolchain()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def make(tmp_path: Path, name: str, source: str, mode=Mode.COMPILE, hint="") -> Exercise:
    path = tmp_path / f"{name}.rs"
    path.write_text(source, encoding="utf-8")
    return Exercise(name=name, path=path, mode=mode, hint=hint)


def test_verify_finished_exercise_succeeds(tmp_path, toolchain, capsys):
    exercise = make(tmp_path, "done", FINISHED)
    verify([exercise], (0, 1), False, False)
    out = capsys.readouterr().out
    assert "1/1" in out
    assert "(100.0 %)" in out


def test_verify_compile_failure_reports_exercise(tmp_path, toolchain, capsys):
    toolchain.compile_code = 1
    toolchain.stderr = b"error: expected pattern"
    exercise = make(tmp_path, "broken", FINISHED)
    with pytest.raises(ExerciseFailed) as info:
        verify([exercise], (0, 1), False, False)
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert "error: expected pattern" in out
    assert f"Compiling of {exercise} failed!" in out


def test_verify_pending_exercise_shows_context(tmp_path, toolchain, capsys):
    exercise = make(tmp_path, "pending", PENDING)
    with pytest.raises(ExerciseFailed) as info:
        verify([exercise], (0, 1), False, False)
    assert info.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Successfully ran {exercise}!" in out
    assert " 3 |  // I AM NOT DONE" in out


def test_verify_stops_at_first_unfinished(tmp_path, toolchain):
    first = make(tmp_path, "first", PENDING)
    second = make(tmp_path, "second", FINISHED)
    with pytest.raises(ExerciseFailed) as info:
        verify([first, second], (0, 2), False, False)
    assert info.value.exercise is first
    assert all(str(second.path) not in call for call in toolchain.calls)


def test_verify_prints_hints_when_asked(tmp_path, toolchain, capsys):
    exercise = make(tmp_path, "pending", PENDING, hint="look at the borrow")
    with pytest.raises(ExerciseFailed):
        verify([exercise], (0, 1), False, True)
    out = capsys.readouterr().out
    assert "Hints:" in out
    assert "look at the borrow" in out


def test_verify_run_failure(tmp_path, toolchain, capsys):
    toolchain.run_code = 101
    toolchain.stdout = b"panicked here"
    exercise = make(tmp_path, "panics", FINISHED)
    with pytest.raises(ExerciseFailed):
        verify([exercise], (0, 1), False, False)
    out = capsys.readouterr().out
    assert f"Ran {exercise} with errors" in out
    assert "panicked here" in out


def test_test_mode_passes_show_output(tmp_path, toolchain, capsys):
    toolchain.stdout = b"THIS TEST TOO SHALL PASS"
    exercise = make(tmp_path, "testSuccess", FINISHED, mode=Mode.TEST)
    test(exercise, True)
    assert toolchain.calls[-1] == [temp_file(), "--show-output"]
    assert "--test" in toolchain.calls[0]
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_test_without_verbose_hides_output(tmp_path, toolchain, capsys):
    toolchain.stdout = b"THIS TEST TOO SHALL PASS"
    exercise = make(tmp_path, "testSuccess", FINISHED, mode=Mode.TEST)
    test(exercise, False)
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_test_does_not_prompt_on_pending(tmp_path, toolchain, capsys):
    exercise = make(tmp_path, "pending_test", PENDING, mode=Mode.TEST)
    test(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_test_failure_raises(tmp_path, toolchain, capsys):
    toolchain.run_code = 101
    toolchain.stdout = b"assertion failed"
    exercise = make(tmp_path, "testNotPassed", FINISHED, mode=Mode.TEST)
    with pytest.raises(ExerciseFailed) as info:
        test(exercise, False)
    assert info.value.exercise is exercise
    assert "assertion failed" in capsys.readouterr().out