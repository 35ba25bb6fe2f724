"""Exercises: loading, compiling, running and completion state."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
import weakref
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Name of the binary built for this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        pass


def clean() -> None:
    """Remove the temporary binary, if any."""
    _remove(temp_file())


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class Done:
    """The exercise no longer carries the pending marker."""


@dataclass(frozen=True)
class Pending:
    """The exercise still carries the marker; holds the lines around it."""

    context: tuple[ContextLine, ...]


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a compiler or exercise binary."""

    stdout: str = ""
    stderr: str = ""


class CompilationError(Exception):
    """Compiling an exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


class RunError(Exception):
    """Running a compiled exercise failed."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr)
        self.output = output


def _execute(args: list[str], failure_message: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True, check=False)
    except OSError as exc:
        raise RuntimeError(failure_message) from exc


def _output(completed: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=(completed.stdout or b"").decode("utf-8", errors="replace"),
        stderr=(completed.stderr or b"").decode("utf-8", errors="replace"),
    )


def _lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


class CompiledExercise:
    """A successfully compiled exercise; its binary is removed on close."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self._finalizer = weakref.finalize(self, _remove, temp_file())

    def run(self) -> ExerciseOutput:
        """Run the compiled binary; raise RunError if it fails."""
        return self.exercise._run()

    def close(self) -> None:
        """Remove the compiled binary."""
        self._finalizer()

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str = ""

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if not isinstance(self.mode, Mode):
            self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def _rustc_args(self, *extra: str) -> list[str]:
        return ["rustc", *extra, str(self.path), "-o", temp_file(),
                *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS]

    def _write_manifest(self, manifest_path: str) -> None:
        manifest = (
            f'[package]\nname = "{self.name}"\nversion = "0.0.1"\n'
            f'edition = "2021"\n[[bin]]\nname = "{self.name}"\n'
            f'path = "{self.name}.rs"'
        )
        try:
            Path(manifest_path).write_text(manifest, encoding="utf-8")
        except OSError as exc:
            if "NO_EMOJI" in os.environ:
                message = "Failed to write Clippy Cargo.toml file."
            else:
                message = "Failed to write 📎 Clippy 📎 Cargo.toml file."
            raise RuntimeError(message) from exc

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompilationError with the compiler output on failure."""
        failure = "Failed to run 'compile' command."
        match self.mode:
            case Mode.COMPILE:
                result = _execute(self._rustc_args(), failure)
            case Mode.TEST:
                result = _execute(self._rustc_args("--test"), failure)
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # Build a binary too, so that clippy exercises can be run.
                _execute(self._rustc_args(), "Failed to compile!")
                # A clean is needed for clippy to report every lint.
                _execute(
                    ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                     *RUSTC_COLOR_ARGS],
                    "Failed to run 'cargo clean'",
                )
                result = _execute(
                    ["cargo", "clippy", "--manifest-path", CLIPPY_CARGO_TOML_PATH,
                     *RUSTC_COLOR_ARGS, "--", "-D", "warnings", "-D", "clippy::float_cmp"],
                    failure,
                )
            case Mode.BUILD_SCRIPT:
                self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
                result = _execute(
                    ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH],
                    failure,
                )
        if result.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompilationError(_output(result))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput()
        args = [temp_file()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        completed = _execute(args, "Failed to run 'run' command")
        output = _output(completed)
        if completed.returncode != 0:
            raise RunError(output)
        return output

    def state(self) -> Done | Pending:
        """Read the source and report whether the pending marker is still there."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return Done()
        lines = _lines(source)
        index = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if index is None:
            raise RuntimeError(f"pending marker in {self.path} spans several lines")
        first = max(index - CONTEXT, 0)
        context = tuple(
            ContextLine(line=line, number=number + 1, important=number == index)
            for number, line in enumerate(lines[first:index + CONTEXT + 1], start=first)
        )
        return Pending(context)

    def looks_done(self) -> bool:
        """Whether the marker has been removed (not proof the exercise is solved)."""
        return isinstance(self.state(), Done)


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from an info.toml file."""
    with open(path, "rb") as handle:
        data = tomllib.load(handle)
    try:
        return [
            Exercise(
                name=entry["name"],
                path=Path(entry["path"]),
                mode=Mode(entry["mode"]),
                hint=entry["hint"],
            )
            for entry in data["exercises"]
        ]
    except KeyError as exc:
        raise ValueError(f"missing field {exc} in {path}") from exc