"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from rustdrills.exercise import CompilationError, Exercise, Mode, RunError
from rustdrills.ui import success, warn
from rustdrills.verify import ExerciseFailed, test


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run (or test) one exercise; raise ExerciseFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start `git stash -- <path>` for the exercise and return the process."""
    try:
        return subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise ExerciseFailed(exercise) from exc


def _compile_and_run(exercise: Exercise) -> None:
    try:
        compiled = exercise.compile()
    except CompilationError as exc:
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(exc.output.stderr)
        raise ExerciseFailed(exercise) from exc

    with compiled:
        try:
            output = compiled.run()
        except RunError as exc:
            print(exc.output.stdout)
            print(exc.output.stderr)
            warn(f"Ran {exercise} with errors")
            raise ExerciseFailed(exercise) from exc

    print(output.stdout)
    success(f"Successfully ran {exercise}")