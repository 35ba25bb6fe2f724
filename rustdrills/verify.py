"""Checking exercises in order and reporting the first one that is not finished."""

from __future__ import annotations

from collections.abc import Iterable

from rustdrills.exercise import (
    CompilationError,
    CompiledExercise,
    Done,
    Exercise,
    Mode,
    RunError,
)
from rustdrills.ui import no_emoji, style, success, warn

_BAR_WIDTH = 60


class ExerciseFailed(Exception):
    """An exercise did not compile, did not pass, or is still marked as pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} is not finished")
        self.exercise = exercise


class _ProgressBar:
    """A plain progress line: bar, position, total and percentage."""

    def __init__(self, position: int, total: int) -> None:
        self.position = position
        self.total = total

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 100.0
        return self.position / self.total * 100.0

    def render(self) -> str:
        if self.total == 0:
            filled = _BAR_WIDTH
        else:
            filled = min(_BAR_WIDTH, _BAR_WIDTH * self.position // self.total)
        if filled < _BAR_WIDTH:
            bar = "#" * filled + ">" + "-" * (_BAR_WIDTH - filled - 1)
        else:
            bar = "#" * _BAR_WIDTH
        return (f"Progress: [{bar}] {self.position}/{self.total} "
                f"({self.percentage:.1f} %)")

    def draw(self) -> None:
        print(self.render())

    def advance(self) -> None:
        self.position += 1
        self.draw()


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in turn; raise ExerciseFailed at the first unfinished one."""
    num_done, total = progress
    bar = _ProgressBar(num_done, total)
    bar.draw()
    for exercise in exercises:
        match exercise.mode:
            case Mode.TEST | Mode.BUILD_SCRIPT:
                completed = _compile_and_test(exercise, True, verbose, success_hints)
            case Mode.COMPILE:
                completed = _compile_and_run_interactively(exercise, success_hints)
            case Mode.CLIPPY:
                completed = _compile_only(exercise, success_hints)
        if not completed:
            raise ExerciseFailed(exercise)
        bar.advance()


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run the exercise's test harness; raise ExerciseFailed on failure."""
    _compile_and_test(exercise, False, verbose, False)


def _compile(exercise: Exercise) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompilationError as exc:
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(exc.output.stderr)
        raise ExerciseFailed(exercise) from exc


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _compile(exercise):
        pass
    return _prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except RunError as exc:
            warn(f"Ran {exercise} with errors")
            print(exc.output.stdout)
            print(exc.output.stderr)
            raise ExerciseFailed(exercise) from exc
        return _prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except RunError as exc:
            warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
            print(exc.output.stdout)
            raise ExerciseFailed(exercise) from exc
    if verbose:
        print(output.stdout)
    if interactive:
        return _prompt_for_completion(exercise, None, success_hints)
    return True


def _separator() -> str:
    return style("=" * 20, bold=True)


def _prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    state = exercise.state()
    if isinstance(state, Done):
        return True

    match exercise.mode:
        case Mode.COMPILE:
            success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            success(f"Successfully compiled {exercise}!")

    plain = no_emoji()
    match exercise.mode:
        case Mode.COMPILE:
            message = "The code is compiling!"
        case Mode.TEST:
            message = "The code is compiling, and the tests pass!"
        case Mode.CLIPPY:
            message = ("The code is compiling, and Clippy is happy!" if plain
                       else "The code is compiling, and 📎 Clippy 📎 is happy!")
        case Mode.BUILD_SCRIPT:
            message = "Build script works!"

    print()
    print(f"~*~ {message} ~*~" if plain else f"🎉 🎉  {message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        print(_separator())
        print(prompt_output)
        print(_separator())
        print()
    if success_hints:
        print("Hints:")
        print(_separator())
        print(exercise.hint)
        print(_separator())
        print()

    print("You can keep working on this exercise,")
    print("or jump into the next one by removing the "
          f"{style('`I AM NOT DONE`', bold=True)} comment:")
    print()
    for context_line in state.context:
        line = (style(context_line.line, bold=True) if context_line.important
                else context_line.line)
        number = style(f"{context_line.number:>2}", color="blue", bold=True)
        print(f"{number} {style('|', color='blue')}  {line}")
    return False