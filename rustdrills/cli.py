"""Command-line entry point: list, run, verify, watch and grade exercises."""

from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
import threading
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from pathlib import Path

from rustdrills.exercise import Exercise, load_exercises
from rustdrills.project import RustAnalyzerProject
from rustdrills.run import reset, run
from rustdrills.ui import no_emoji
from rustdrills.verify import ExerciseFailed, verify
from rustdrills.watch import WatchStatus, watch

VERSION = "5.5.1"
INFO_FILE = "info.toml"
CHECK_RESULT_PATH = ".github/result/check_result.json"

WELCOME = """       welcome to...
   r u s t d r i l l s"""

DEFAULT_OUT = """Thanks for installing the exercises!

Is this your first time? Don't worry, these exercises were made for beginners!
We are going to teach you a lot of things about Rust, but before we can get
started, here's a couple of notes about how it all works:

1. The central concept is that you solve exercises. These exercises usually
   have some sort of syntax error in them, which will cause them to fail
   compilation or testing. Sometimes there's a logic error instead of a syntax
   error. No matter what error, it's your job to find it and fix it! You'll
   know when you fixed it because then the exercise will compile and we will
   be able to move on to the next exercise.
2. If you run in watch mode (which we recommend), it'll automatically start
   with the first exercise. Don't get confused by an error message popping up
   as soon as you start! This is part of the exercise that you're supposed to
   solve, so open the exercise file in an editor and start your detective work!
3. If you're stuck on an exercise, there is a helpful hint you can view by
   typing 'hint' (in watch mode), or running `rustdrills hint exercise_name`.
4. If you want to use `rust-analyzer` with exercises, which provides features
   like autocompletion, run the command `rustdrills lsp`.

Got all that? Great! To get started, run `rustdrills watch` in order to get the
first exercise. Make sure to have your editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|          You made it to the Fe-nish line!          |
+----------------------------------------------------+

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please don't hesitate to report them.
You can also contribute your own exercises to help the greater community!"""


class ExerciseNotFound(LookupError):
    """No exercise matches the requested name."""


@dataclass
class ExerciseResult:
    """Outcome of grading one exercise."""

    name: str
    result: bool


@dataclass
class ExerciseStatistics:
    """Totals of a grading run."""

    total_exercations: int = 0
    total_succeeds: int = 0
    total_failures: int = 0
    total_time: int = 0


@dataclass
class ExerciseCheckList:
    """Report written after grading every exercise."""

    exercises: list[ExerciseResult] = field(default_factory=list)
    user_name: str | None = None
    statistics: ExerciseStatistics = field(default_factory=ExerciseStatistics)

    def to_json(self) -> str:
        """Serialise the report as indented JSON."""
        return json.dumps(asdict(self), indent=2, ensure_ascii=False)


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on bad usage."""

    def error(self, message: str) -> None:  # type: ignore[override]
        prefix = "the following arguments are required:"
        if message.startswith(prefix):
            missing = message[len(prefix):].strip()
            message = f"Required positional arguments not provided:\n    {missing}"
        self.print_usage(sys.stderr)
        self.exit(1, f"{message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = _ArgumentParser(
        prog="rustdrills",
        description="A collection of small exercises to get you used to "
                    "writing and reading Rust code",
    )
    parser.add_argument("--nocapture", action="store_true",
                        help="show outputs from the test exercises")
    parser.add_argument("-v", "--version", action="store_true",
                        help="show the executable version")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("verify", help="verifies all exercises according to the "
                                       "recommended order")
    watch_parser = commands.add_parser("watch", help="reruns `verify` when files were edited")
    watch_parser.add_argument("--success-hints", action="store_true",
                              help="show hints on success")
    for name, text in (
        ("run", "runs/tests a single exercise"),
        ("reset", 'resets a single exercise using "git stash -- <filename>"'),
        ("hint", "returns a hint for the given exercise"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("name", help="the name of the exercise")

    list_parser = commands.add_parser("list", help="lists the available exercises")
    list_parser.add_argument("-p", "--paths", action="store_true",
                             help="show only the paths of the exercises")
    list_parser.add_argument("-n", "--names", action="store_true",
                             help="show only the names of the exercises")
    list_parser.add_argument("-f", "--filter", default=None,
                             help="provide a string to match exercise names; "
                                  "comma separated patterns are acceptable")
    list_parser.add_argument("-u", "--unsolved", action="store_true",
                             help="display only exercises not yet solved")
    list_parser.add_argument("-s", "--solved", action="store_true",
                             help="display only exercises that have been solved")

    commands.add_parser("lsp", help="enable rust-analyzer for exercises")
    commands.add_parser("cicvverify", help="grade every exercise and write a report")
    return parser


def find_exercise(name: str, exercises: Sequence[Exercise]) -> Exercise:
    """Find an exercise by name, or the first unfinished one for "next"."""
    if name == "next":
        for exercise in exercises:
            if not exercise.looks_done():
                return exercise
        raise ExerciseNotFound(
            "🎉 Congratulations! You have done all the exercises!\n"
            "🔚 There are no more exercises to do next!"
        )
    for exercise in exercises:
        if exercise.name == name:
            return exercise
    raise ExerciseNotFound(f"No exercise found for '{name}'!")


def list_exercises(
    exercises: Sequence[Exercise],
    paths: bool = False,
    names: bool = False,
    filter: str | None = None,
    unsolved: bool = False,
    solved: bool = False,
) -> int:
    """Print the exercise table and progress; return the number done."""
    if not paths and not names:
        print(f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}")
    patterns = [p for p in (filter or "").lower().split(",") if p.strip()]
    exercises_done = 0
    for exercise in exercises:
        fname = str(exercise.path)
        matches = any(p in exercise.name or p in fname for p in patterns)
        done = exercise.looks_done()
        if done:
            exercises_done += 1
        status = "Done" if done else "Pending"
        wanted = (done and solved) or (not done and unsolved) or (not solved and not unsolved)
        if wanted and (matches or filter is None):
            if paths:
                line = f"{fname}\n"
            elif names:
                line = f"{exercise.name}\n"
            else:
                line = f"{exercise.name:<17}\t{fname:<46}\t{status:<7}\n"
            sys.stdout.write(line)
    total = len(exercises)
    percentage = f"{exercises_done / total * 100.0:.1f}" if total else "NaN"
    print(f"Progress: You completed {exercises_done} / {total} exercises ({percentage} %).")
    return exercises_done


def _now() -> int:
    return int(time.time())


def cicv_verify(
    exercises: Iterable[Exercise],
    verbose: bool = False,
    output_path: str | os.PathLike = CHECK_RESULT_PATH,
) -> ExerciseCheckList:
    """Run every exercise concurrently, print progress and write a JSON report."""
    exercises = list(exercises)
    started = _now()
    total = len(exercises)
    check_list = ExerciseCheckList(statistics=ExerciseStatistics(total_exercations=total))
    lock = threading.Lock()

    def grade(exercise: Exercise) -> None:
        task_started = _now()
        try:
            run(exercise, True)
        except ExerciseFailed:
            passed = False
        else:
            passed = True
        with lock:
            stats = check_list.statistics
            if passed:
                stats.total_succeeds += 1
                print(f"{exercise.name}执行成功")
            else:
                print(f"{exercise.name}执行失败")
            print(f"总的题目数: {total}")
            print(f"当前做正确的题目数: {stats.total_succeeds}")
            print(f"当前修改试卷耗时: {_now() - task_started} s")
            check_list.exercises.append(ExerciseResult(name=exercise.name, result=passed))
            if not passed:
                stats.total_failures += 1

    with ThreadPoolExecutor() as pool:
        list(pool.map(grade, exercises))

    total_time = _now() - started
    print("===============================试卷批改完成,总耗时: "
          f"{total_time} s; ==================================")
    check_list.statistics.total_time = total_time
    Path(output_path).write_text(check_list.to_json(), encoding="utf-8")
    return check_list


def rustc_exists() -> bool:
    """Whether `rustc --version` runs successfully."""
    try:
        completed = subprocess.run(["rustc", "--version"], stdout=subprocess.DEVNULL,
                                   check=False)
    except OSError:
        return False
    return completed.returncode == 0


def _lsp() -> None:
    project = RustAnalyzerProject()
    try:
        project.get_sysroot_src()
    except OSError as exc:
        raise RuntimeError(
            "Couldn't find toolchain path, do you have `rustc` installed?"
        ) from exc
    try:
        project.exercises_to_json()
    except OSError as exc:
        raise RuntimeError("Couldn't parse exercises files") from exc

    if not project.crates:
        print("Failed find any exercises, make sure you're in the exercises folder")
        return
    try:
        project.write_to_disk()
    except OSError:
        print("Failed to write rust-project.json to disk for rust-analyzer")
        return
    print("Successfully generated rust-project.json")
    print("rust-analyzer will now parse exercises, restart your language server or editor")


def _watch(exercises: list[Exercise], verbose: bool, success_hints: bool) -> int:
    try:
        status = watch(exercises, verbose, success_hints)
    except OSError as exc:
        print(f"Error: Could not watch your progress. Error message was {exc!r}.")
        print("Most likely you've run out of disk space or your 'inotify limit' "
              "has been reached.")
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if no_emoji() else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying learning about Rust!")
        print("If you want to continue working on the exercises at a later point, "
              "you can simply run `rustdrills watch` again")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the process exit status."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path(INFO_FILE).exists():
        print(f"{sys.argv[0]} must be run from the exercises directory")
        print(f"Try `cd` into the directory that holds {INFO_FILE}!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(INFO_FILE)
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    try:
        match args.command:
            case "list":
                try:
                    list_exercises(exercises, args.paths, args.names, args.filter,
                                   args.unsolved, args.solved)
                except BrokenPipeError:
                    return 0
            case "run":
                run(find_exercise(args.name, exercises), verbose)
            case "reset":
                reset(find_exercise(args.name, exercises))
            case "hint":
                print(find_exercise(args.name, exercises).hint)
            case "verify":
                verify(exercises, (0, len(exercises)), verbose, False)
            case "cicvverify":
                cicv_verify(exercises, verbose)
            case "lsp":
                _lsp()
            case "watch":
                return _watch(exercises, verbose, args.success_hints)
    except ExerciseNotFound as exc:
        print(exc)
        return 1
    except ExerciseFailed:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())