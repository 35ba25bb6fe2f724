"""Watch mode: re-verify exercises whenever a source file changes."""

from __future__ import annotations

import os
import queue
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator
from enum import Enum
from itertools import chain
from pathlib import Path
from typing import TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rustdrills.exercise import Exercise
from rustdrills.verify import ExerciseFailed, verify

_POLL_SECONDS = 1.0

_HELP = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class WatchShell:
    """Reads commands typed while watch mode runs."""

    def __init__(
        self,
        hint: str | None = None,
        should_quit: threading.Event | None = None,
        stdin: TextIO | None = None,
    ) -> None:
        self.hint = hint
        self.should_quit = should_quit if should_quit is not None else threading.Event()
        self._stdin = stdin

    def handle(self, line: str) -> None:
        """Carry out one command line."""
        command = line.strip()
        if command == "hint":
            if self.hint is not None:
                print(self.hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.should_quit.set()
            print("Bye!")
        elif command == "help":
            print(_HELP)
        elif command.startswith("!"):
            shell_command = command[1:]
            parts = shell_command.split()
            if not parts:
                print("no command provided")
                return
            try:
                subprocess.run(parts, check=False)
            except OSError as exc:
                print(f"failed to execute command `{shell_command}`: {exc}")
        else:
            print(f"unknown command: {command}")

    def start(self) -> threading.Thread:
        """Read commands on a background thread until end of input."""
        print("Welcome to watch mode! You can type 'help' to get an overview "
              "of the commands you can use here.")
        thread = threading.Thread(target=self._read_loop, daemon=True)
        thread.start()
        return thread

    def _read_loop(self) -> None:
        stream = self._stdin if self._stdin is not None else sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            self.handle(line)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, changes: queue.Queue[str]) -> None:
        super().__init__()
        self._changes = changes

    def _record(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._changes.put(os.fsdecode(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._record(event)


def _clear_screen() -> None:
    print("\x1bc")


def _ends_with(path: Path, suffix: Path) -> bool:
    tail = suffix.parts
    return len(tail) <= len(path.parts) and path.parts[len(path.parts) - len(tail):] == tail


def _distinct_changes(first: str, changes: queue.Queue[str]) -> Iterator[str]:
    seen = {first}
    yield first
    while True:
        try:
            path = changes.get_nowait()
        except queue.Empty:
            return
        if path not in seen:
            seen.add(path)
            yield path


def _reverify(
    changed: str, exercises: list[Exercise], verbose: bool, success_hints: bool
) -> bool:
    """Verify after a change; return False if the change is not an exercise source."""
    path = Path(changed)
    if path.suffix != ".rs" or not path.exists():
        return False
    filepath = path.resolve()
    edited = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    others = (
        e for e in exercises
        if not e.looks_done() and not _ends_with(filepath, e.path)
    )
    pending: Iterable[Exercise] = chain([edited] if edited is not None else [], others)
    num_done = sum(1 for e in exercises if e.looks_done())
    _clear_screen()
    verify(pending, (num_done, len(exercises)), verbose, success_hints)
    return True


def watch(
    exercises: Iterable[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify all exercises, then keep re-verifying as ./exercises changes."""
    exercises = list(exercises)
    changes: queue.Queue[str] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(changes), "./exercises", recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
        except ExerciseFailed as failed:
            shell = WatchShell(hint=failed.exercise.hint)
        else:
            return WatchStatus.FINISHED

        shell.start()
        while True:
            try:
                first = changes.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                pass
            else:
                for changed in _distinct_changes(first, changes):
                    try:
                        if _reverify(changed, exercises, verbose, success_hints):
                            return WatchStatus.FINISHED
                    except ExerciseFailed as failed:
                        shell.hint = failed.exercise.hint
                        break
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()