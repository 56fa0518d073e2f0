"""Watch mode: re-verify exercises whenever their files change."""
from __future__ import annotations

import enum
import os
import queue
import subprocess
import sys
import threading
from pathlib import Path
from typing import Iterable, TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationFailed, verify

WATCH_DIR = "./exercises"
POLL_INTERVAL = 1.0

HELP_TEXT = """Commands available to you in watch mode:
  hint   - prints the current exercise's hint
  clear  - clears the screen
  quit   - quits watch mode
  !<cmd> - executes a command, like `!rustc --explain E0381`
  help   - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class WatchShell:
    """The small command shell that runs alongside watch mode."""

    def __init__(self, hint: str | None = None, stdin: TextIO | None = None) -> None:
        self.hint = hint
        self.quit_requested = threading.Event()
        self._stdin = stdin

    def handle(self, line: str) -> None:
        """Carry out one command typed by the learner."""
        command = line.strip()
        if command == "hint":
            if self.hint is not None:
                print(self.hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self.quit_requested.set()
            print("Bye!")
        elif command == "help":
            print(HELP_TEXT)
        elif command.startswith("!"):
            cmd = command[1:]
            parts = cmd.split()
            if not parts:
                print("no command provided")
            else:
                try:
                    subprocess.run(parts)
                except OSError as err:
                    print(f"failed to execute command `{cmd}`: {err}")
        else:
            print(f"unknown command: {command}")

    def _loop(self) -> None:
        stream = self._stdin if self._stdin is not None else sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as err:
                print(f"error reading command: {err}")
                return
            if not line:
                return
            self.handle(line)

    def start(self) -> threading.Thread:
        """Read commands on a background thread."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._loop, daemon=True)
        thread.start()
        return thread


def _ends_with(path: Path, suffix: Path) -> bool:
    if suffix.is_absolute():
        return path == suffix
    tail = suffix.parts
    return len(tail) <= len(path.parts) and path.parts[len(path.parts) - len(tail):] == tail


def pending_after_change(
    exercises: Iterable[Exercise], changed_path: str | os.PathLike
) -> list[Exercise]:
    """The changed exercise first, then every other pending exercise in order."""
    exercises = list(exercises)
    filepath = Path(changed_path).resolve()
    changed = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    rest = [
        e for e in exercises
        if not _ends_with(filepath, e.path) and not e.looks_done()
    ]
    return ([changed] if changed is not None else []) + rest


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, events: "queue.Queue[str]") -> None:
        super().__init__()
        self._events = events

    def on_created(self, event: FileSystemEvent) -> None:
        self._push(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._push(event)

    def _push(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(os.fsdecode(event.src_path))


def _clear_screen() -> None:
    print("\x1bc")


def _next_changes(events: "queue.Queue[str]") -> list[str]:
    try:
        first = events.get(timeout=POLL_INTERVAL)
    except queue.Empty:
        return []
    changed = [first]
    while True:
        try:
            changed.append(events.get_nowait())
        except queue.Empty:
            break
    return list(dict.fromkeys(changed))


def _watch_loop(
    exercises: list[Exercise],
    events: "queue.Queue[str]",
    verbose: bool,
    success_hints: bool,
) -> WatchStatus:
    _clear_screen()
    try:
        verify(exercises, (0, len(exercises)), verbose, success_hints)
        return WatchStatus.FINISHED
    except VerificationFailed as failed:
        shell = WatchShell(failed.exercise.hint)
    shell.start()
    while True:
        for changed in _next_changes(events):
            path = Path(changed)
            if path.suffix != ".rs" or not path.exists():
                continue
            pending = pending_after_change(exercises, path)
            num_done = sum(1 for e in exercises if e.looks_done())
            _clear_screen()
            try:
                verify(pending, (num_done, len(exercises)), verbose, success_hints)
                return WatchStatus.FINISHED
            except VerificationFailed as failed:
                shell.hint = failed.exercise.hint
        if shell.quit_requested.is_set():
            return WatchStatus.UNFINISHED


def watch(
    exercises: Iterable[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify the exercises, then again each time a file under ./exercises changes."""
    exercises = list(exercises)
    root = Path(WATCH_DIR)
    if not root.is_dir():
        raise FileNotFoundError(f"cannot watch {root}: no such directory")
    events: "queue.Queue[str]" = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(events), str(root), recursive=True)
    observer.start()
    try:
        return _watch_loop(exercises, events, verbose, success_hints)
    finally:
        observer.stop()
        observer.join()