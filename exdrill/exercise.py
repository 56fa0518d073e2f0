"""Exercise descriptions, their compilation and their completion state."""
from __future__ import annotations

import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from . import ui

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_PATTERN = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file_path() -> str:
    """Return a temporary binary path unique to this process and thread."""
    raw = f"ThreadId({threading.get_ident()})"
    thread_id = "".join(c for c in raw if c.isalnum())
    return f"./temp_{os.getpid()}_{thread_id}"


def clean() -> None:
    """Remove the temporary binary, ignoring any error."""
    try:
        os.remove(temp_file_path())
    except OSError:
        pass


class Mode(enum.Enum):
    """How an exercise is built and checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"

    @classmethod
    def parse(cls, value: str) -> "Mode":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"unknown exercise mode: {value!r}") from None


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a command."""

    stdout: str
    stderr: str


class _OutputError(Exception):
    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


class CompilationFailed(_OutputError):
    """Raised when an exercise does not build."""


class ExerciseFailed(_OutputError):
    """Raised when a built exercise exits unsuccessfully."""


@dataclass(frozen=True)
class ContextLine:
    """One source line around a pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state; an empty context means the exercise is done."""

    context: tuple[ContextLine, ...] = ()

    def done(self) -> bool:
        return not self.context


def _output(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(
        stdout=result.stdout.decode("utf-8", errors="replace"),
        stderr=result.stderr.decode("utf-8", errors="replace"),
    )


def _execute(args: list[str], failure: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True)
    except OSError as err:
        raise RuntimeError(failure) from err


def _lines(source: str) -> list[str]:
    parts = source.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


@dataclass(frozen=True)
class Exercise:
    """An exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Exercise":
        try:
            return cls(
                name=str(data["name"]),
                path=Path(data["path"]),
                mode=Mode.parse(data["mode"]),
                hint=str(data["hint"]),
            )
        except KeyError as err:
            raise ValueError(f"exercise entry is missing {err.args[0]!r}") from None

    def __str__(self) -> str:
        return str(self.path)

    def _manifest(self) -> str:
        return (
            "[package]\n"
            f'name = "{self.name}"\n'
            'version = "0.0.1"\n'
            'edition = "2021"\n'
            "[[bin]]\n"
            f'name = "{self.name}"\n'
            f'path = "{self.name}.rs"'
        )

    def _write_manifest(self, path: str) -> None:
        if ui.no_emoji():
            message = "Failed to write Clippy Cargo.toml file."
        else:
            message = "Failed to write 📎 Clippy 📎 Cargo.toml file."
        try:
            Path(path).write_text(self._manifest(), encoding="utf-8")
        except OSError as err:
            raise RuntimeError(message) from err

    def compile(self) -> "CompiledExercise":
        """Build the exercise; raise CompilationFailed when it does not build."""
        path = str(self.path)
        failure = "Failed to run 'compile' command."
        match self.mode:
            case Mode.COMPILE:
                result = _execute(
                    ["rustc", path, "-o", temp_file_path(),
                     *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS],
                    failure,
                )
            case Mode.TEST:
                result = _execute(
                    ["rustc", "--test", path, "-o", temp_file_path(),
                     *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS],
                    failure,
                )
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # Build a binary too so the exercise can be run afterwards.
                _execute(
                    ["rustc", path, "-o", temp_file_path(),
                     *RUSTC_COLOR_ARGS, *RUSTC_EDITION_ARGS],
                    "Failed to compile!",
                )
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
        raise CompilationFailed(_output(result))

    def _run(self) -> ExerciseOutput:
        match self.mode:
            case Mode.TEST:
                arg = "--show-output"
            case Mode.BUILD_SCRIPT:
                return ExerciseOutput(stdout="", stderr="")
            case _:
                arg = ""
        result = _execute([temp_file_path(), arg], "Failed to run 'run' command")
        output = _output(result)
        if result.returncode != 0:
            raise ExerciseFailed(output)
        return output

    def state(self) -> State:
        """Find the pending marker and the lines around it."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_PATTERN.search(source):
            return State()
        lines = _lines(source)
        matched = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_PATTERN.search(line)),
            None,
        )
        if matched is None:
            raise RuntimeError(f"pending marker in {self.path} spans several lines")
        low = max(matched - CONTEXT, 0)
        high = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=i + 1, important=i == matched)
                for i, line in enumerate(lines[low:high + 1], start=low)
            )
        )

    def looks_done(self) -> bool:
        """Whether the pending marker has been removed."""
        return self.state().done()


class CompiledExercise:
    """A built exercise; closing it removes the temporary binary."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise

    def run(self) -> ExerciseOutput:
        """Run the binary; raise ExerciseFailed on a non-zero exit."""
        return self.exercise._run()

    def close(self) -> None:
        clean()

    def __enter__(self) -> "CompiledExercise":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read the exercise list from a TOML file."""
    with open(path, "rb") as fh:
        data = tomllib.load(fh)
    try:
        entries = data["exercises"]
    except KeyError:
        raise ValueError(f"{path} has no exercises list") from None
    return [Exercise.from_dict(entry) for entry in entries]