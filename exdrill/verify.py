"""Checking exercises in order and prompting once one passes."""
from __future__ import annotations

import enum
import math
import sys
from typing import Iterable, TextIO

from . import ui
from .exercise import (
    CompilationFailed,
    CompiledExercise,
    Exercise,
    ExerciseFailed,
    Mode,
)

BAR_WIDTH = 60

_MODE_SUCCESS = {
    Mode.COMPILE: "Successfully ran {}!",
    Mode.TEST: "Successfully tested {}!",
    Mode.CLIPPY: "Successfully compiled {}!",
    Mode.BUILD_SCRIPT: "Successfully compiled {}!",
}


class RunMode(enum.Enum):
    """Whether a passing test exercise should prompt the learner."""

    INTERACTIVE = "interactive"
    NON_INTERACTIVE = "non-interactive"


class VerificationFailed(Exception):
    """Raised when an exercise does not build, fails, or is still pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} did not pass")
        self.exercise = exercise


def progress_message(done: int, total: int) -> str:
    """Format the completed share of the exercises as a percentage."""
    percentage = done / total * 100.0 if total else math.nan
    return f"({percentage:.1f} %)"


class _ProgressBar:
    def __init__(self, position: int, total: int, stream: TextIO | None = None) -> None:
        self.position = position
        self.total = total
        self.stream = stream if stream is not None else sys.stderr
        self._draw()

    def _draw(self) -> None:
        if self.total:
            filled = min(BAR_WIDTH, BAR_WIDTH * self.position // self.total)
        else:
            filled = 0
        head = ">" if filled < BAR_WIDTH else ""
        rest = "-" * (BAR_WIDTH - filled - len(head))
        bar = ui.green("#" * filled + head) + ui.red(rest)
        message = progress_message(self.position, self.total)
        self.stream.write(
            f"Progress: [{bar}] {self.position}/{self.total} {message}\n"
        )
        self.stream.flush()

    def inc(self) -> None:
        self.position += 1
        self._draw()


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise VerificationFailed at the first one that fails."""
    num_done, total = progress
    bar = _ProgressBar(num_done, total)
    for exercise in exercises:
        match exercise.mode:
            case Mode.TEST | Mode.BUILD_SCRIPT:
                passed = compile_and_test(
                    exercise, RunMode.INTERACTIVE, verbose, success_hints
                )
            case Mode.COMPILE:
                passed = compile_and_run_interactively(exercise, success_hints)
            case Mode.CLIPPY:
                passed = compile_only(exercise, success_hints)
        if not passed:
            raise VerificationFailed(exercise)
        bar.inc()


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run the test harness of an exercise without prompting."""
    compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def _compile(exercise: Exercise) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompilationFailed as err:
        ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(err.output.stderr)
        raise VerificationFailed(exercise) from err


def compile_only(exercise: Exercise, success_hints: bool = False) -> bool:
    """Build the exercise without running it, then prompt."""
    with _compile(exercise):
        pass
    return prompt_for_completion(exercise, None, success_hints)


def compile_and_run_interactively(exercise: Exercise, success_hints: bool = False) -> bool:
    """Build and run the exercise, then prompt with its output."""
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except ExerciseFailed as err:
            ui.warn(f"Ran {exercise} with errors")
            print(err.output.stdout)
            print(err.output.stderr)
            raise VerificationFailed(exercise) from err
        return prompt_for_completion(exercise, output.stdout, success_hints)


def compile_and_test(
    exercise: Exercise,
    run_mode: RunMode,
    verbose: bool = False,
    success_hints: bool = False,
) -> bool:
    """Build and run the test harness, printing its output when verbose."""
    with _compile(exercise) as compiled:
        try:
            output = compiled.run()
        except ExerciseFailed as err:
            ui.warn(
                f"Testing of {exercise} failed! Please try again. Here's the output:"
            )
            print(err.output.stdout)
            raise VerificationFailed(exercise) from err
        if verbose:
            print(output.stdout)
        if run_mode is RunMode.INTERACTIVE:
            return prompt_for_completion(exercise, None, success_hints)
        return True


def _separator() -> str:
    return ui.bold("=" * 20)


def _success_message(mode: Mode) -> str:
    match mode:
        case Mode.COMPILE:
            return "The code is compiling!"
        case Mode.TEST:
            return "The code is compiling, and the tests pass!"
        case Mode.CLIPPY:
            if ui.no_emoji():
                return "The code is compiling, and Clippy is happy!"
            return "The code is compiling, and 📎 Clippy 📎 is happy!"
        case Mode.BUILD_SCRIPT:
            return "Build script works!"


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool = False
) -> bool:
    """Return True if the exercise is done; otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True
    ui.success(_MODE_SUCCESS[exercise.mode].format(exercise))

    message = _success_message(exercise.mode)
    print()
    if ui.no_emoji():
        print(f"~*~ {message} ~*~")
    else:
        print(f"🎉 🎉  {message} 🎉 🎉")
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
    print(
        "or jump into the next one by removing the "
        f"{ui.bold('`I AM NOT DONE`')} comment:"
    )
    print()
    for context_line in state.context:
        line = ui.bold(context_line.line) if context_line.important else context_line.line
        number = ui.bold(ui.blue(f"{context_line.number:>2}"))
        print(f"{number} {ui.blue('|')}  {line}")
    return False