"""Running or resetting a single exercise."""
from __future__ import annotations

import subprocess

from . import ui
from .exercise import CompilationFailed, Exercise, ExerciseFailed, Mode
from .verify import VerificationFailed, test


class RunFailed(Exception):
    """Raised when an exercise cannot be built, run, or reset."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} failed")
        self.exercise = exercise


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run one exercise; raise RunFailed if it does not pass."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            try:
                test(exercise, verbose)
            except VerificationFailed as err:
                raise RunFailed(exercise) from err
        case Mode.COMPILE | Mode.CLIPPY:
            compile_and_run(exercise)


def reset(exercise: Exercise) -> None:
    """Discard local changes to the exercise with git stash."""
    try:
        subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as err:
        raise RunFailed(exercise) from err


def compile_and_run(exercise: Exercise) -> None:
    """Build a binary exercise, run it and show its output."""
    try:
        compiled = exercise.compile()
    except CompilationFailed as err:
        ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(err.output.stderr)
        raise RunFailed(exercise) from err

    with compiled:
        try:
            output = compiled.run()
        except ExerciseFailed as err:
            print(err.output.stdout)
            print(err.output.stderr)
            ui.warn(f"Ran {exercise} with errors")
            raise RunFailed(exercise) from err
    print(output.stdout)
    ui.success(f"Successfully ran {exercise}")