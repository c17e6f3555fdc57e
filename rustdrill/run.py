"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from rich.console import Console

from . import ui
from .exercise import CompileError, Exercise, ExerciseError, Mode, RunError
from .verify import test

_console = Console(highlight=False, markup=False, emoji=False, soft_wrap=True)


class ExerciseRunFailed(Exception):
    """Running, testing or resetting an exercise failed."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} failed")
        self.exercise = exercise


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Build the exercise and run it, or run its tests; raise ExerciseRunFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            try:
                test(exercise, verbose)
            except ExerciseError as err:
                raise ExerciseRunFailed(exercise) from err
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)


def reset(exercise: Exercise) -> None:
    """Stash the learner's changes to the exercise file."""
    try:
        subprocess.run(["git", "stash", "--", str(exercise.path)], check=False)
    except OSError as err:
        raise ExerciseRunFailed(exercise) from err


def _compile_and_run(exercise: Exercise) -> None:
    with _console.status(f"Compiling {exercise}...") as status:
        try:
            compiled = exercise.compile()
        except CompileError as err:
            status.stop()
            ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(err.output.stderr)
            raise ExerciseRunFailed(exercise) from err

        with compiled:
            status.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as err:
                status.stop()
                print(err.output.stdout)
                print(err.output.stderr)
                ui.warn(f"Ran {exercise} with errors")
                raise ExerciseRunFailed(exercise) from err

    print(output.stdout)
    ui.success(f"Successfully ran {exercise}")