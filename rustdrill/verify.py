"""Checking exercises in order and prompting the learner when one passes."""

from __future__ import annotations

from enum import Enum, auto
from typing import Iterable

from rich.console import Console
from rich.status import Status
from rich.text import Text

from . import ui
from .exercise import (
    CompiledExercise,
    CompileError,
    Exercise,
    ExerciseError,
    Mode,
    RunError,
)

_console = Console(highlight=False, markup=False, emoji=False, soft_wrap=True)
_BAR_WIDTH = 60
_SEPARATOR = "===================="


class RunMode(Enum):
    """Whether a passing exercise should prompt the learner."""

    INTERACTIVE = auto()
    NON_INTERACTIVE = auto()


class VerificationFailed(Exception):
    """An exercise did not pass; it is the one the learner should work on next."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} is not done yet")
        self.exercise = exercise


def _progress_line(position: int, total: int, percentage: float) -> str:
    filled = min(_BAR_WIDTH, _BAR_WIDTH * position // total) if total else _BAR_WIDTH
    head = ">" if filled < _BAR_WIDTH else ""
    rest = _BAR_WIDTH - filled - len(head)
    bar = "#" * filled + head + "-" * rest
    return f"Progress: [{bar}] {position}/{total} ({percentage:.1f} %)"


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check each exercise in turn; raise VerificationFailed at the first one not done."""
    num_done, total = progress
    percentage = num_done / total * 100.0 if total else 0.0
    step = 100.0 / total if total else 0.0
    position = num_done
    print(_progress_line(position, total, percentage))

    for exercise in exercises:
        try:
            match exercise.mode:
                case Mode.TEST | Mode.BUILD_SCRIPT:
                    passed = _compile_and_test(
                        exercise, RunMode.INTERACTIVE, verbose, success_hints
                    )
                case Mode.COMPILE:
                    passed = _compile_and_run_interactively(exercise, success_hints)
                case Mode.CLIPPY:
                    passed = _compile_only(exercise, success_hints)
        except ExerciseError:
            passed = False
        if not passed:
            raise VerificationFailed(exercise)
        percentage += step
        position += 1
        print(_progress_line(position, total, percentage))


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Build and run the exercise's tests without prompting; raise ExerciseError on failure."""
    _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False)


def _compile(exercise: Exercise, status: Status) -> CompiledExercise:
    try:
        return exercise.compile()
    except CompileError as err:
        status.stop()
        ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(err.output.stderr)
        raise


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _console.status(f"Compiling {exercise}...") as status:
        _compile(exercise, status).close()
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _console.status(f"Compiling {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            status.update(f"Running {exercise}...")
            try:
                output = compiled.run()
            except RunError as err:
                status.stop()
                ui.warn(f"Ran {exercise} with errors")
                print(err.output.stdout)
                print(err.output.stderr)
                raise
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: RunMode, verbose: bool, success_hints: bool
) -> bool:
    with _console.status(f"Testing {exercise}...") as status:
        with _compile(exercise, status) as compiled:
            try:
                output = compiled.run()
            except RunError as err:
                status.stop()
                ui.warn(
                    f"Testing of {exercise} failed! Please try again. Here's the output:"
                )
                print(err.output.stdout)
                raise
    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def _separator() -> None:
    _console.print(_SEPARATOR, style="bold")


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None = None, success_hints: bool = False
) -> bool:
    """Return True if the exercise is done; otherwise congratulate and show the marker."""
    state = exercise.state()
    if state.done:
        return True

    match exercise.mode:
        case Mode.COMPILE:
            ui.success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            ui.success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            ui.success(f"Successfully compiled {exercise}!")

    no_emoji = ui.no_emoji()
    if no_emoji:
        clippy_message = "The code is compiling, and Clippy is happy!"
    else:
        clippy_message = "The code is compiling, and 📎 Clippy 📎 is happy!"
    success_message = {
        Mode.COMPILE: "The code is compiling!",
        Mode.TEST: "The code is compiling, and the tests pass!",
        Mode.CLIPPY: clippy_message,
        Mode.BUILD_SCRIPT: "Build script works!",
    }[exercise.mode]

    print()
    if no_emoji:
        print(f"~*~ {success_message} ~*~")
    else:
        print(f"🎉 🎉  {success_message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        _separator()
        print(prompt_output)
        _separator()
        print()
    if success_hints:
        print("Hints:")
        _separator()
        print(exercise.hint)
        _separator()
        print()

    print("You can keep working on this exercise,")
    line = Text("or jump into the next one by removing the ")
    line.append("`I AM NOT DONE`", style="bold")
    line.append(" comment:")
    _console.print(line)
    print()
    for context_line in state.context:
        text = Text()
        text.append(f"{context_line.number:>2}", style="bold blue")
        text.append(" ")
        text.append("|", style="blue")
        text.append("  ")
        text.append(context_line.line, style="bold" if context_line.important else "")
        _console.print(text)

    return False