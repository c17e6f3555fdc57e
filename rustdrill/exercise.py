"""Exercises: their metadata, compilation, execution and completion state."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Sequence

from . import ui

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def _temp_file() -> str:
    """A temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def _clean() -> None:
    try:
        os.remove(_temp_file())
    except OSError:
        pass


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _run_process(args: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(list(args), capture_output=True, check=False)


def _lines(source: str) -> list[str]:
    """Split text into lines the way a line iterator does: no trailing empty line, CR stripped."""
    parts = source.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A line of source shown around the pending marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class State:
    """Completion state of an exercise; pending exercises carry their context lines."""

    context: tuple[ContextLine, ...] = ()

    @property
    def done(self) -> bool:
        return not self.context


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a finished process."""

    stdout: str
    stderr: str


class ExerciseError(Exception):
    """A step of checking an exercise failed; the process output is attached."""

    def __init__(self, output: ExerciseOutput) -> None:
        super().__init__(output.stderr or output.stdout)
        self.output = output


class CompileError(ExerciseError):
    """The exercise did not compile."""


class RunError(ExerciseError):
    """The compiled exercise exited unsuccessfully."""


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if not isinstance(self.mode, Mode):
            self.mode = Mode(self.mode)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Exercise:
        for key in ("name", "path", "mode", "hint"):
            if key not in data:
                raise ValueError(f"missing field `{key}`")
        return cls(
            name=str(data["name"]),
            path=Path(data["path"]),
            mode=Mode(data["mode"]),
            hint=str(data["hint"]),
        )

    def _cargo_manifest(self) -> str:
        return (
            "[package]\n"
            f'name = "{self.name}"\n'
            'version = "0.0.1"\n'
            'edition = "2021"\n'
            "[[bin]]\n"
            f'name = "{self.name}"\n'
            f'path = "{self.name}.rs"'
        )

    def _write_manifest(self, manifest: str) -> None:
        if ui.no_emoji():
            message = "Failed to write Clippy Cargo.toml file."
        else:
            message = "Failed to write 📎 Clippy 📎 Cargo.toml file."
        try:
            Path(manifest).write_text(self._cargo_manifest(), encoding="utf-8")
        except OSError as err:
            raise RuntimeError(message) from err

    def _rustc(self, *extra: str) -> list[str]:
        return [
            "rustc",
            *extra,
            str(self.path),
            "-o",
            _temp_file(),
            *RUSTC_COLOR_ARGS,
            *RUSTC_EDITION_ARGS,
        ]

    def compile(self) -> CompiledExercise:
        """Build the exercise; raise CompileError with the build output on failure."""
        match self.mode:
            case Mode.COMPILE:
                proc = _run_process(self._rustc())
            case Mode.TEST:
                proc = _run_process(self._rustc("--test"))
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # Build a runnable binary too; a failure here shows up again in clippy.
                _run_process(self._rustc())
                _run_process(
                    ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS]
                )
                proc = _run_process(
                    [
                        "cargo",
                        "clippy",
                        "--manifest-path",
                        CLIPPY_CARGO_TOML_PATH,
                        *RUSTC_COLOR_ARGS,
                        "--",
                        "-D",
                        "warnings",
                        "-D",
                        "clippy::float_cmp",
                    ]
                )
            case Mode.BUILD_SCRIPT:
                self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
                proc = _run_process(
                    ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH]
                )

        if proc.returncode == 0:
            return CompiledExercise(self)
        _clean()
        raise CompileError(ExerciseOutput(_decode(proc.stdout), _decode(proc.stderr)))

    def state(self) -> State:
        """Find the pending marker and the lines around it."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return State()

        lines = _lines(source)
        matched = next(
            (index for index, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise ValueError(f"pending marker in {self.path} does not sit on a single line")

        first = max(matched - CONTEXT, 0)
        last = matched + CONTEXT
        return State(
            tuple(
                ContextLine(line=line, number=index + 1, important=index == matched)
                for index, line in enumerate(lines[first : last + 1], start=first)
            )
        )

    def looks_done(self) -> bool:
        """Whether the pending marker has been removed."""
        return self.state().done

    def __str__(self) -> str:
        return str(self.path)


class CompiledExercise:
    """A built exercise; closing it removes the built binary."""

    def __init__(self, exercise: Exercise) -> None:
        self.exercise = exercise
        self.binary = _temp_file()

    def run(self) -> ExerciseOutput:
        """Run the built binary; raise RunError with its output if it fails."""
        if self.exercise.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput("", "")
        arg = "--show-output" if self.exercise.mode is Mode.TEST else ""
        proc = _run_process([self.binary, arg])
        output = ExerciseOutput(_decode(proc.stdout), _decode(proc.stderr))
        if proc.returncode != 0:
            raise RunError(output)
        return output

    def close(self) -> None:
        try:
            os.remove(self.binary)
        except OSError:
            pass

    def __enter__(self) -> CompiledExercise:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def parse_exercises(text: str) -> list[Exercise]:
    """Read the exercise list from info.toml text."""
    data = tomllib.loads(text)
    if "exercises" not in data:
        raise ValueError("missing field `exercises`")
    return [Exercise.from_dict(entry) for entry in data["exercises"]]


def load_exercises(path: str | os.PathLike[str]) -> list[Exercise]:
    """Read the exercise list from an info.toml file."""
    return parse_exercises(Path(path).read_text(encoding="utf-8"))