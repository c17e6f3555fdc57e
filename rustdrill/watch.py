"""Watch mode: re-verify exercises whenever their files change."""

from __future__ import annotations

import itertools
import os
import queue
import subprocess
import sys
import threading
from enum import Enum, auto
from pathlib import Path
from typing import Iterator, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import Exercise
from .verify import VerificationFailed, verify

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

    FINISHED = auto()
    UNFINISHED = auto()


class WatchShell:
    """The small command shell that runs alongside watch mode."""

    def __init__(self, hint: str | None = None) -> None:
        self.hint = hint
        self.should_quit = threading.Event()

    def handle(self, line: str) -> None:
        """Carry out one command typed by the learner."""
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
            cmd = command[1:]
            parts = cmd.split()
            if not parts:
                print("no command provided")
            else:
                try:
                    subprocess.run(parts, check=False)
                except OSError as err:
                    print(f"failed to execute command `{cmd}`: {err}")
        else:
            print(f"unknown command: {command}")

    def _loop(self) -> None:
        while True:
            try:
                line = sys.stdin.readline()
            except (OSError, ValueError) as err:
                print(f"error reading command: {err}")
                continue
            if not line:
                return
            self.handle(line)

    def start(self) -> threading.Thread:
        """Read commands from standard input on a background thread."""
        print(
            "Welcome to watch mode! You can type 'help' to get an overview "
            "of the commands you can use here."
        )
        thread = threading.Thread(target=self._loop, daemon=True)
        thread.start()
        return thread


def _ends_with(path: Path, suffix: Path) -> bool:
    tail = [part for part in suffix.parts if part != "."]
    if not tail or len(tail) > len(path.parts):
        return False
    return list(path.parts[-len(tail):]) == tail


def pending_after_change(
    exercises: Sequence[Exercise], changed_path: str | os.PathLike[str]
) -> Iterator[Exercise]:
    """The changed exercise first, then every other exercise not yet done, lazily."""
    filepath = Path(changed_path).resolve()
    changed = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    others = (
        e
        for e in exercises
        if not _ends_with(filepath, e.path) and not e.looks_done()
    )
    return itertools.chain([changed] if changed is not None else [], others)


class _ChangeQueue(FileSystemEventHandler):
    def __init__(self) -> None:
        super().__init__()
        self.paths: queue.Queue[str] = queue.Queue()

    def on_created(self, event: FileSystemEvent) -> None:
        self._push(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._push(event)

    def _push(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.paths.put(os.fsdecode(event.src_path))


def _clear_screen() -> None:
    print("\x1bc")


def _next_batch(changes: queue.Queue[str], timeout: float) -> list[str]:
    """Wait for a change, then collect changes until things stay quiet for the timeout."""
    try:
        first = changes.get(timeout=timeout)
    except queue.Empty:
        return []
    batch = [first]
    while True:
        try:
            path = changes.get(timeout=timeout)
        except queue.Empty:
            return list(dict.fromkeys(batch))
        batch.append(path)


def watch(
    exercises: Sequence[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then re-verify on every edit until all are done or the learner quits."""
    handler = _ChangeQueue()
    observer = Observer()
    observer.schedule(handler, "./exercises", recursive=True)
    observer.start()
    try:
        _clear_screen()
        try:
            verify(exercises, (0, len(exercises)), verbose, success_hints)
            return WatchStatus.FINISHED
        except VerificationFailed as failed:
            shell = WatchShell(failed.exercise.hint)
        shell.start()

        while True:
            for changed in _next_batch(handler.paths, 1.0):
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
            if shell.should_quit.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()