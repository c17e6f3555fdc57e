"""Coloured status messages for the terminal."""

from __future__ import annotations

import os

from rich.console import Console

_console = Console(highlight=False, emoji=False, markup=False, soft_wrap=True)


def no_emoji() -> bool:
    """Whether the NO_EMOJI environment variable asks for plain symbols."""
    return "NO_EMOJI" in os.environ


def format_warning(message: str) -> str:
    symbol = "!" if no_emoji() else "⚠️ "
    return f"{symbol} {message}"


def format_success(message: str) -> str:
    symbol = "✓" if no_emoji() else "✅"
    return f"{symbol} {message}"


def warn(message: str) -> None:
    """Print a warning in red."""
    _console.print(format_warning(message), style="red")


def success(message: str) -> None:
    """Print a success message in green."""
    _console.print(format_success(message), style="green")