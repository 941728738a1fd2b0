"""Reusable UI helpers for ob CLI interactions."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from ob_upgrade.core.progress import SpinnerHandle, console, err_console, spinner


def print_error(message: str, output: Console | None = None) -> None:
    (output or err_console).print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def print_warning(message: str, output: Console | None = None) -> None:
    (output or err_console).print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False)


__all__ = [
    "SpinnerHandle",
    "console",
    "err_console",
    "print_error",
    "print_warning",
    "spinner",
]
