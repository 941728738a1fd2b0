"""Terminal consoles and progress spinners shared by every layer of ob."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from rich.console import Console

# Progress goes to stderr; migration instructions go to stdout.
console = Console()
err_console = Console(stderr=True)


class SpinnerHandle:
    """Lets the body of a ``spinner`` block set the completion message."""

    def __init__(self) -> None:
        self.result: object = None

    def done(self, result: object) -> None:
        self.result = result


@contextmanager
def spinner(
    message: str,
    on_done: Optional[Callable[[object], str]] = None,
    output: Console | None = None,
) -> Iterator[SpinnerHandle]:
    """Show a spinner while the body runs, then a one-line outcome.

    ``on_done`` turns the value passed to ``handle.done()`` into the success
    line; without it the original message is repeated.
    """
    out = output or err_console
    handle = SpinnerHandle()
    try:
        with out.status(f"[cyan]{message}[/cyan]"):
            yield handle
    except Exception:
        out.print(f"[red]✗[/red] {message}")
        raise
    text = on_done(handle.result) if on_done is not None else message
    out.print(f"[green]✓[/green] {text}")


__all__ = ["SpinnerHandle", "console", "err_console", "spinner"]
