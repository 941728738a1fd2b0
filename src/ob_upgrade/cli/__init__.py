"""CLI helpers exposed for other modules."""

from .ui import console, err_console, spinner

__all__ = ["console", "err_console", "spinner"]
