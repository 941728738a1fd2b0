"""Shared plumbing for ob CLI commands."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from rich.logging import RichHandler

from ob_upgrade.cli.ui import err_console, print_error, print_warning
from ob_upgrade.core.config import handoff_disabled, impl_dir
from ob_upgrade.core.constants import NO_HANDOFF_FLAG
from ob_upgrade.exceptions import UpgradeError
from ob_upgrade.upgrade.handoff import exec_command, find_project_command
from ob_upgrade.upgrade.orchestrator import decide_handoff

logger = logging.getLogger(__name__)

_HANDLER_NAME = "ob-rich"


def setup_logging(verbose: bool) -> None:
    """Route log records to stderr through rich; DEBUG when *verbose*."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.set_name(_HANDLER_NAME)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn ``UpgradeError`` into a red message and exit status 1."""
    try:
        yield
    except UpgradeError as exc:
        logger.debug("Command failed", exc_info=True)
        print_error(str(exc))
        raise typer.Exit(1) from exc


def resolve_project(project: Path | None) -> Path:
    return (project or Path.cwd()).resolve()


def no_handoff_requested(ctx: typer.Context) -> bool:
    root = ctx.find_root()
    flagged = bool(root.obj and root.obj.get("no_handoff"))
    return flagged or handoff_disabled()


def maybe_hand_off(ctx: typer.Context, project: Path) -> None:
    """Re-run the current command under the project's ob when it should own it.

    Returns normally when the ambient ob keeps control.
    """
    if no_handoff_requested(ctx):
        logger.debug("Handoff disabled")
        return
    if not impl_dir(project).is_dir():
        print_warning(f"{project} has no pinned ob; continuing with the running ob")
        return

    if not decide_handoff(project):
        logger.debug("Ambient ob retains control")
        return

    command = find_project_command(project)
    if command is None:
        print_warning("Project ob has no executable to hand off to; continuing with the running ob")
        return
    exec_command(command, [NO_HANDOFF_FLAG, *sys.argv[1:]])


__all__ = [
    "exit_on_error",
    "maybe_hand_off",
    "no_handoff_requested",
    "resolve_project",
    "setup_logging",
]
