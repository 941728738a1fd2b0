"""``ob upgrade``: move the project's pinned ob to a new ref."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from ob_upgrade.cli.helpers import exit_on_error, maybe_hand_off, resolve_project
from ob_upgrade.upgrade.orchestrator import upgrade as run_upgrade


def upgrade(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Branch or git ref of ob to upgrade to"),
    project: Optional[Path] = typer.Option(
        None, "--project", "-p", help="Project directory (defaults to the current directory)"
    ),
) -> None:
    """Upgrade the ob pinned in a project, then list the migrations to apply.

    The pinned ob is moved to REF and the new ob takes over to show the
    manual migration steps between the old and new versions.

    Examples:
        ob upgrade master
        ob upgrade develop --project ~/src/my-app
    """
    project_dir = resolve_project(project)
    with exit_on_error():
        maybe_hand_off(ctx, project_dir)
        run_upgrade(project_dir, ref)
