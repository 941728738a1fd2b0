"""ob - upgrade the ob pinned in a project and list the migrations to apply."""

from __future__ import annotations

__version__ = "0.1.0"

import typer

from ob_upgrade.cli.commands import internal_app, upgrade
from ob_upgrade.cli.helpers import setup_logging

app = typer.Typer(
    name="ob",
    help="Upgrade the ob pinned in a project and show the migrations to apply",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def callback(
    ctx: typer.Context,
    no_handoff: bool = typer.Option(
        False, "--no-handoff", help="Never hand off to the project's pinned ob"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Global options shared by every command."""
    setup_logging(verbose)
    ctx.obj = {"no_handoff": no_handoff}


app.command()(upgrade)
app.add_typer(internal_app, name="internal")


def main():
    app()


if __name__ == "__main__":
    main()
