"""``ob internal ...``: commands run by ob itself or by ob developers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ob_upgrade.cli.helpers import exit_on_error, resolve_project
from ob_upgrade.cli.ui import console
from ob_upgrade.core.config import get_ambient_dir
from ob_upgrade.migration.hashing import compute_hash
from ob_upgrade.migration.names import GraphName
from ob_upgrade.upgrade import orchestrator

app = typer.Typer(
    name="internal",
    help="Internal commands used by ob itself and by ob developers",
    no_args_is_help=True,
)

_PROJECT_OPTION = typer.Option(
    None, "--project", "-p", help="Project directory (defaults to the current directory)"
)


def _graph(name: str) -> GraphName:
    try:
        return GraphName.from_name(name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def migrate(
    from_hash: str = typer.Argument(..., help="Upgrade-graph hash of the ob the project used before"),
    project: Optional[Path] = _PROJECT_OPTION,
) -> None:
    """Show the migrations from FROM_HASH to the project's pinned ob.

    Run by the new ob after `ob upgrade` hands off to it. Nothing is changed
    in the project: the steps are printed for you to apply.
    """
    project_dir = resolve_project(project)
    with exit_on_error():
        report = orchestrator.migrate(project_dir, from_hash)

    if not report.steps:
        return

    console.print("Migrations are shown below:\n")
    for vertex, action in report.steps:
        label = escape(f"[{vertex}]")
        console.print(f"[bold cyan]=== {label} ===[/bold cyan]", highlight=False)
        console.print(action, markup=False, highlight=False)
    console.print(
        "\nPlease commit the changes to the project, and manually perform the above "
        "migrations to make your project work with the upgraded ob."
    )
    console.print(f"[bold]{len(report.steps)}[/bold] migration step(s) to apply.")


@app.command("decide-handoff")
def decide_handoff(project: Optional[Path] = _PROJECT_OPTION) -> None:
    """Print whether the running ob would hand off to the project's ob."""
    project_dir = resolve_project(project)
    with exit_on_error():
        hand_off = orchestrator.decide_handoff(project_dir)
    console.print("handoff" if hand_off else "retain")


@app.command("hash")
def hash_dir(
    graph: str = typer.Argument(..., help="Graph name (obelisk-handoff or obelisk-upgrade)"),
    directory: Optional[Path] = typer.Argument(
        None, help="Directory to hash (defaults to the running ob)"
    ),
) -> None:
    """Print the hash of DIRECTORY under GRAPH."""
    graph_name = _graph(graph)
    ambient = get_ambient_dir()
    with exit_on_error():
        vertex = compute_hash(ambient, graph_name, (directory or ambient).resolve())
    console.print(vertex, highlight=False)


@app.command("verify-graph")
def verify_graph(
    graph: str = typer.Argument(..., help="Graph name (obelisk-handoff or obelisk-upgrade)"),
) -> None:
    """Check that GRAPH is well formed and ends at the running ob's hash."""
    graph_name = _graph(graph)
    with exit_on_error():
        vertex = orchestrator.verify_graph(graph_name)
    console.print(f"[green]✓[/green] {graph_name} graph is valid; head is {vertex}", highlight=False)


@app.command("add-vertex")
def add_vertex(
    graph: str = typer.Argument(..., help="Graph name (obelisk-handoff or obelisk-upgrade)"),
    action: str = typer.Option(
        ..., "--action", "-a", help="Action for the edge from the previous head"
    ),
) -> None:
    """Register the running ob's hash as the new head of GRAPH."""
    graph_name = _graph(graph)
    with exit_on_error():
        updated = orchestrator.add_vertex(graph_name, action)
    console.print(
        f"[green]✓[/green] Added {updated.last} to {graph_name} graph "
        f"({len(updated)} vertices)",
        highlight=False,
    )
