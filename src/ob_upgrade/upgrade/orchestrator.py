"""Upgrade, migrate and handoff protocols.

``decide_handoff`` answers whether the running ("ambient") ob should hand
control to the project's pinned ob. ``upgrade`` moves the pinned ob to a
new git ref and hands off to it; the new ob then runs ``migrate`` to list
the manual steps between the old and new versions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn

from ob_upgrade.core import git_ops
from ob_upgrade.core.config import get_ambient_dir, impl_dir, load_project_config
from ob_upgrade.core.constants import NO_HANDOFF_FLAG
from ob_upgrade.core.git_preflight import ensure_clean_project
from ob_upgrade.core.progress import spinner
from ob_upgrade.exceptions import (
    ActionDecodeError,
    AmbientHashNotInOwnGraph,
    GraphStructureError,
    MissingGraph,
    NoPathFound,
    ProjectCommandNotFound,
    VertexNotFound,
)
from ob_upgrade.migration.actions import decode_handoff_action
from ob_upgrade.migration.graph import MigrationGraph
from ob_upgrade.migration.hashing import compute_hash
from ob_upgrade.migration.names import GraphName
from ob_upgrade.migration.store import dump_graph, load_graph
from ob_upgrade.pinned import materialize, update_pinned
from ob_upgrade.upgrade.handoff import exec_command, find_project_command

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    """Outcome of ``migrate``: the steps to apply by hand, in order."""

    from_hash: str
    to_hash: str
    steps: list[tuple[str, str]] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return self.from_hash == self.to_hash

    @property
    def summary(self) -> str:
        if self.up_to_date:
            return "No upgrade available (new ob is the same)"
        if not self.steps:
            return f"No migrations necessary between {self.from_hash} and {self.to_hash}"
        return f"Migrated from {self.from_hash} to {self.to_hash} ({len(self.steps)} actions)"


def _require_designated(migration_graph: MigrationGraph) -> None:
    missing = [
        label
        for label, vertex in (("first", migration_graph.first), ("last", migration_graph.last))
        if vertex is None
    ]
    if missing:
        raise GraphStructureError(
            str(migration_graph.name),
            [f"no {label} vertex designated" for label in missing],
        )


def load_ambient_graph(graph: GraphName, ambient_dir: Path) -> tuple[MigrationGraph, str]:
    """Load one of the running ob's own graphs together with its head hash.

    Raises:
        MissingGraph: If the ambient installation ships no such graph.
        AmbientHashNotInOwnGraph: If the graph's head is not one of its vertices.
        GraphStructureError: If the graph has no first vertex.
    """
    migration_graph = load_graph(graph, ambient_dir)
    if migration_graph is None:
        raise MissingGraph(str(graph), ambient_dir, side="ambient")
    last = migration_graph.last
    if last is None or not migration_graph.has_vertex(last):
        raise AmbientHashNotInOwnGraph(str(graph), last)
    _require_designated(migration_graph)
    return migration_graph, last


def _pinned_prefix(project: Path) -> str:
    return load_project_config(project).impl_dir


# ----------------------------------------------------------------------
# Handoff decision
# ----------------------------------------------------------------------


def decide_handoff(project: Path, ambient_dir: Path | None = None) -> bool:
    """Decide whether the ambient ob should hand off to *project*'s ob.

    Hands off unless the undirected path between the two versions in the
    ambient handoff graph crosses an edge marked ``"True"``. Unknown project
    versions and disconnected versions are handed off with a warning.

    Raises:
        DirtyWorkingTree: If *project* has uncommitted changes.
        MissingGraph: If the ambient ob has no handoff graph.
        AmbientHashNotInOwnGraph: If the ambient ob is self-inconsistent.
        GraphStructureError: If the ambient handoff graph is malformed.
    """
    ensure_clean_project(project)
    ambient = ambient_dir or get_ambient_dir()
    ambient_graph, ambient_hash = load_ambient_graph(GraphName.HANDOFF, ambient)

    project_ob = materialize(impl_dir(project))
    project_hash = compute_hash(ambient, GraphName.HANDOFF, project_ob)

    if not ambient_graph.has_vertex(project_hash):
        logger.warning(
            "Project ob %s not found in ambient ob's %s graph; handing off anyway",
            project_hash,
            GraphName.HANDOFF,
        )
        return True

    path = ambient_graph.find_equivalence_path(project_hash, ambient_hash)
    if path is None:
        logger.warning(
            "No migration path between project ob %s and ambient ob %s; handing off anyway",
            project_hash,
            ambient_hash,
        )
        return True

    logger.debug(
        "Found %d edges between %s and %s in ambient ob graph",
        len(path),
        project_hash,
        ambient_hash,
    )
    blocking = ambient_graph.classify_path(path, decode_handoff_action)
    return not any(blocking)


# ----------------------------------------------------------------------
# Upgrade
# ----------------------------------------------------------------------


def update_pinned_ob(project: Path, ref: str, ambient_dir: Path | None = None) -> str:
    """Point the project's pinned ob at *ref* and return the previous hash.

    The previous hash is computed under the upgrade graph before anything is
    modified.
    """
    ambient = ambient_dir or get_ambient_dir()

    def mutate(ob_impl: Path) -> str:
        from_hash = compute_hash(ambient, GraphName.UPGRADE, ob_impl)
        git_ops.checkout(ob_impl, ref)
        git_ops.pull(ob_impl)
        return from_hash

    with spinner(
        "Updating pinned ob",
        on_done=lambda from_hash: f"Updated pinned ob (was {from_hash})",
    ) as handle:
        from_hash = update_pinned(impl_dir(project), mutate)
        handle.done(from_hash)
    return from_hash


def hand_off_to_new_ob(project: Path, from_hash: str) -> NoReturn:
    """Replace this process with the project's ob running ``internal migrate``."""
    with spinner(
        "Preparing for handoff",
        on_done=lambda command: f"Handing off to new ob {command}",
    ) as handle:
        command = find_project_command(project)
        if command is None:
            raise ProjectCommandNotFound(project)
        handle.done(command)
    args = [NO_HANDOFF_FLAG, "internal", "migrate", "--project", str(project), from_hash]
    exec_command(command, args)


def upgrade(project: Path, ref: str, ambient_dir: Path | None = None) -> NoReturn:
    """Upgrade *project*'s pinned ob to *ref* and hand off to it.

    Does not return on success: the new ob takes over to list migrations.
    """
    ensure_clean_project(project)
    from_hash = update_pinned_ob(project, ref, ambient_dir)
    hand_off_to_new_ob(project, from_hash)


# ----------------------------------------------------------------------
# Migrate
# ----------------------------------------------------------------------


def migrate(project: Path, from_hash: str) -> MigrationReport:
    """List the migrations between *from_hash* and the project's pinned ob.

    Runs in the ob that received the handoff. The graph and hash script both
    come from the (already updated) pinned copy. Project files are never
    modified.

    Raises:
        DirtyWorkingTree: If *project* has uncommitted changes outside the
            pinned copy.
        MissingGraph: If the pinned ob ships no upgrade graph.
        VertexNotFound: If either hash is not a vertex of the graph.
        NoPathFound: If no directed path leads from *from_hash* to the new hash.
        GraphStructureError: If the upgrade graph is malformed.
    """
    # The pinned reference was just rewritten by ``upgrade``.
    ensure_clean_project(project, ignore=[_pinned_prefix(project)])
    with spinner("Migrating to new ob", on_done=lambda report: report.summary) as handle:
        ob_impl = materialize(impl_dir(project))
        migration_graph = load_graph(GraphName.UPGRADE, ob_impl)
        if migration_graph is None:
            raise MissingGraph(str(GraphName.UPGRADE), ob_impl, side="project")
        to_hash = compute_hash(ob_impl, GraphName.UPGRADE, ob_impl)

        if not migration_graph.has_vertex(from_hash):
            raise VertexNotFound(
                str(GraphName.UPGRADE),
                from_hash,
                f"Current ob hash {from_hash} missing in migration graph of new ob",
            )
        if not migration_graph.has_vertex(to_hash):
            # The new ob was released without a vertex for its own hash.
            raise VertexNotFound(
                str(GraphName.UPGRADE),
                to_hash,
                f"New ob hash {to_hash} missing in its migration graph",
            )

        report = MigrationReport(from_hash=from_hash, to_hash=to_hash)
        if not report.up_to_date:
            logger.debug("Migrating from %s to %s", from_hash, to_hash)
            steps = migration_graph.run_forward_migration(from_hash, to_hash)
            if steps is None:
                raise NoPathFound(str(GraphName.UPGRADE), from_hash, to_hash)
            report.steps = steps
        handle.done(report)
    return report


# ----------------------------------------------------------------------
# Release tooling
# ----------------------------------------------------------------------


def verify_graph(graph: GraphName, ambient_dir: Path | None = None) -> str:
    """Check the ambient ob's graph is well formed and ends at its own hash.

    Returns:
        The ambient ob's hash under *graph*.
    """
    ambient = ambient_dir or get_ambient_dir()
    migration_graph = load_graph(graph, ambient)
    if migration_graph is None:
        raise MissingGraph(str(graph), ambient, side="ambient")
    migration_graph.validate()
    _require_designated(migration_graph)

    own_hash = compute_hash(ambient, graph, ambient)
    if migration_graph.last != own_hash:
        raise VertexNotFound(
            str(graph),
            own_hash,
            f"Hash {own_hash} of this ob is not the last vertex of its {graph} graph "
            f"(last is {migration_graph.last})",
        )
    return own_hash


def add_vertex(graph: GraphName, action: str, ambient_dir: Path | None = None) -> MigrationGraph:
    """Register the ambient ob's current hash as the new head of *graph*."""
    if graph is GraphName.HANDOFF:
        try:
            decode_handoff_action(action)
        except ValueError as exc:
            raise ActionDecodeError(str(graph), action) from exc

    ambient = ambient_dir or get_ambient_dir()
    migration_graph = load_graph(graph, ambient)
    if migration_graph is None:
        migration_graph = MigrationGraph(graph, [], [])

    own_hash = compute_hash(ambient, graph, ambient)
    if migration_graph.has_vertex(own_hash):
        raise GraphStructureError(str(graph), [f"vertex {own_hash} is already registered"])

    updated = migration_graph.with_new_last(own_hash, action)
    updated.validate()
    dump_graph(updated, ambient)
    logger.info("Added %s to %s graph", own_hash, graph)
    return updated
