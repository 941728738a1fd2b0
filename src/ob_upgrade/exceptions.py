"""Exception hierarchy for ob upgrade, migration and handoff."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class UpgradeError(Exception):
    """Base exception for every failure class reported by ob."""
    pass


class DirtyWorkingTree(UpgradeError):
    """The project has uncommitted changes."""

    def __init__(self, project: Path, paths: Sequence[str] = ()):
        self.project = project
        self.paths = list(paths)
        detail = ""
        if self.paths:
            shown = ", ".join(self.paths[:5])
            more = len(self.paths) - 5
            detail = f" ({shown}{f', and {more} more' if more > 0 else ''})"
        super().__init__(
            f"Cannot upgrade with uncommitted changes in {project}{detail}. "
            f"Commit or stash them first."
        )


class ExternalToolFailure(UpgradeError):
    """A subprocess exited abnormally or produced unusable output."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stderr: str = "",
        message: str | None = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        summary = message or f"Command exited with status {returncode}"
        text = f"{summary}: {' '.join(self.command)}"
        if stderr.strip():
            text += f"\n{stderr.rstrip()}"
        super().__init__(text)


class MissingGraph(UpgradeError):
    """No migration graph backing store exists at a location."""

    def __init__(self, graph: str, location: Path, side: str):
        self.graph = graph
        self.location = location
        self.side = side
        if side == "ambient":
            text = f"Ambient ob has no {graph} migration graph at {location} (broken installation)"
        else:
            text = f"No {graph} migration metadata found in {side} ob at {location}"
        super().__init__(text)


class AmbientHashNotInOwnGraph(UpgradeError):
    """The ambient tool's head vertex is missing from its own graph."""

    def __init__(self, graph: str, last: str | None):
        self.graph = graph
        self.last = last
        super().__init__(
            f"Ambient ob's hash {last or '<undesignated>'} is not in its own {graph} graph; "
            f"run 'ob internal add-vertex {graph}' to register this ob"
        )


class GraphStructureError(UpgradeError):
    """The migration graph itself is malformed."""

    def __init__(self, graph: str, problems: Sequence[str]):
        self.graph = graph
        self.problems = list(problems)
        super().__init__(
            f"Not a valid {graph} migration graph: " + "; ".join(self.problems)
        )


class ActionDecodeError(GraphStructureError):
    """An edge action could not be decoded by the graph's classifier."""

    def __init__(self, graph: str, action: str):
        self.action = action
        super().__init__(graph, [f"edge action {action!r} is not a valid sentinel"])


class VertexNotFound(UpgradeError):
    """A required hash is not a vertex of the migration graph."""

    def __init__(self, graph: str, vertex: str, message: str | None = None):
        self.graph = graph
        self.vertex = vertex
        super().__init__(message or f"Hash {vertex} missing in {graph} migration graph")


class NoPathFound(UpgradeError):
    """No migration path connects two vertices."""

    def __init__(self, graph: str, from_hash: str, to_hash: str):
        self.graph = graph
        self.from_hash = from_hash
        self.to_hash = to_hash
        super().__init__(
            f"Unable to find migration path from {from_hash} to {to_hash} in {graph} graph"
        )


class ProjectCommandNotFound(UpgradeError):
    """The project has no pinned ob executable to hand off to."""

    def __init__(self, project: Path):
        self.project = project
        super().__init__(f"Not an ob project (no pinned ob executable found under {project})")
