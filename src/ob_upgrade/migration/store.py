"""Read and write migration graph backing stores.

Each graph lives in ``<tool_dir>/migration/<graph-name>.yaml``::

    first: 3f2a...
    last: 9c1b...
    vertices:
      - 3f2a...
      - 9c1b...
    edges:
      - from: 3f2a...
        to: 9c1b...
        action: |
          Rename config key X to Y

The file is parsed as-is: structural problems such as duplicate vertices
are carried into the ``MigrationGraph`` and reported by its queries.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ob_upgrade.exceptions import GraphStructureError
from ob_upgrade.migration.graph import Edge, MigrationGraph
from ob_upgrade.migration.hashing import migration_dir
from ob_upgrade.migration.names import GraphName

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Any:
    # Numeric hashes and unquoted handoff sentinels load as numbers and
    # booleans; str() gives back "123" and "True"/"False".
    if isinstance(value, (bool, int, float)):
        return str(value)
    return value


class EdgeRecord(BaseModel):
    """One edge as stored on disk."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    source: str = Field(..., alias="from", min_length=1)
    target: str = Field(..., alias="to", min_length=1)
    action: str = ""

    @field_validator("source", "target", "action", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class GraphRecord(BaseModel):
    """A whole graph file."""

    model_config = ConfigDict(extra="forbid")

    first: Optional[str] = None
    last: Optional[str] = None
    vertices: List[str]
    edges: List[EdgeRecord] = Field(default_factory=list)

    @field_validator("first", "last", mode="before")
    @classmethod
    def _coerce_designated(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("vertices", mode="before")
    @classmethod
    def _coerce_vertices(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_as_text(item) for item in value]
        return value


def graph_path(graph: GraphName, tool_dir: Path) -> Path:
    """Return the backing-store path of *graph* inside *tool_dir*."""
    return migration_dir(tool_dir) / f"{graph.file_stem}.yaml"


def load_graph(graph: GraphName, tool_dir: Path) -> MigrationGraph | None:
    """Read *graph* from *tool_dir*.

    Returns:
        The graph, or ``None`` if *tool_dir* has no backing store for it.

    Raises:
        GraphStructureError: If the file exists but is not a valid graph
            document.
    """
    path = graph_path(graph, tool_dir)
    logger.debug("Reading migration graph %s from %s", graph, tool_dir)
    if not path.is_file():
        return None

    yaml = YAML(typ="safe")
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle)
    except YAMLError as exc:
        raise GraphStructureError(str(graph), [f"cannot parse {path}: {exc}"]) from exc

    if not isinstance(payload, dict):
        raise GraphStructureError(str(graph), [f"{path} does not contain a mapping"])

    try:
        record = GraphRecord.model_validate(payload)
    except ValidationError as exc:
        problems = [
            f"{path}: {'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise GraphStructureError(str(graph), problems) from exc

    return MigrationGraph(
        graph,
        record.vertices,
        [Edge(e.source, e.target, e.action) for e in record.edges],
        first=record.first,
        last=record.last,
    )


def dump_graph(migration_graph: MigrationGraph, tool_dir: Path) -> Path:
    """Write *migration_graph* to its backing store in *tool_dir*."""
    path = graph_path(migration_graph.name, tool_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload: dict[str, Any] = {}
    if migration_graph.first is not None:
        payload["first"] = migration_graph.first
    if migration_graph.last is not None:
        payload["last"] = migration_graph.last
    payload["vertices"] = list(migration_graph.ordered_vertices())
    payload["edges"] = [
        {"from": edge.source, "to": edge.target, "action": edge.action}
        for edge in migration_graph.edges
    ]

    yaml = YAML()
    yaml.default_flow_style = False
    with path.open("w", encoding="utf-8") as handle:
        yaml.dump(payload, handle)
    return path
