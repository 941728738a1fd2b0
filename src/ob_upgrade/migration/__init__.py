"""Migration graphs: names, hashing, storage and the path engine."""

from __future__ import annotations

from .actions import decode_handoff_action
from .graph import Edge, MigrationGraph
from .hashing import compute_hash, migration_dir
from .names import GraphName
from .store import dump_graph, graph_path, load_graph

__all__ = [
    "Edge",
    "GraphName",
    "MigrationGraph",
    "compute_hash",
    "decode_handoff_action",
    "dump_graph",
    "graph_path",
    "load_graph",
    "migration_dir",
]
