"""Compute migration-graph vertex hashes with the graph's hash script."""

from __future__ import annotations

import logging
from pathlib import Path

from ob_upgrade.core.constants import MIGRATION_DIR_NAME
from ob_upgrade.core.process import run_command
from ob_upgrade.exceptions import ExternalToolFailure
from ob_upgrade.migration.names import GraphName

logger = logging.getLogger(__name__)


def migration_dir(tool_dir: Path) -> Path:
    """Return the directory holding graphs and hash scripts for *tool_dir*."""
    return tool_dir / MIGRATION_DIR_NAME


def hash_script_path(tool_dir: Path, graph: GraphName) -> Path:
    return migration_dir(tool_dir) / f"{graph.file_stem}.hash.sh"


def compute_hash(tool_dir: Path, graph: GraphName, target_dir: Path) -> str:
    """Hash *target_dir* under *graph* using the script shipped in *tool_dir*.

    The script is run as ``sh <script> <target_dir>`` and must print exactly
    one line.

    Raises:
        ExternalToolFailure: If the script fails or its output is not a
            single non-empty line.
    """
    script = hash_script_path(tool_dir, graph)
    command = ["sh", str(script), str(target_dir)]
    result = run_command(command)

    lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
    if len(lines) != 1:
        raise ExternalToolFailure(
            command,
            result.returncode,
            result.stderr,
            message=f"Hash script printed {len(lines)} lines (expected exactly one)",
        )
    vertex = lines[0]
    logger.debug("Computed %s hash %s for %s", graph, vertex, target_dir)
    return vertex
