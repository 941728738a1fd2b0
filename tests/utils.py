from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable

from ruamel.yaml import YAML

HASH_SCRIPT = '#!/bin/sh\nset -eu\nhead -n 1 "$1/VERSION"\n'


def run(cmd: list[str], cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, cwd=cwd, check=True, capture_output=True, text=True)


def init_repo(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    run(["git", "init", "-q"], cwd=path)
    run(["git", "checkout", "-q", "-b", "main"], cwd=path)
    run(["git", "config", "user.name", "Ob Tester"], cwd=path)
    run(["git", "config", "user.email", "ob@example.com"], cwd=path)
    return path


def commit_all(repo: Path, message: str = "commit") -> str:
    run(["git", "add", "-A"], cwd=repo)
    run(["git", "commit", "-q", "-m", message], cwd=repo)
    return run(["git", "rev-parse", "HEAD"], cwd=repo).stdout.strip()


def write_graph(
    tool_dir: Path,
    name: str,
    vertices: Iterable[str],
    edges: Iterable[tuple[str, str, str]] = (),
    first: str | None = None,
    last: str | None = None,
) -> Path:
    """Write a graph file plus a hash script that reads ``VERSION``."""
    migration = tool_dir / "migration"
    migration.mkdir(parents=True, exist_ok=True)
    payload: dict[str, object] = {}
    if first is not None:
        payload["first"] = first
    if last is not None:
        payload["last"] = last
    payload["vertices"] = list(vertices)
    payload["edges"] = [{"from": a, "to": b, "action": action} for a, b, action in edges]
    path = migration / f"{name}.yaml"
    with path.open("w", encoding="utf-8") as handle:
        YAML().dump(payload, handle)
    script = migration / f"{name}.hash.sh"
    script.write_text(HASH_SCRIPT, encoding="utf-8")
    script.chmod(0o755)
    return path


def write_version(directory: Path, version: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "VERSION").write_text(f"{version}\n", encoding="utf-8")
