from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from tests.utils import commit_all, init_repo, write_graph, write_version


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("OB_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.delenv("OB_AMBIENT_DIR", raising=False)
    monkeypatch.delenv("OB_NO_HANDOFF", raising=False)
    yield


@pytest.fixture()
def temp_repo(tmp_path: Path) -> Path:
    return init_repo(tmp_path / "repo")


@pytest.fixture()
def ambient_ob(tmp_path: Path) -> Path:
    """An ob installation whose handoff graph is A -> B -> C (all passthrough)."""
    ob_dir = tmp_path / "ambient-ob"
    write_graph(
        ob_dir,
        "obelisk-handoff",
        ["A", "B", "C"],
        [("A", "B", "False"), ("B", "C", "False")],
        first="A",
        last="C",
    )
    write_graph(ob_dir, "obelisk-upgrade", ["A"], first="A", last="A")
    write_version(ob_dir, "C")
    return ob_dir


def make_project(root: Path, version: str) -> Path:
    """A committed project whose unpacked pinned ob reports *version*."""
    project = init_repo(root)
    write_version(project / ".obelisk" / "impl", version)
    (project / "README.md").write_text("project\n", encoding="utf-8")
    commit_all(project, "init")
    return project


@pytest.fixture()
def project_factory(tmp_path: Path):
    counter = iter(range(1000))

    def factory(version: str) -> Path:
        return make_project(tmp_path / f"project-{next(counter)}", version)

    return factory
