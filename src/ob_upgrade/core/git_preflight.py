"""Git preflight checks run before ob touches a project."""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from ob_upgrade.core.git_ops import status_paths
from ob_upgrade.core.process import run_command
from ob_upgrade.exceptions import DirtyWorkingTree, ExternalToolFailure

__all__ = [
    "GitPreflightIssue",
    "GitPreflightResult",
    "run_git_preflight",
    "ensure_clean_project",
]

logger = logging.getLogger(__name__)


@dataclass
class GitPreflightIssue:
    """Single preflight issue with optional remediation command."""

    code: str
    message: str
    remediation: str
    command: str | None = None


@dataclass
class GitPreflightResult:
    """Result envelope for git preflight checks."""

    repo_root: Path
    errors: list[GitPreflightIssue] = field(default_factory=list)
    dirty_paths: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> GitPreflightIssue | None:
        return self.errors[0] if self.errors else None


def _first_line(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


def run_git_preflight(repo_root: Path, ignore: Sequence[str] = ()) -> GitPreflightResult:
    """Check that *repo_root* is a git work tree without uncommitted changes.

    Changed paths equal to or below an entry of *ignore* (relative to the
    repository root) do not count.
    """
    root = repo_root.resolve()
    result = GitPreflightResult(repo_root=root)

    repo_check = run_command(["git", "rev-parse", "--is-inside-work-tree"], cwd=root, check=False)
    if repo_check.returncode != 0 or repo_check.stdout.strip().lower() != "true":
        detail = _first_line(repo_check.stderr) or "Repository is not recognized by git."
        result.errors.append(
            GitPreflightIssue(
                code="NOT_A_GIT_REPOSITORY",
                message=f"Git repository check failed: {detail}",
                remediation="Run ob from an ob project checked into git.",
                command=f"cd {shlex.quote(str(root))} && git status",
            )
        )
        return result

    prefixes = [p.strip("/") for p in ignore if p.strip("/")]
    result.dirty_paths = [
        path
        for path in status_paths(root)
        if not any(path.rstrip("/") == p or path.startswith(p + "/") for p in prefixes)
    ]
    if result.dirty_paths:
        result.errors.append(
            GitPreflightIssue(
                code="DIRTY_WORKING_TREE",
                message=f"{len(result.dirty_paths)} uncommitted change(s) in {root}",
                remediation="Commit or stash your changes before upgrading.",
                command=f"git -C {shlex.quote(str(root))} status",
            )
        )

    return result


def ensure_clean_project(project: Path, ignore: Sequence[str] = ()) -> None:
    """Fail unless *project* is a git work tree with no uncommitted changes.

    Raises:
        ExternalToolFailure: If *project* is not a git repository.
        DirtyWorkingTree: If there are uncommitted (or untracked) changes.
    """
    preflight = run_git_preflight(project, ignore)
    issue = preflight.first_error
    if issue is None:
        logger.debug("Working tree of %s is clean", preflight.repo_root)
        return
    if issue.code == "DIRTY_WORKING_TREE":
        raise DirtyWorkingTree(preflight.repo_root, preflight.dirty_paths)
    raise ExternalToolFailure(
        ["git", "rev-parse", "--is-inside-work-tree"],
        128,
        message=issue.message,
    )
