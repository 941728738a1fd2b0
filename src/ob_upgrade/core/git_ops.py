"""Git commands used by the upgrade workflow.

Every helper runs ``git`` to completion and raises ``ExternalToolFailure``
on a non-zero exit.
"""

from __future__ import annotations

from pathlib import Path

from ob_upgrade.core.process import run_command


def git(repo: Path, *args: str) -> str:
    """Run ``git <args>`` inside *repo* and return its stdout."""
    return run_command(["git", *args], cwd=repo).stdout


def checkout(repo: Path, ref: str) -> None:
    git(repo, "checkout", ref)


def pull(repo: Path) -> None:
    git(repo, "pull")


def clone(url: str, dest: Path) -> None:
    run_command(["git", "clone", "--quiet", url, str(dest)])


def rev_parse(repo: Path, rev: str = "HEAD") -> str:
    return git(repo, "rev-parse", rev).strip()


def current_branch(repo: Path) -> str | None:
    """Return the checked-out branch name, or ``None`` when HEAD is detached."""
    name = git(repo, "rev-parse", "--abbrev-ref", "HEAD").strip()
    return None if name == "HEAD" else name


def status_paths(repo: Path) -> list[str]:
    """Return the paths ``git status --porcelain`` reports as changed.

    Untracked files count as changes.
    """
    output = run_command(["git", "status", "--porcelain", "-z"], cwd=repo).stdout
    entries = output.split("\0")
    paths: list[str] = []

    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if not entry or len(entry) < 4:
            continue

        status = entry[:2]
        path = entry[3:]

        # Renames and copies carry the source path as a second entry.
        if "R" in status or "C" in status:
            if i < len(entries) and entries[i]:
                i += 1

        normalized = path.strip().replace("\\", "/")
        if normalized:
            paths.append(normalized)

    return paths
