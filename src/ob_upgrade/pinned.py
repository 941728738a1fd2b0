"""The copy of ob pinned inside a project.

The pinned copy lives in ``<project>/.obelisk/impl`` and is either

- *packed*: the directory only holds ``git.json``, a reference to a git
  repository and revision, materialized on demand; or
- *unpacked*: the directory is itself a git checkout of ob.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, TypeVar

from ob_upgrade.core import git_ops
from ob_upgrade.core.config import get_cache_dir
from ob_upgrade.core.constants import PINNED_REF_FILE
from ob_upgrade.core.process import run_command
from ob_upgrade.exceptions import UpgradeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PinnedRefError(UpgradeError):
    """Raised when a pinned copy is missing or its reference file is invalid."""


@dataclass(frozen=True)
class PinnedRef:
    """Contents of a packed ``git.json``."""

    url: str
    rev: str
    branch: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload = {"url": self.url, "rev": self.rev}
        if self.branch:
            payload["branch"] = self.branch
        return payload

    @classmethod
    def from_dict(cls, data: object, source: Path) -> "PinnedRef":
        if not isinstance(data, dict):
            raise PinnedRefError(f"{source} must contain a JSON object")
        url = data.get("url")
        rev = data.get("rev")
        branch = data.get("branch")
        if not isinstance(url, str) or not url.strip():
            raise PinnedRefError(f"{source} is missing 'url'")
        if not isinstance(rev, str) or not rev.strip():
            raise PinnedRefError(f"{source} is missing 'rev'")
        return cls(
            url=url.strip(),
            rev=rev.strip(),
            branch=branch.strip() if isinstance(branch, str) and branch.strip() else None,
        )


def is_packed(directory: Path) -> bool:
    return (directory / PINNED_REF_FILE).is_file()


def read_pinned(directory: Path) -> PinnedRef:
    """Read the reference of a packed pinned copy."""
    path = directory / PINNED_REF_FILE
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise PinnedRefError(f"No pinned reference at {path}") from exc
    except json.JSONDecodeError as exc:
        raise PinnedRefError(f"Invalid JSON in {path}: {exc}") from exc
    return PinnedRef.from_dict(payload, path)


def write_pinned(directory: Path, ref: PinnedRef) -> None:
    path = directory / PINNED_REF_FILE
    path.write_text(json.dumps(ref.to_dict(), indent=2) + "\n", encoding="utf-8")


def _checkout_ref(ref: PinnedRef, dest: Path) -> None:
    git_ops.clone(ref.url, dest)
    if ref.branch:
        # Keep the branch attached so that a later ``git pull`` has an upstream.
        git_ops.git(dest, "checkout", "-B", ref.branch, ref.rev)
        run_command(
            ["git", "branch", f"--set-upstream-to=origin/{ref.branch}"],
            cwd=dest,
            check=False,
        )
    else:
        git_ops.checkout(dest, ref.rev)


def materialize(directory: Path, cache_dir: Path | None = None) -> Path:
    """Return a directory holding the pinned content of *directory*.

    Unpacked copies are used in place. Packed copies are cloned once into
    ``<cache>/pinned/<rev>`` and reused afterwards.
    """
    if not directory.is_dir():
        raise PinnedRefError(f"No pinned copy of ob at {directory}")
    if not is_packed(directory):
        return directory

    ref = read_pinned(directory)
    target = (cache_dir or get_cache_dir()) / "pinned" / ref.rev
    if target.is_dir():
        logger.debug("Using cached pinned copy %s", target)
        return target

    target.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{ref.rev[:12]}-", dir=target.parent))
    try:
        _checkout_ref(ref, staging / "src")
        os.replace(staging / "src", target)
    finally:
        shutil.rmtree(staging, ignore_errors=True)
    logger.debug("Materialized %s@%s into %s", ref.url, ref.rev, target)
    return target


def update_pinned(directory: Path, mutator: Callable[[Path], T]) -> T:
    """Run *mutator* on the pinned content and pin whatever it leaves checked out.

    For an unpacked copy *mutator* runs in place. For a packed copy it runs
    on a temporary clone; afterwards the clone's ``HEAD`` becomes the new
    pinned revision. If *mutator* raises, ``git.json`` is left untouched.
    """
    if not directory.is_dir():
        raise PinnedRefError(f"No pinned copy of ob at {directory}")
    if not is_packed(directory):
        return mutator(directory)

    ref = read_pinned(directory)
    with tempfile.TemporaryDirectory(prefix="ob-pinned-") as tmp:
        checkout_dir = Path(tmp) / "impl"
        _checkout_ref(ref, checkout_dir)
        result = mutator(checkout_dir)
        new_ref = PinnedRef(
            url=ref.url,
            rev=git_ops.rev_parse(checkout_dir),
            branch=git_ops.current_branch(checkout_dir),
        )

    write_pinned(directory, new_ref)
    if new_ref.rev != ref.rev:
        logger.info("Pinned ob updated from %s to %s", ref.rev, new_ref.rev)
    return result
