"""Locate the project's own ob and replace the current process with it."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import NoReturn, Sequence

from ob_upgrade.core.config import impl_dir
from ob_upgrade.core.constants import OB_EXECUTABLE
from ob_upgrade.pinned import materialize

logger = logging.getLogger(__name__)


def find_project_command(project: Path) -> Path | None:
    """Return the project's pinned ob executable, or ``None`` if it has none."""
    directory = impl_dir(project)
    if not directory.is_dir():
        logger.debug("No pinned ob directory at %s", directory)
        return None
    candidate = materialize(directory) / OB_EXECUTABLE
    if candidate.is_file() and os.access(candidate, os.X_OK):
        return candidate
    logger.debug("Pinned ob at %s has no executable %s", directory, OB_EXECUTABLE)
    return None


def exec_command(executable: Path, args: Sequence[str]) -> NoReturn:
    """Replace the current process with *executable* called with *args*.

    Nothing after this call runs in the current process, so buffered output
    is flushed first.
    """
    argv = [str(executable), *args]
    logger.debug("Handing off: %s", " ".join(argv))
    for handler in logging.getLogger().handlers:
        handler.flush()
    sys.stdout.flush()
    sys.stderr.flush()
    os.execv(str(executable), argv)
