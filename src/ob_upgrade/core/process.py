"""Blocking subprocess helpers with captured output."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ob_upgrade.exceptions import ExternalToolFailure

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str


def run_command(
    args: Sequence[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
) -> CommandResult:
    """Run *args* to completion, capturing stdout and stderr.

    There is no timeout: a hung command blocks the caller.

    Raises:
        ExternalToolFailure: If the executable is missing, or if *check* is
            set and the command exits non-zero.
    """
    command = [str(arg) for arg in args]
    logger.debug("Running %s (cwd=%s)", " ".join(command), cwd or ".")
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except FileNotFoundError as exc:
        raise ExternalToolFailure(command, 127, str(exc), message="Executable not found") from exc

    result = CommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if result.stderr.strip():
        logger.debug("%s stderr:\n%s", command[0], result.stderr.rstrip())
    if check and result.returncode != 0:
        raise ExternalToolFailure(command, result.returncode, result.stderr)
    return result
