"""Shared path constants for ob project and installation layout."""

from __future__ import annotations

OBELISK_DIR = ".obelisk"
IMPL_DIR = ".obelisk/impl"
PROJECT_CONFIG_FILE = ".obelisk/config.yaml"
MIGRATION_DIR_NAME = "migration"
# Directory inside the installed package that holds the bundled ``migration/``.
BUNDLED_AMBIENT_DIR = "ambient"
PINNED_REF_FILE = "git.json"
OB_EXECUTABLE = "bin/ob"
NO_HANDOFF_FLAG = "--no-handoff"

__all__ = [
    "OBELISK_DIR",
    "IMPL_DIR",
    "PROJECT_CONFIG_FILE",
    "MIGRATION_DIR_NAME",
    "BUNDLED_AMBIENT_DIR",
    "PINNED_REF_FILE",
    "OB_EXECUTABLE",
    "NO_HANDOFF_FLAG",
]
