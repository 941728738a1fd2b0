"""Runtime configuration for ob.

Settings come from the environment and from the project's
``.obelisk/config.yaml``:

- ``OB_AMBIENT_DIR``: installation directory of the running ob (the one
  holding ``migration/``). Defaults to two levels above the executable,
  i.e. the prefix of ``<prefix>/bin/ob``, then to the graphs bundled in
  the installed package, then to the source checkout.
- ``OB_NO_HANDOFF``: when truthy, never hand off to the project's ob.
- ``OB_CACHE_DIR``: where packed pinned copies are materialized.
- ``impl_dir`` in ``.obelisk/config.yaml``: location of the pinned copy
  relative to the project root (default ``.obelisk/impl``).
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_cache_dir
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ob_upgrade.core.constants import (
    BUNDLED_AMBIENT_DIR,
    IMPL_DIR,
    MIGRATION_DIR_NAME,
    PROJECT_CONFIG_FILE,
)
from ob_upgrade.exceptions import UpgradeError

AMBIENT_DIR_ENV = "OB_AMBIENT_DIR"
NO_HANDOFF_ENV = "OB_NO_HANDOFF"
CACHE_DIR_ENV = "OB_CACHE_DIR"

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(UpgradeError):
    """Raised when the project configuration cannot be read."""


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def _ambient_candidates() -> list[Path]:
    package_dir = Path(__file__).resolve().parent.parent
    return [
        # <prefix>/bin/ob, as laid out by bin/ob in a checkout
        Path(sys.argv[0]).resolve().parent.parent,
        # graphs bundled into an installed wheel
        package_dir / BUNDLED_AMBIENT_DIR,
        # src/ob_upgrade inside a source checkout or editable install
        package_dir.parent.parent,
    ]


def get_ambient_dir() -> Path:
    """Return the installation directory of the running ob.

    ``OB_AMBIENT_DIR`` wins; otherwise the first candidate holding a
    ``migration/`` directory is used.
    """
    if env_dir := os.environ.get(AMBIENT_DIR_ENV):
        return Path(env_dir).resolve()
    candidates = _ambient_candidates()
    for candidate in candidates:
        if (candidate / MIGRATION_DIR_NAME).is_dir():
            return candidate
    return candidates[0]


def get_cache_dir() -> Path:
    if env_dir := os.environ.get(CACHE_DIR_ENV):
        return Path(env_dir)
    return Path(user_cache_dir("ob"))


def handoff_disabled() -> bool:
    return _env_flag(NO_HANDOFF_ENV)


@dataclass(slots=True)
class ProjectConfig:
    """Per-project settings stored in ``.obelisk/config.yaml``."""

    impl_dir: str = IMPL_DIR

    @classmethod
    def from_dict(cls, data: object) -> "ProjectConfig":
        if not isinstance(data, dict):
            return cls()
        impl_dir = data.get("impl_dir")
        if isinstance(impl_dir, str) and impl_dir.strip():
            return cls(impl_dir=impl_dir.strip())
        return cls()


def load_project_config(project: Path) -> ProjectConfig:
    """Load ``.obelisk/config.yaml`` from *project*, falling back to defaults."""
    config_path = project / PROJECT_CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig()

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    except YAMLError as exc:
        raise ConfigError(f"Failed to parse {config_path}: {exc}") from exc
    return ProjectConfig.from_dict(payload)


def impl_dir(project: Path) -> Path:
    """Return the directory holding *project*'s pinned copy of ob."""
    return project / load_project_config(project).impl_dir
