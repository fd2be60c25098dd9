"""Workspace discovery.

A fwdctl workspace is a directory holding ``fwdctl.toml``, the ``.fwdctl/``
state directory (where the default database lives), or both.  Discovery
walks up from the starting directory and stops at the first directory
carrying either marker, so commands run from a subdirectory reuse the
workspace's database instead of creating a new one beside them.

``FWDCTL_CONFIG`` names a config file explicitly; its parent directory is
then the workspace root and no walk-up happens.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILENAME = "fwdctl.toml"
CONFIG_ENV_VAR = "FWDCTL_CONFIG"
STATE_DIRNAME = ".fwdctl"
DEFAULT_DATABASE_PATH = f"{STATE_DIRNAME}/fwdctl.db"


@dataclass(frozen=True)
class Workspace:
    """A discovered workspace root and the config file in effect, if any."""

    root: Path
    config_path: Path | None = None


def _env_workspace() -> Workspace | None:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if not env_path:
        return None
    p = Path(env_path)
    if not p.is_file():
        return None
    return Workspace(root=p.resolve().parent, config_path=p)


def find_workspace(start: Path | None = None) -> Workspace | None:
    """Walk up from *start* (default: cwd) to the nearest workspace root.

    Returns None when no directory up to the filesystem root carries a
    marker.  A set but dangling ``FWDCTL_CONFIG`` also returns None.
    """
    if os.environ.get(CONFIG_ENV_VAR):
        return _env_workspace()

    current = (start or Path.cwd()).resolve()
    while True:
        config = current / CONFIG_FILENAME
        has_config = config.is_file()
        if has_config or (current / STATE_DIRNAME).is_dir():
            return Workspace(root=current, config_path=config if has_config else None)
        parent = current.parent
        if parent == current:
            return None
        current = parent
