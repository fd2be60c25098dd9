"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``FWDCTL_*`` prefix, ``__`` for nesting
  3. TOML file    — ``fwdctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_workspace`` walk-up discovery from
:mod:`fwdctl.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from fwdctl.config.discovery import find_workspace
from fwdctl.config.models import BatchConfig, DatabaseConfig, SearchConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``fwdctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class FwdSettings(BaseSettings):
    """Unified settings for fwdctl.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.  Stored in
    ``click.Context.obj`` at the CLI root level and handed to the
    :class:`~fwdctl.infrastructure.store.Store`.

    Attributes:
        workspace_root: Resolved workspace directory (nearest ancestor
            holding ``fwdctl.toml`` or ``.fwdctl/``, or CWD if none).
        config_path: The TOML file in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FWDCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path (derived from the config location, never read from TOML) ---
    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @property
    def database_path(self) -> Path:
        """Absolute location of the SQLite file."""
        path = Path(self.database.path).expanduser()
        if not path.is_absolute():
            path = self.workspace_root / path
        return path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> FwdSettings:
        """Construct settings from CLI invocation.

        Discovers the workspace via walk-up (or explicit *config_path*),
        resolves *workspace_root* from the discovered workspace,
        and merges CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        discovered_root: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
                discovered_root = p.resolve().parent
        else:
            workspace = find_workspace(workspace_root)
            if workspace is not None:
                toml_path = workspace.config_path
                discovered_root = workspace.root

        resolved_root = workspace_root or discovered_root or Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                workspace_root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None
