"""Command: workspace initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fwdctl.commands._base import FwdCommand
from fwdctl.config.discovery import CONFIG_FILENAME
from fwdctl.services.result import ServiceResult

if TYPE_CHECKING:
    from fwdctl.commands._context import AppContext

_DEFAULT_CONFIG = """\
# fwdctl workspace configuration.  Every key is optional.

[database]
path = ".fwdctl/fwdctl.db"

[batch]
max_batch_size = 1000

[search]
default_page_size = 50
max_page_size = 100
"""


@click.command(
    "init",
    cls=FwdCommand,
    examples="""\
  fwdctl init
  fwdctl --json init""",
)
@click.pass_obj
def init_cmd(app: AppContext) -> None:
    """Create fwdctl.toml (if missing) and the database in the workspace."""

    def action() -> ServiceResult:
        config_path = app.settings.config_path
        created_config = False
        if config_path is None:
            config_path = app.settings.workspace_root / CONFIG_FILENAME
            config_path.write_text(_DEFAULT_CONFIG, encoding="utf-8")
            created_config = True
        store = app.store
        return ServiceResult(
            ok=True,
            op="init",
            data={
                "config_path": str(config_path),
                "created_config": created_config,
                "database_path": str(store.path),
            },
        )

    app.run("init", action)
