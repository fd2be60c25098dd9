"""Subcommand modules for fwdctl.

Provides register_commands() which uses deferred imports to keep
``fwdctl --help`` fast as the codebase grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    Uses deferred imports so modules are only loaded when actually invoked.
    2 groups (have subcommands) + 6 standalone commands.
    """
    # --- Groups ---
    from fwdctl.commands.client import client
    from fwdctl.commands.contact import contact

    cli.add_command(client)
    cli.add_command(contact)

    # --- Standalone commands ---
    from fwdctl.commands.batch import batch
    from fwdctl.commands.interchange import export, import_cmd
    from fwdctl.commands.init_cmd import init_cmd
    from fwdctl.commands.search import search, suggest

    cli.add_command(batch)
    cli.add_command(search)
    cli.add_command(suggest)
    cli.add_command(export)
    cli.add_command(import_cmd)
    cli.add_command(init_cmd)
