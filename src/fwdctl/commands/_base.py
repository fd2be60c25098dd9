"""Custom Click base classes with --examples support, plus payload loading.

Provides FwdCommand and FwdGroup that accept an ``examples`` parameter.
When ``--examples`` is passed, the command prints usage examples and exits.
This keeps ``--help`` concise while making examples available on demand.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class FwdCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class FwdGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = FwdCommand`` so all subcommands automatically
    accept the ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = FwdCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def load_json(path: str, *, param_hint: str = "--file", expect: type = dict) -> Any:
    """Read a JSON document from *path* (``-`` for stdin).

    Raises:
        click.BadParameter: unreadable file, invalid JSON, or a top-level
            value that is not an *expect* instance.
    """
    try:
        if path == "-":
            raw = click.get_text_stream("stdin").read()
        else:
            raw = Path(path).read_text(encoding="utf-8")
        payload = json.loads(raw)
    except OSError as exc:
        raise click.BadParameter(f"cannot read {path}: {exc}", param_hint=param_hint) from exc
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON in {path}: {exc}", param_hint=param_hint) from exc
    if not isinstance(payload, expect):
        raise click.BadParameter(
            f"expected a JSON {expect.__name__}, got {type(payload).__name__}",
            param_hint=param_hint,
        )
    return payload
