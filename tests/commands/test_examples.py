"""Tests for --examples flag on CLI commands.

Parametrized to cover all commands that define examples text.
"""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from fwdctl.cli import cli

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["client", "--examples"], ["fwdctl client create", "fwdctl client stats"]),
    (["client", "create", "--examples"], ["--created-by alice", "--no-validate"]),
    (["client", "get", "--examples"], ["--detail"]),
    (["client", "update", "--examples"], ["--expected-version 3"]),
    (["client", "delete", "--examples"], ["--folders archive", "--transfer-to"]),
    (["client", "list", "--examples"], ["--status suspended"]),
    (["client", "validate", "--examples"], ["--client-id"]),
    (["client", "stats", "--examples"], ["fwdctl client stats"]),
    (["contact", "--examples"], ["fwdctl contact add", "--deactivate"]),
    (["contact", "add", "--examples"], ["--file -"]),
    (["contact", "update", "--examples"], ["is_active"]),
    (["contact", "remove", "--examples"], ["--deactivate"]),
    (["contact", "primary", "--examples"], ["fwdctl contact primary"]),
    (["contact", "list", "--examples"], ["--active-only"]),
    (["batch", "--examples"], ["change_status", "add_tags", "--force"]),
    (["search", "--examples"], ["--filters filters.json", "--no-facets"]),
    (["suggest", "--examples"], ["--limit 5"]),
    (["export", "--examples"], ["--output clients.json"]),
    (["import", "--examples"], ["--strict"]),
    (["init", "--examples"], ["fwdctl init"]),
]


def _examples_id(item: tuple[list[str], list[str]]) -> str:
    """Generate a readable test ID from args."""
    args, _ = item
    return "_".join(a for a in args if a != "--examples")


@pytest.mark.parametrize(
    "args,expected_keywords",
    EXAMPLES_COMMANDS,
    ids=[_examples_id(item) for item in EXAMPLES_COMMANDS],
)
def test_examples_flag(
    cli_runner: CliRunner, args: list[str], expected_keywords: list[str]
) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in examples output for {args}"


class TestExamplesInHelp:
    """Test that --examples appears in --help output for commands that have it."""

    @pytest.mark.parametrize(
        "args",
        [
            ["client", "--help"],
            ["client", "create", "--help"],
            ["contact", "--help"],
            ["batch", "--help"],
            ["search", "--help"],
            ["import", "--help"],
        ],
    )
    def test_examples_in_help(self, cli_runner: CliRunner, args: list[str]) -> None:
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0
        assert "--examples" in result.output


class TestExamplesEagerExit:
    """--examples exits before required arguments are checked."""

    def test_examples_without_arguments(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["batch", "--examples"])
        assert result.exit_code == 0
        assert "Examples for" in result.output
