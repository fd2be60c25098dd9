"""Tests for the ``contact`` command group."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from fwdctl.cli import cli
from tests.conftest import business_payload, contact_payload, write_json


@pytest.fixture
def client_id(cli_runner: CliRunner, tmp_path: Path, _isolated_workspace: None) -> str:
    path = write_json(tmp_path, "acme.json", business_payload())
    result = cli_runner.invoke(cli, ["--json", "client", "create", "--file", path])
    return json.loads(result.stdout)["data"]["id"]


def _contacts(result: Any) -> list[dict[str, Any]]:
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)["data"]["contacts"]


class TestContactCommands:
    def test_list(self, cli_runner: CliRunner, client_id: str) -> None:
        contacts = _contacts(cli_runner.invoke(cli, ["--json", "contact", "list", client_id]))
        assert [c["first_name"] for c in contacts] == ["Claire"]
        assert contacts[0]["is_primary"] is True

    def test_add_then_promote(self, cli_runner: CliRunner, tmp_path: Path, client_id: str) -> None:
        path = write_json(tmp_path, "luc.json", contact_payload("Luc", "Roy"))
        added = _contacts(
            cli_runner.invoke(cli, ["--json", "contact", "add", client_id, "--file", path])
        )
        assert len(added) == 2

        promoted = _contacts(
            cli_runner.invoke(cli, ["--json", "contact", "primary", client_id, "1"])
        )
        assert [c["is_primary"] for c in promoted] == [False, True]

    def test_update(self, cli_runner: CliRunner, tmp_path: Path, client_id: str) -> None:
        path = write_json(tmp_path, "changes.json", {"title": "Export manager"})
        contacts = _contacts(
            cli_runner.invoke(cli, ["--json", "contact", "update", client_id, "0", "--file", path])
        )
        assert contacts[0]["title"] == "Export manager"

    def test_invalid_contact(self, cli_runner: CliRunner, tmp_path: Path, client_id: str) -> None:
        path = write_json(tmp_path, "bad.json", {"first_name": "Zoe"})
        result = cli_runner.invoke(cli, ["--json", "contact", "add", client_id, "--file", path])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "CONTACT_VALIDATION_FAILED"

    def test_last_active_contact_is_kept(self, cli_runner: CliRunner, client_id: str) -> None:
        result = cli_runner.invoke(cli, ["--json", "contact", "remove", client_id, "0"])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "LAST_ACTIVE_CONTACT"

    def test_bad_index(self, cli_runner: CliRunner, client_id: str) -> None:
        result = cli_runner.invoke(cli, ["--json", "contact", "primary", client_id, "5"])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "INVALID_CONTACT_INDEX"

    def test_deactivate(self, cli_runner: CliRunner, tmp_path: Path, client_id: str) -> None:
        path = write_json(tmp_path, "luc.json", contact_payload("Luc", "Roy"))
        cli_runner.invoke(cli, ["contact", "add", client_id, "--file", path])
        contacts = _contacts(
            cli_runner.invoke(cli, ["--json", "contact", "remove", client_id, "1", "--deactivate"])
        )
        assert [c["is_active"] for c in contacts] == [True, False]

        active = _contacts(
            cli_runner.invoke(cli, ["--json", "contact", "list", client_id, "--active-only"])
        )
        assert len(active) == 1

    def test_human_list(self, cli_runner: CliRunner, client_id: str) -> None:
        result = cli_runner.invoke(cli, ["contact", "list", client_id])
        assert "Claire Martin" in result.stdout
        assert f"1 contacts on {client_id}" in result.stdout
