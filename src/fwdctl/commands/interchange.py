"""Commands: JSON export and import of client records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from fwdctl.commands._base import FwdCommand, load_json
from fwdctl.commands.search import build_search_params, search_options
from fwdctl.services.interchange import InterchangeService
from fwdctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from fwdctl.commands._context import AppContext


def _flatten_row_errors(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """One issue dict per row issue, with the row number folded into the field."""
    issues: list[dict[str, Any]] = []
    for row in rows:
        label = f"row {row['row']}"
        for issue in row["errors"]:
            issues.append({**issue, "field": f"{label}: {issue['field']}"})
        if not row["errors"]:
            issues.append({"field": label, "message": row["message"], "code": "INVALID_ROW"})
    return issues


@click.command(
    cls=FwdCommand,
    examples="""\
  fwdctl export --output clients.json
  fwdctl export --type business --country FR --output fr-businesses.json
  fwdctl --json export --status suspended""",
)
@click.option("--output", "output_path", default=None, help="Write the clients to this file.")
@click.option("--term", default=None, help="Free-text search term.")
@search_options
@click.pass_obj
def export(app: AppContext, output_path: str | None, term: str | None, **filters: Any) -> None:
    """Export every client matching the filters as JSON."""
    params = build_search_params(term=term, **filters)

    def action() -> ServiceResult:
        clients = InterchangeService(app.store).export_clients(params)
        if output_path is None:
            return ServiceResult(
                ok=True,
                op="export_clients",
                data={"count": len(clients), "clients": clients},
            )
        target = Path(output_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(clients, indent=2, ensure_ascii=False), encoding="utf-8")
        return ServiceResult(
            ok=True,
            op="export_clients",
            data={"count": len(clients), "output": str(target)},
        )

    app.run("export_clients", action)


@click.command(
    "import",
    cls=FwdCommand,
    examples="""\
  fwdctl import clients.json --created-by alice
  fwdctl import clients.json --strict""",
)
@click.argument("file_path")
@click.option("--created-by", default=None, help="User recorded as the creator.")
@click.option("--strict", is_flag=True, help="Abort without writing if any row is invalid.")
@click.pass_obj
def import_cmd(app: AppContext, file_path: str, created_by: str | None, strict: bool) -> None:
    """Import a JSON array of client payloads."""
    records = load_json(file_path, param_hint="FILE_PATH", expect=list)

    def action() -> ServiceResult:
        result = InterchangeService(app.store).import_clients(
            records, created_by, skip_invalid=not strict
        )
        data = result.model_dump(mode="json")
        if strict and result.error_count:
            return ServiceResult(
                ok=False,
                op="import_clients",
                error=ServiceError(
                    code="IMPORT_ABORTED",
                    message=f"{result.error_count} invalid rows; nothing was imported",
                    detail={"errors": _flatten_row_errors(data["errors"])},
                ),
            )
        return ServiceResult(
            ok=True, op="import_clients", data=data, warnings=list(result.warnings)
        )

    app.run("import_clients", action)
