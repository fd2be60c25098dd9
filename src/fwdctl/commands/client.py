"""Command group: client records (create, get, update, delete, list, validate, stats)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from fwdctl.commands._base import FwdGroup, load_json
from fwdctl.domain.models import display_name
from fwdctl.domain.types import ClientStatus, ClientType, DeletionType, FolderPolicy
from fwdctl.errors import ClientNotFoundError
from fwdctl.services.clients import ClientService
from fwdctl.services.contracts import DeleteClientParams
from fwdctl.services.result import ServiceError, ServiceResult
from fwdctl.services.validation import ValidationService

if TYPE_CHECKING:
    from fwdctl.commands._context import AppContext
    from fwdctl.domain.models import Client
    from fwdctl.domain.rules import ValidationResult

_CLIENT_EXAMPLES = """\
  fwdctl client create --file acme.json --created-by alice
  fwdctl client get cli_0123456789ab --detail
  fwdctl client update cli_0123456789ab --file patch.json
  fwdctl client delete cli_0123456789ab --folders archive
  fwdctl client list --status active --type business
  fwdctl client validate --file acme.json
  fwdctl client stats"""

_STATUSES = [s.value for s in ClientStatus]
_TYPES = [t.value for t in ClientType]


def client_payload(client: Client) -> dict[str, Any]:
    """The data block every single-client command emits."""
    return {
        "id": client.id,
        "display_name": display_name(client),
        "client": client.model_dump(mode="json"),
    }


def validation_failure(op: str, validation: ValidationResult) -> ServiceResult:
    """A failed result carrying every validation issue."""
    count = len(validation.errors)
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="VALIDATION_FAILED",
            message=f"{count} validation error{'s' if count != 1 else ''}",
            detail={
                "errors": [issue.model_dump() for issue in validation.errors],
                "warnings": [issue.model_dump() for issue in validation.warnings],
            },
        ),
    )


def _warning_lines(validation: ValidationResult) -> list[str]:
    return [f"{w.field}: {w.message}" for w in validation.warnings]


@click.group(cls=FwdGroup, examples=_CLIENT_EXAMPLES)
@click.pass_obj
def client(app: AppContext) -> None:
    """Create, read, update, and delete client records."""


@client.command(
    examples="""\
  fwdctl client create --file acme.json
  cat jean.json | fwdctl client create --file - --created-by alice
  fwdctl --json client create --file acme.json --no-validate"""
)
@click.option("--file", "file_path", required=True, help="JSON payload ('-' for stdin).")
@click.option("--created-by", default=None, help="User recorded as the creator.")
@click.option("--no-validate", is_flag=True, help="Skip the validation rules.")
@click.pass_obj
def create(app: AppContext, file_path: str, created_by: str | None, no_validate: bool) -> None:
    """Validate and create a client from a JSON payload."""
    data = load_json(file_path)

    def action() -> ServiceResult:
        warnings: list[str] = []
        if not no_validate:
            validation = ValidationService(app.store).validate_create(data)
            if not validation.is_valid:
                return validation_failure("create_client", validation)
            warnings = _warning_lines(validation)
        created = ClientService(app.store).create(data, created_by=created_by)
        return ServiceResult(
            ok=True, op="create_client", data=client_payload(created), warnings=warnings
        )

    app.run("create_client", action)


@client.command(
    examples="""\
  fwdctl client get cli_0123456789ab
  fwdctl client get cli_0123456789ab --detail
  fwdctl --json client get cli_0123456789ab"""
)
@click.argument("client_id")
@click.option("--detail", is_flag=True, help="Include folder counts and display info.")
@click.pass_obj
def get(app: AppContext, client_id: str, detail: bool) -> None:
    """Show one client."""

    def action() -> ServiceResult:
        service = ClientService(app.store)
        if detail:
            found = service.get_detail(client_id)
            if found is None:
                raise ClientNotFoundError(client_id)
            return ServiceResult(
                ok=True, op="get_client_detail", data=found.model_dump(mode="json")
            )
        record = service.get_by_id(client_id)
        if record is None:
            raise ClientNotFoundError(client_id)
        return ServiceResult(ok=True, op="get_client", data=client_payload(record))

    app.run("get_client", action)


@client.command(
    examples="""\
  fwdctl client update cli_0123456789ab --file patch.json
  fwdctl client update cli_0123456789ab --file patch.json --expected-version 3"""
)
@click.argument("client_id")
@click.option("--file", "file_path", required=True, help="JSON patch ('-' for stdin).")
@click.option(
    "--expected-version",
    type=int,
    default=None,
    help="Fail if the stored version differs (optimistic locking).",
)
@click.option("--no-validate", is_flag=True, help="Skip the validation rules.")
@click.pass_obj
def update(
    app: AppContext,
    client_id: str,
    file_path: str,
    expected_version: int | None,
    no_validate: bool,
) -> None:
    """Deep-merge a JSON patch into a client."""
    data = load_json(file_path)

    def action() -> ServiceResult:
        warnings: list[str] = []
        if not no_validate:
            validation = ValidationService(app.store).validate_update(client_id, data)
            if not validation.is_valid:
                return validation_failure("update_client", validation)
            warnings = _warning_lines(validation)
        updated = ClientService(app.store).update(
            client_id, data, expected_version=expected_version
        )
        return ServiceResult(
            ok=True, op="update_client", data=client_payload(updated), warnings=warnings
        )

    app.run("update_client", action)


@client.command(
    examples="""\
  fwdctl client delete cli_0123456789ab
  fwdctl client delete cli_0123456789ab --force --folders archive
  fwdctl client delete cli_0123456789ab --hard --folders transfer --transfer-to cli_ba9876543210"""
)
@click.argument("client_id")
@click.option("--hard", is_flag=True, help="Remove the row instead of soft-deleting it.")
@click.option("--force", is_flag=True, help="Delete even with active folders.")
@click.option(
    "--folders",
    "handle_folders",
    type=click.Choice([p.value for p in FolderPolicy]),
    default=FolderPolicy.KEEP.value,
    show_default=True,
    help="What happens to the client's folders.",
)
@click.option("--transfer-to", default=None, help="Target client for --folders transfer.")
@click.option("--reason", default=None, help="Deletion reason (soft delete).")
@click.option("--deleted-by", default=None, help="User recorded as the deleter.")
@click.pass_obj
def delete(
    app: AppContext,
    client_id: str,
    hard: bool,
    force: bool,
    handle_folders: str,
    transfer_to: str | None,
    reason: str | None,
    deleted_by: str | None,
) -> None:
    """Delete a client and apply a folder policy."""
    params = DeleteClientParams(
        client_id=client_id,
        deletion_type=DeletionType.HARD if hard else DeletionType.SOFT,
        force=force,
        handle_folders=FolderPolicy(handle_folders),
        transfer_to_client_id=transfer_to,
        reason=reason,
        deleted_by=deleted_by,
    )

    def action() -> ServiceResult:
        result = ClientService(app.store).delete(params)
        return ServiceResult(
            ok=True,
            op="delete_client",
            data=result.model_dump(mode="json"),
            warnings=list(result.warnings),
        )

    app.run("delete_client", action)


@client.command(
    name="list",
    examples="""\
  fwdctl client list
  fwdctl client list --status active --status suspended
  fwdctl client list --type business --page 2 --page-size 20""",
)
@click.option("--status", "statuses", multiple=True, type=click.Choice(_STATUSES))
@click.option("--type", "client_types", multiple=True, type=click.Choice(_TYPES))
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--page-size", type=click.IntRange(min=1), default=None)
@click.pass_obj
def list_cmd(
    app: AppContext,
    statuses: tuple[str, ...],
    client_types: tuple[str, ...],
    page: int,
    page_size: int | None,
) -> None:
    """List live clients, newest first."""

    def action() -> ServiceResult:
        result = ClientService(app.store).list_clients(
            page=page,
            page_size=page_size,
            statuses=list(statuses),
            client_types=list(client_types),
        )
        return ServiceResult(ok=True, op="list_clients", data=result.model_dump(mode="json"))

    app.run("list_clients", action)


@client.command(
    examples="""\
  fwdctl client validate --file acme.json
  fwdctl client validate --file patch.json --client-id cli_0123456789ab"""
)
@click.option("--file", "file_path", required=True, help="JSON payload ('-' for stdin).")
@click.option("--client-id", default=None, help="Validate as a partial update of this client.")
@click.pass_obj
def validate(app: AppContext, file_path: str, client_id: str | None) -> None:
    """Run the validation rules without writing anything."""
    data = load_json(file_path)

    def action() -> ServiceResult:
        service = ValidationService(app.store)
        if client_id:
            result = service.validate_update(client_id, data)
        else:
            result = service.validate_create(data)
        return ServiceResult(ok=True, op="validate_client", data=result.model_dump(mode="json"))

    app.run("validate_client", action)


@client.command(
    examples="""\
  fwdctl client stats
  fwdctl client stats cli_0123456789ab"""
)
@click.argument("client_id", required=False)
@click.pass_obj
def stats(app: AppContext, client_id: str | None) -> None:
    """Folder and revenue statistics for one client, or global counts."""

    def action() -> ServiceResult:
        service = ClientService(app.store)
        if client_id:
            data = service.get_statistics(client_id).model_dump(mode="json")
        else:
            data = service.global_stats()
        return ServiceResult(ok=True, op="client_stats", data=data)

    app.run("client_stats", action)
