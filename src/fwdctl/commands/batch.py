"""Command: run one batch operation over many clients."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fwdctl.commands._base import FwdCommand, load_json
from fwdctl.domain.types import BatchOperationType, ClientStatus
from fwdctl.services.batch import BatchService
from fwdctl.services.contracts import BatchOperation, BatchOperationData
from fwdctl.services.result import ServiceResult

if TYPE_CHECKING:
    from fwdctl.commands._context import AppContext

_BATCH_EXAMPLES = """\
  fwdctl batch change_status cli_0123456789ab cli_ba9876543210 --status suspended
  fwdctl batch add_tags cli_0123456789ab cli_ba9876543210 --tag vip --tag export
  fwdctl batch remove_tags cli_0123456789ab --tag export
  fwdctl batch update cli_0123456789ab cli_ba9876543210 --updates patch.json
  fwdctl batch delete cli_0123456789ab cli_ba9876543210 --force --user alice"""


@click.command(cls=FwdCommand, examples=_BATCH_EXAMPLES)
@click.argument("operation", type=click.Choice([op.value for op in BatchOperationType]))
@click.argument("client_ids", nargs=-1, required=True)
@click.option(
    "--status",
    "new_status",
    type=click.Choice([s.value for s in ClientStatus]),
    default=None,
    help="New status (change_status).",
)
@click.option("--tag", "tags", multiple=True, help="Tag to add or remove (repeatable).")
@click.option("--updates", "updates_path", default=None, help="JSON patch file (update).")
@click.option("--force", is_flag=True, help="Run even when pre-flight flags some ids.")
@click.option("--user", "user_id", default=None, help="User recorded on deletes.")
@click.pass_obj
def batch(
    app: AppContext,
    operation: str,
    client_ids: tuple[str, ...],
    new_status: str | None,
    tags: tuple[str, ...],
    updates_path: str | None,
    force: bool,
    user_id: str | None,
) -> None:
    """Apply OPERATION to every CLIENT_ID, recording per-id failures."""
    updates = load_json(updates_path, param_hint="--updates") if updates_path else None
    request = BatchOperation(
        operation=BatchOperationType(operation),
        client_ids=list(client_ids),
        data=BatchOperationData(
            updates=updates,
            new_status=new_status,
            tags=list(tags) or None,
        ),
        force=force,
    )

    def action() -> ServiceResult:
        result = BatchService(app.store).execute_batch(request, user_id=user_id)
        warnings: list[str] = []
        if not result.executed:
            warnings.append(
                "Pre-flight checks failed; no client was changed. "
                "Use --force to process the remaining ids."
            )
        return ServiceResult(
            ok=True, op="batch", data=result.model_dump(mode="json"), warnings=warnings
        )

    app.run("batch", action)
