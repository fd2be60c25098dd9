"""Command group: contacts of business clients, addressed by list index."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from fwdctl.commands._base import FwdGroup, load_json
from fwdctl.services.contacts import ContactService
from fwdctl.services.result import ServiceResult

if TYPE_CHECKING:
    from fwdctl.commands._context import AppContext
    from fwdctl.domain.models import ContactPerson

_CONTACT_EXAMPLES = """\
  fwdctl contact list cli_0123456789ab
  fwdctl contact add cli_0123456789ab --file contact.json
  fwdctl contact update cli_0123456789ab 1 --file changes.json
  fwdctl contact primary cli_0123456789ab 1
  fwdctl contact remove cli_0123456789ab 0 --deactivate"""


def _contacts_data(client_id: str, contacts: list[ContactPerson]) -> dict[str, Any]:
    return {
        "client_id": client_id,
        "count": len(contacts),
        "contacts": [c.model_dump(mode="json") for c in contacts],
    }


@click.group(cls=FwdGroup, examples=_CONTACT_EXAMPLES)
@click.pass_obj
def contact(app: AppContext) -> None:
    """Manage the contact list of a business client."""


@contact.command(
    examples="""\
  fwdctl contact add cli_0123456789ab --file contact.json
  echo '{"first_name": "Ana", "last_name": "Diaz", "contact_type": "billing"}' \\
    | fwdctl contact add cli_0123456789ab --file -"""
)
@click.argument("client_id")
@click.option("--file", "file_path", required=True, help="Contact JSON ('-' for stdin).")
@click.pass_obj
def add(app: AppContext, client_id: str, file_path: str) -> None:
    """Append a contact (a primary newcomer demotes the current primary)."""
    payload = load_json(file_path)

    def action() -> ServiceResult:
        updated = ContactService(app.store).add_contact(client_id, payload)
        data = _contacts_data(client_id, updated.business_info.contacts)
        return ServiceResult(ok=True, op="add_contact", data=data)

    app.run("add_contact", action)


@contact.command(
    examples="""\
  fwdctl contact update cli_0123456789ab 1 --file changes.json
  echo '{"is_active": false}' | fwdctl contact update cli_0123456789ab 2 --file -"""
)
@click.argument("client_id")
@click.argument("index", type=int)
@click.option("--file", "file_path", required=True, help="Changes JSON ('-' for stdin).")
@click.pass_obj
def update(app: AppContext, client_id: str, index: int, file_path: str) -> None:
    """Merge changes into the contact at INDEX."""
    payload = load_json(file_path)

    def action() -> ServiceResult:
        updated = ContactService(app.store).update_contact(client_id, index, payload)
        data = _contacts_data(client_id, updated.business_info.contacts)
        return ServiceResult(ok=True, op="update_contact", data=data)

    app.run("update_contact", action)


@contact.command(
    examples="""\
  fwdctl contact remove cli_0123456789ab 2
  fwdctl contact remove cli_0123456789ab 0 --deactivate"""
)
@click.argument("client_id")
@click.argument("index", type=int)
@click.option("--deactivate", is_flag=True, help="Keep the contact but mark it inactive.")
@click.pass_obj
def remove(app: AppContext, client_id: str, index: int, deactivate: bool) -> None:
    """Remove (or deactivate) the contact at INDEX."""

    def action() -> ServiceResult:
        updated = ContactService(app.store).remove_contact(
            client_id, index, deactivate_only=deactivate
        )
        data = _contacts_data(client_id, updated.business_info.contacts)
        return ServiceResult(ok=True, op="remove_contact", data=data)

    app.run("remove_contact", action)


@contact.command(
    examples="""\
  fwdctl contact primary cli_0123456789ab 1"""
)
@click.argument("client_id")
@click.argument("index", type=int)
@click.pass_obj
def primary(app: AppContext, client_id: str, index: int) -> None:
    """Make the contact at INDEX the primary contact."""

    def action() -> ServiceResult:
        updated = ContactService(app.store).set_primary_contact(client_id, index)
        data = _contacts_data(client_id, updated.business_info.contacts)
        return ServiceResult(ok=True, op="set_primary_contact", data=data)

    app.run("set_primary_contact", action)


@contact.command(
    name="list",
    examples="""\
  fwdctl contact list cli_0123456789ab
  fwdctl --json contact list cli_0123456789ab --active-only""",
)
@click.argument("client_id")
@click.option("--active-only", is_flag=True, help="Only active contacts.")
@click.option("--primary-only", is_flag=True, help="Only the primary contact.")
@click.pass_obj
def list_cmd(app: AppContext, client_id: str, active_only: bool, primary_only: bool) -> None:
    """List a client's contacts."""

    def action() -> ServiceResult:
        contacts = ContactService(app.store).list_contacts(
            client_id, active_only=active_only, primary_only=primary_only
        )
        return ServiceResult(
            ok=True, op="list_contacts", data=_contacts_data(client_id, contacts)
        )

    app.run("list_contacts", action)
