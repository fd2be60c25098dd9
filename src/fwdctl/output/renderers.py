"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fwdctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from fwdctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids, one per line."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    data = result.data
    if isinstance(data.get("clients"), list):
        return "\n".join(str(c.get("id", "")) for c in data["clients"])
    if isinstance(data.get("suggestions"), list):
        return "\n".join(data["suggestions"])
    if isinstance(data.get("success_ids"), list):
        return "\n".join(data["success_ids"])
    if "id" in data:
        return str(data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="fwd.ok")
    op = Text(f"  {result.op}", style="fwd.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="fwd.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="fwd.id")
    elif key == "display_name":
        v = Text(str(value), style="fwd.name")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif isinstance(value, dict | list):
        v = Text(json.dumps(value, separators=(",", ":"), default=str))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations")
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _client_table(clients: list[dict[str, Any]]) -> Table:
    """Build a Rich Table for a list of client summaries."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="fwd.id", no_wrap=True)
    table.add_column("Name", style="fwd.name")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Email")
    table.add_column("Country")
    table.add_column("Tags", style="dim")

    for client in clients:
        status = str(client.get("status", ""))
        table.add_row(
            str(client.get("id", "")),
            str(client.get("display_name", "")),
            str(client.get("client_type", "")),
            Text(status, style=style_for_status(status)),
            str(client.get("email", "")),
            str(client.get("country", "")),
            ", ".join(client.get("tags", [])),
        )
    return table


def _counts(console: Console, title: str, counts: dict[str, int]) -> None:
    if not counts:
        return
    parts = [f"{key}=[fwd.count]{value}[/fwd.count]" for key, value in sorted(counts.items())]
    console.print(f"  {title}: " + "  ".join(parts))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="fwd.error")
    op = Text(f"  {result.op}", style="fwd.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    if err is None or not err.detail:
        return
    # Issue lists are the useful part of a validation failure; always show them.
    for issue in err.detail.get("errors", []):
        if isinstance(issue, dict):
            console.print(
                f"  [fwd.error]{issue.get('code', '')}[/fwd.error] "
                f"{issue.get('field', '')}: {issue.get('message', '')}"
            )
    if verbose:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            if k != "errors":
                console.print(f"    {k}: {v}")


# ── Client renderers ──────────────────────────────────────────────────


def _render_client(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single client (create/update/get) as a panel."""
    d = result.data
    client = d.get("client", {})
    contact = client.get("contact_info", {})
    address = contact.get("address") or {}
    commercial = client.get("commercial_info", {})

    lines: list[str] = [
        f"type: {client.get('client_type')}",
        f"status: {client.get('status')}",
        f"email: {contact.get('email')}",
    ]
    if contact.get("phone"):
        lines.append(f"phone: {contact['phone']}")
    if address:
        lines.append(f"address: {address.get('city', '')} ({address.get('country', '')})")
    if commercial:
        lines.append(
            f"credit limit: {commercial.get('credit_limit')} "
            f"{commercial.get('credit_limit_currency')}, "
            f"terms {commercial.get('payment_terms_days')} days"
        )
    contacts = (client.get("business_info") or {}).get("contacts", [])
    if contacts:
        active = sum(1 for c in contacts if c.get("is_active"))
        lines.append(f"contacts: {len(contacts)} ({active} active)")
    if client.get("tags"):
        lines.append(f"tags: {', '.join(client['tags'])}")
    if "total_folders" in d:
        lines.append(f"folders: {d['total_folders']} ({d.get('active_folders', 0)} active)")
        lines.append(f"can modify: {d.get('can_modify')}  can delete: {d.get('can_delete')}")
    if verbose:
        lines.append(f"version: {client.get('version')}")
        lines.append(f"created: {client.get('created_at')}  updated: {client.get('updated_at')}")

    name = d.get("display_name") or (d.get("display_info") or {}).get("display_name", "")
    title = f"{client.get('id', '?')} — {name}"
    style = style_for_status(str(client.get("status", "")))
    console.print(Panel("\n".join(lines), title=title, border_style=style or "dim", expand=False))


def _render_client_list(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render list_clients and search results as a table plus paging info."""
    d = result.data
    clients = d.get("clients", [])
    console.print(_client_table(clients))

    total = d.get("total_count", d.get("total", len(clients)))
    page = d.get("current_page", d.get("page", 1))
    console.print(f"\n{total} clients (page {page}/{max(d.get('total_pages', 1), 1)})")

    facets = d.get("facets")
    if facets:
        console.print(Text("facets:", style="dim"))
        _counts(console, "type", facets.get("client_types", {}))
        _counts(console, "status", facets.get("statuses", {}))
        _counts(console, "country", facets.get("countries", {}))
        _counts(console, "industry", facets.get("industries", {}))


def _render_validation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    valid = d.get("is_valid", False)
    label = Text("VALID" if valid else "INVALID", style="fwd.ok" if valid else "fwd.error")
    console.print(label)
    for issue in d.get("errors", []):
        console.print(
            f"  [fwd.error]error[/fwd.error] {issue['field']}: {issue['message']} "
            f"({issue['code']})"
        )
    for issue in d.get("warnings", []):
        console.print(
            f"  [fwd.warning]warning[/fwd.warning] {issue['field']}: {issue['message']} "
            f"({issue['code']})"
        )


def _render_delete(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("client_id", "deletion_type", "affected_folders_count", "deleted_at"):
        if key in d:
            _field(console, key, d[key])
    if verbose:
        for action in d.get("folder_actions", []):
            target = action.get("target_client_id")
            suffix = f" -> {target}" if target else ""
            console.print(f"    {action['folder_id']}: {action['action']}{suffix}")


# ── Batch and import renderers ────────────────────────────────────────


def _render_batch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a batch audit record."""
    d = result.data
    _status_line(console, result)
    _field(console, "operation", d.get("operation"))
    _field(console, "executed", d.get("executed"))
    _field(console, "requested", d.get("total_requested"))
    _field(console, "succeeded", d.get("success_count"))
    _field(console, "errors", d.get("error_count"))
    _field(console, "warnings", d.get("warning_count"))

    for err in d.get("errors", []):
        console.print(
            f"  [fwd.error]{err['error_code']}[/fwd.error] "
            f"[fwd.id]{err['client_id']}[/fwd.id]: {err['error']}"
        )
    for warning in d.get("warnings", []):
        console.print(
            f"  [fwd.warning]{warning['warning_code']}[/fwd.warning] "
            f"[fwd.id]{warning['client_id']}[/fwd.id]: {warning['warning']}"
        )
    if verbose:
        console.print(f"  time: {d.get('execution_time_ms')}ms")


def _render_import(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "rows", d.get("total_rows"))
    _field(console, "imported", d.get("imported_count"))
    _field(console, "errors", d.get("error_count"))
    for row_error in d.get("errors", []):
        issues = row_error.get("errors") or []
        detail = "; ".join(f"{i['field']}: {i['message']}" for i in issues)
        console.print(
            f"  [fwd.error]row {row_error['row']}[/fwd.error] "
            f"{row_error.get('message') or ''}{' - ' + detail if detail else ''}"
        )


# ── Contact renderers ─────────────────────────────────────────────────


def _render_contacts(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    contacts = d.get("contacts", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right")
    table.add_column("Name", style="fwd.name")
    table.add_column("Type")
    table.add_column("Email")
    table.add_column("Primary")
    table.add_column("Active")
    for index, contact in enumerate(contacts):
        table.add_row(
            str(index),
            f"{contact.get('first_name', '')} {contact.get('last_name', '')}".strip(),
            str(contact.get("contact_type", "")),
            str(contact.get("email") or ""),
            "yes" if contact.get("is_primary") else "",
            "yes" if contact.get("is_active") else "no",
        )
    if result.op != "list_contacts":
        _status_line(console, result)
    console.print(table)
    console.print(f"\n{len(contacts)} contacts on [fwd.id]{d.get('client_id', '')}[/fwd.id]")


def _render_suggestions(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    for suggestion in result.data.get("suggestions", []):
        console.print(suggestion)


# ── Generic renderer ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback: status line plus key-value fields."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_Renderer = Callable[..., None]

_OP_RENDERERS: dict[str, _Renderer] = {
    "create_client": _render_client,
    "update_client": _render_client,
    "get_client": _render_client,
    "get_client_detail": _render_client,
    "list_clients": _render_client_list,
    "search": _render_client_list,
    "validate_client": _render_validation,
    "delete_client": _render_delete,
    "batch": _render_batch,
    "import_clients": _render_import,
    "add_contact": _render_contacts,
    "update_contact": _render_contacts,
    "remove_contact": _render_contacts,
    "set_primary_contact": _render_contacts,
    "list_contacts": _render_contacts,
    "suggest": _render_suggestions,
}
