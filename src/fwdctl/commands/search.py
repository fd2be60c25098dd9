"""Commands: faceted client search and name autocomplete."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import click
from pydantic import ValidationError

from fwdctl.commands._base import FwdCommand, load_json
from fwdctl.domain.types import ClientStatus, ClientType, SortDirection, SortField
from fwdctl.services.contracts import FilterGroup, SearchParams
from fwdctl.services.result import ServiceResult
from fwdctl.services.search import SearchService

if TYPE_CHECKING:
    from fwdctl.commands._context import AppContext

_SEARCH_EXAMPLES = """\
  fwdctl search dupont
  fwdctl search --type business --industry logistics --country FR
  fwdctl search acme --sort display_name --asc
  fwdctl search --filters filters.json --page 2 --page-size 20
  fwdctl --json search --status suspended --no-facets"""


def search_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the filter and sort options shared by ``search`` and ``export``."""
    options = [
        click.option(
            "--type",
            "client_types",
            multiple=True,
            type=click.Choice([t.value for t in ClientType]),
            help="Client type (repeatable).",
        ),
        click.option(
            "--status",
            "statuses",
            multiple=True,
            type=click.Choice([s.value for s in ClientStatus]),
            help="Status (repeatable).",
        ),
        click.option("--country", "countries", multiple=True, help="Country code (repeatable)."),
        click.option("--industry", "industries", multiple=True, help="Industry (repeatable)."),
        click.option("--priority", "priorities", multiple=True, help="Priority (repeatable)."),
        click.option("--language", "languages", multiple=True, help="Language (repeatable)."),
        click.option(
            "--sort",
            "sort_field",
            type=click.Choice([f.value for f in SortField]),
            default=SortField.CREATED_AT.value,
            show_default=True,
        ),
        click.option("--desc/--asc", "descending", default=True, help="Sort direction."),
        click.option("--filters", "filters_path", default=None, help="Filter group JSON file."),
        click.option("--include-deleted", is_flag=True, help="Include soft-deleted clients."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_search_params(
    *,
    term: str | None,
    filters_path: str | None,
    client_types: tuple[str, ...],
    statuses: tuple[str, ...],
    countries: tuple[str, ...],
    industries: tuple[str, ...],
    priorities: tuple[str, ...],
    languages: tuple[str, ...],
    sort_field: str,
    descending: bool,
    include_deleted: bool,
    **extra: Any,
) -> SearchParams:
    filters = None
    if filters_path:
        try:
            filters = FilterGroup.model_validate(load_json(filters_path, param_hint="--filters"))
        except ValidationError as exc:
            raise click.BadParameter(str(exc), param_hint="--filters") from exc
    return SearchParams(
        search_term=term,
        client_types=list(client_types),
        statuses=list(statuses),
        countries=list(countries),
        industries=list(industries),
        priorities=list(priorities),
        languages=list(languages),
        filters=filters,
        sort_field=SortField(sort_field),
        sort_direction=SortDirection.DESC if descending else SortDirection.ASC,
        include_deleted=include_deleted,
        **extra,
    )


@click.command(cls=FwdCommand, examples=_SEARCH_EXAMPLES)
@click.argument("term", required=False)
@search_options
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--page-size", type=click.IntRange(min=1), default=None)
@click.option("--no-facets", is_flag=True, help="Skip facet counts.")
@click.pass_obj
def search(
    app: AppContext,
    term: str | None,
    page: int,
    page_size: int | None,
    no_facets: bool,
    **filters: Any,
) -> None:
    """Search clients by free text, filters, and filter groups."""
    params = build_search_params(
        term=term,
        page=page,
        page_size=page_size,
        include_facets=not no_facets,
        **filters,
    )

    def action() -> ServiceResult:
        results = SearchService(app.store).search(params)
        return ServiceResult(ok=True, op="search", data=results.model_dump(mode="json"))

    app.run("search", action)


@click.command(
    cls=FwdCommand,
    examples="""\
  fwdctl suggest dup
  fwdctl suggest acme --limit 5""",
)
@click.argument("term")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Max suggestions.")
@click.pass_obj
def suggest(app: AppContext, term: str, limit: int | None) -> None:
    """Autocomplete names and emails starting with TERM."""

    def action() -> ServiceResult:
        found = SearchService(app.store).suggestions(term, limit=limit)
        return ServiceResult(ok=True, op="suggest", data={"term": term, "suggestions": found})

    app.run("suggest", action)

