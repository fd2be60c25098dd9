"""SearchService — filtered, sorted, paginated client search with facets.

One predicate is built per request from the list filters, the free-text
term, and an optional :class:`FilterGroup`.  The page, the total count,
and the facets all run over that same predicate, so facet counts always
describe the corpus the page was cut from.

Sorting by ``display_name`` orders by the stored display-name column and
then re-sorts the fetched page in memory.  The in-memory order is only
guaranteed within one page.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy import ColumnElement, and_, false, func, or_, select, true

from fwdctl.domain.models import UNKNOWN_COUNTRY, parse_client, to_summary
from fwdctl.domain.types import ClientType, FilterLogic, FilterOperator, SortDirection, SortField
from fwdctl.errors import InvalidOperationError
from fwdctl.infrastructure.database.schema import client_tags, clients
from fwdctl.services.base import BaseService
from fwdctl.services.contracts import (
    FilterCondition,
    FilterGroup,
    SearchFacets,
    SearchParams,
    SearchResults,
)
from fwdctl.services.telemetry import trace_span, traced

# Free-text search runs over these columns plus the tag table.
_TEXT_COLUMNS = (
    clients.c.first_name,
    clients.c.last_name,
    clients.c.display_name,
    clients.c.company_name,
    clients.c.email,
    clients.c.internal_notes,
)

_SORT_COLUMNS: dict[SortField, Any] = {
    SortField.DISPLAY_NAME: clients.c.display_name,
    SortField.EMAIL: clients.c.email,
    SortField.CLIENT_TYPE: clients.c.client_type,
    SortField.STATUS: clients.c.status,
    SortField.COUNTRY: clients.c.country,
    SortField.CITY: clients.c.city,
    SortField.CREDIT_LIMIT: clients.c.credit_limit,
    SortField.PAYMENT_TERMS_DAYS: clients.c.payment_terms_days,
    SortField.CREATED_AT: clients.c.created_at,
    SortField.UPDATED_AT: clients.c.updated_at,
}

TAGS_FIELD = "tags"

FILTER_FIELDS: dict[str, Any] = {
    **{field.value: column for field, column in _SORT_COLUMNS.items()},
    "industry": clients.c.industry,
    "priority": clients.c.priority,
    "language": clients.c.language,
    "company_name": clients.c.company_name,
    "first_name": clients.c.first_name,
    "last_name": clients.c.last_name,
}


# ---------------------------------------------------------------------------
# Operator builders
# ---------------------------------------------------------------------------


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _require_value(operator: FilterOperator, value: Any) -> Any:
    if value is None:
        raise InvalidOperationError(f"Operator '{operator.value}' requires a value")
    return value


def _equals(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    value = _require_value(FilterOperator.EQUALS, value)
    if isinstance(value, str) and not case_sensitive:
        return func.casefold(column) == value.casefold()
    return column == value


def _not_equals(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    value = _require_value(FilterOperator.NOT_EQUALS, value)
    if isinstance(value, str) and not case_sensitive:
        return func.casefold(column) != value.casefold()
    return column != value


def _contains(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    text = str(_require_value(FilterOperator.CONTAINS, value))
    if case_sensitive:
        # SQLite LIKE ignores ASCII case, instr() does not.
        return func.instr(column, text) > 0
    return func.casefold(column).like(f"%{_escape_like(text.casefold())}%", escape="\\")


def _starts_with(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    text = str(_require_value(FilterOperator.STARTS_WITH, value))
    if case_sensitive:
        return func.substr(column, 1, len(text)) == text
    return func.casefold(column).like(f"{_escape_like(text.casefold())}%", escape="\\")


def _in(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    values = list(value) if isinstance(value, list | tuple | set) else [value]
    values = [v for v in values if v is not None]
    if not values:
        return false()
    if not case_sensitive and all(isinstance(v, str) for v in values):
        return func.casefold(column).in_([v.casefold() for v in values])
    return column.in_(values)


def _greater_than(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    return column > _require_value(FilterOperator.GREATER_THAN, value)


def _less_than(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    return column < _require_value(FilterOperator.LESS_THAN, value)


def _is_null(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    return column.is_(None)


def _is_not_null(column: Any, value: Any, case_sensitive: bool) -> ColumnElement[bool]:
    return column.is_not(None)


OperatorBuilder = Callable[[Any, Any, bool], ColumnElement[bool]]

OPERATORS: dict[FilterOperator, OperatorBuilder] = {
    FilterOperator.EQUALS: _equals,
    FilterOperator.NOT_EQUALS: _not_equals,
    FilterOperator.CONTAINS: _contains,
    FilterOperator.STARTS_WITH: _starts_with,
    FilterOperator.IN: _in,
    FilterOperator.GREATER_THAN: _greater_than,
    FilterOperator.LESS_THAN: _less_than,
    FilterOperator.IS_NULL: _is_null,
    FilterOperator.IS_NOT_NULL: _is_not_null,
}

_missing = set(FilterOperator) - OPERATORS.keys()
if _missing:  # pragma: no cover
    raise RuntimeError(f"Filter operators without a builder: {sorted(_missing)}")


def _tagged(tag_condition: ColumnElement[bool] | None = None) -> ColumnElement[bool]:
    """Clients holding at least one tag matching *tag_condition* (any tag when None)."""
    subquery = select(client_tags.c.client_id)
    if tag_condition is not None:
        subquery = subquery.where(tag_condition)
    return clients.c.id.in_(subquery)


def build_condition(condition: FilterCondition, *, case_sensitive: bool) -> ColumnElement[bool]:
    """Translate one field/operator/value triple into a SQL expression.

    Raises:
        InvalidOperationError: unknown field, missing value, or an ordering
            operator applied to tags.
    """
    operator = condition.operator
    builder = OPERATORS[operator]

    if condition.field == TAGS_FIELD:
        tag = client_tags.c.tag
        if operator == FilterOperator.IS_NULL:
            return ~_tagged()
        if operator == FilterOperator.IS_NOT_NULL:
            return _tagged()
        if operator == FilterOperator.NOT_EQUALS:
            return ~_tagged(_equals(tag, condition.value, case_sensitive))
        if operator in (FilterOperator.GREATER_THAN, FilterOperator.LESS_THAN):
            raise InvalidOperationError(f"Operator '{operator.value}' does not apply to tags")
        return _tagged(builder(tag, condition.value, case_sensitive))

    column = FILTER_FIELDS.get(condition.field)
    if column is None:
        raise InvalidOperationError(
            f"Unknown filter field: {condition.field}",
            detail={"field": condition.field, "allowed": sorted([*FILTER_FIELDS, TAGS_FIELD])},
        )
    return builder(column, condition.value, case_sensitive)


def build_group(group: FilterGroup, *, case_sensitive: bool = False) -> ColumnElement[bool]:
    """Combine a group's conditions and nested groups with its logic.

    Nested groups inherit ``case_sensitive`` only when they do not set it
    themselves.  An empty group matches everything.
    """
    sensitive = case_sensitive if group.case_sensitive is None else group.case_sensitive
    parts = [build_condition(c, case_sensitive=sensitive) for c in group.filters]
    parts.extend(build_group(g, case_sensitive=sensitive) for g in group.groups)
    if not parts:
        return true()
    if group.logic == FilterLogic.OR:
        return or_(*parts)
    return and_(*parts)


def _text_match(term: str) -> ColumnElement[bool]:
    pattern = f"%{_escape_like(term.casefold())}%"
    matches = [
        func.casefold(func.coalesce(column, "")).like(pattern, escape="\\")
        for column in _TEXT_COLUMNS
    ]
    matches.append(_tagged(func.casefold(client_tags.c.tag).like(pattern, escape="\\")))
    return or_(*matches)


def build_predicate(params: SearchParams) -> ColumnElement[bool]:
    """The single WHERE clause shared by the page, the count, and the facets."""
    conditions: list[ColumnElement[bool]] = []
    if not params.include_deleted:
        conditions.append(clients.c.deleted_at.is_(None))
    if params.client_types:
        conditions.append(clients.c.client_type.in_(params.client_types))
    if params.statuses:
        conditions.append(clients.c.status.in_(params.statuses))
    if params.countries:
        conditions.append(clients.c.country.in_(params.countries))
    if params.priorities:
        conditions.append(clients.c.priority.in_(params.priorities))
    if params.languages:
        conditions.append(clients.c.language.in_(params.languages))
    if params.industries:
        conditions.append(clients.c.client_type == ClientType.BUSINESS.value)
        conditions.append(clients.c.industry.in_(params.industries))

    term = (params.search_term or "").strip()
    if term:
        conditions.append(_text_match(term))
    if params.filters is not None:
        conditions.append(build_group(params.filters))
    return and_(true(), *conditions)


def order_clause(params: SearchParams) -> Any:
    column = _SORT_COLUMNS[params.sort_field]
    if params.sort_direction == SortDirection.DESC:
        return column.desc()
    return column.asc()


def tally_facets(rows: Sequence[dict[str, Any]]) -> SearchFacets:
    types: Counter[str] = Counter()
    statuses: Counter[str] = Counter()
    countries: Counter[str] = Counter()
    industries: Counter[str] = Counter()
    for row in rows:
        types[row["client_type"]] += 1
        statuses[row["status"]] += 1
        countries[row["country"] or UNKNOWN_COUNTRY] += 1
        if row["client_type"] == ClientType.BUSINESS and row["industry"]:
            industries[row["industry"]] += 1
    return SearchFacets(
        client_types=dict(types),
        statuses=dict(statuses),
        countries=dict(countries),
        industries=dict(industries),
    )


class SearchService(BaseService):
    """Faceted search and name autocomplete over client records."""

    @traced
    def search(self, params: SearchParams) -> SearchResults:
        """Run *params* and return one page plus facets.

        Raises:
            InvalidOperationError: page size above the configured maximum,
                or a bad filter group.
            StoreError: a query failed.
        """
        size = self._page_size(params.page_size)
        where = build_predicate(params)

        descending = params.sort_direction == SortDirection.DESC
        order = order_clause(params)

        repo = self._store.clients
        with trace_span("page_query"):
            total = repo.count(where)
            records = repo.select_records(
                where, order_by=[order], offset=(params.page - 1) * size, limit=size
            )

        summaries = [to_summary(parse_client(record)) for record in records]
        if params.sort_field == SortField.DISPLAY_NAME:
            summaries.sort(key=lambda s: s.display_name.casefold(), reverse=descending)

        facets = None
        if params.include_facets:
            with trace_span("facets"):
                facets = tally_facets(repo.facet_rows(where))

        total_pages = math.ceil(total / size)
        return SearchResults(
            clients=summaries,
            total_count=total,
            current_page=params.page,
            page_size=size,
            total_pages=total_pages,
            has_next_page=params.page < total_pages,
            has_previous_page=params.page > 1,
            facets=facets,
        )

    @traced
    def suggestions(self, term: str, limit: int | None = None) -> list[str]:
        """Distinct autocomplete strings for names and emails starting with *term*.

        Individuals also contribute their full name.
        """
        term = term.strip()
        limit = limit or self.settings.search.suggestion_limit
        if not term:
            return []
        prefix = term.casefold()

        seen: dict[str, None] = {}
        for row in self._store.clients.name_rows(term, limit=limit):
            if row["client_type"] == ClientType.INDIVIDUAL:
                first, last = row["first_name"] or "", row["last_name"] or ""
                for name in (first, last):
                    if name.casefold().startswith(prefix):
                        seen.setdefault(name, None)
                full = f"{first} {last}".strip()
                if full:
                    seen.setdefault(full, None)
            company = row["company_name"]
            if company and company.casefold().startswith(prefix):
                seen.setdefault(company, None)
            if row["email"] and row["email"].casefold().startswith(prefix):
                seen.setdefault(row["email"], None)
        return list(seen)[:limit]

    def _page_size(self, requested: int | None) -> int:
        config = self.settings.search
        size = requested or config.default_page_size
        if size > config.max_page_size:
            raise InvalidOperationError(
                f"Page size cannot exceed {config.max_page_size}",
                detail={"page_size": size, "max_page_size": config.max_page_size},
            )
        return size
