"""InterchangeService — JSON export and bulk import of client records.

Export walks every page of a search predicate and returns full client
documents.  Import validates each row with the create rules and creates
the valid ones; rows are numbered from 1 in the report.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from fwdctl.domain.models import parse_client
from fwdctl.domain.rules import ValidationIssue
from fwdctl.errors import FwdError
from fwdctl.services.base import BaseService
from fwdctl.services.clients import ClientService
from fwdctl.services.contracts import ImportResult, ImportRowError, SearchParams
from fwdctl.services.search import build_predicate, order_clause
from fwdctl.services.telemetry import trace_span, traced
from fwdctl.services.validation import ValidationService

if TYPE_CHECKING:
    from fwdctl.infrastructure.store import Store

logger = logging.getLogger(__name__)


def _row_email(record: Mapping[str, Any]) -> str | None:
    contact_info = record.get("contact_info")
    if not isinstance(contact_info, Mapping):
        return None
    email = contact_info.get("email")
    if not isinstance(email, str) or not email.strip():
        return None
    return email.strip().casefold()


class InterchangeService(BaseService):
    """Moves client records in and out of the store as plain dicts."""

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._clients = ClientService(store)
        self._validation = ValidationService(store)

    @traced
    def export_clients(self, params: SearchParams | None = None) -> list[dict[str, Any]]:
        """Every client matching *params*, across all pages, as JSON-ready dicts."""
        params = params or SearchParams()
        where = build_predicate(params)
        order = order_clause(params)
        chunk = self.settings.search.max_page_size

        exported: list[dict[str, Any]] = []
        offset = 0
        while True:
            records = self._store.clients.select_records(
                where, order_by=[order], offset=offset, limit=chunk
            )
            exported.extend(parse_client(r).model_dump(mode="json") for r in records)
            if len(records) < chunk:
                break
            offset += chunk
        logger.info("Exported %d clients", len(exported))
        return exported

    @traced
    def import_clients(
        self,
        records: Sequence[Any],
        created_by: str | None = None,
        *,
        skip_invalid: bool = True,
    ) -> ImportResult:
        """Validate and create each record.

        With ``skip_invalid`` (the default) invalid rows are reported and
        the rest are imported.  Without it every row is validated first
        and any invalid row aborts the import before a single write.
        Emails repeated inside the file count as duplicates.
        """
        errors: list[ImportRowError] = []
        warnings: list[str] = []
        imported: list[str] = []
        seen_emails: set[str] = set()

        if not skip_invalid:
            with trace_span("validate_all"):
                for row, record in enumerate(records, start=1):
                    row_error = self._check_row(row, record, seen_emails, warnings)
                    if row_error is not None:
                        errors.append(row_error)
            if errors:
                logger.warning("Import aborted: %d invalid rows", len(errors))
                return ImportResult(
                    total_rows=len(records),
                    imported_count=0,
                    error_count=len(errors),
                    errors=errors,
                    warnings=warnings,
                )
            seen_emails = set()
            warnings = []

        for row, record in enumerate(records, start=1):
            row_error = self._check_row(row, record, seen_emails, warnings)
            if row_error is not None:
                errors.append(row_error)
                continue
            try:
                client = self._clients.create(record, created_by=created_by)
            except FwdError as exc:
                logger.warning("Import row %d failed: %s", row, exc)
                errors.append(ImportRowError(row=row, message=exc.message))
                continue
            imported.append(client.id)

        logger.info("Imported %d of %d rows", len(imported), len(records))
        return ImportResult(
            total_rows=len(records),
            imported_count=len(imported),
            error_count=len(errors),
            imported_ids=imported,
            errors=errors,
            warnings=warnings,
        )

    def _check_row(
        self,
        row: int,
        record: Any,
        seen_emails: set[str],
        warnings: list[str],
    ) -> ImportRowError | None:
        if not isinstance(record, Mapping):
            return ImportRowError(row=row, message="Row is not a JSON object")

        validation = self._validation.validate_create(record)
        issues = list(validation.errors)
        email = _row_email(record)
        if email is not None:
            already_flagged = any(i.code == "DUPLICATE_EMAIL" for i in issues)
            if email in seen_emails and not already_flagged:
                issues.append(
                    ValidationIssue(
                        field="contact_info.email",
                        message="Email address appears earlier in the import",
                        code="DUPLICATE_EMAIL",
                    )
                )
            seen_emails.add(email)
        warnings.extend(f"Row {row}: {w.message}" for w in validation.warnings)

        if issues:
            return ImportRowError(row=row, errors=issues, message="Validation failed")
        return None
