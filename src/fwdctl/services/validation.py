"""ValidationService — create/update payload validation.

Runs every rule from :mod:`fwdctl.domain.rules` over a raw payload and
interleaves the two store-backed uniqueness checks (email, SIRET).
Rule violations come back as data in a :class:`ValidationResult`; the
only exception that escapes is :class:`~fwdctl.errors.StoreError` from a
failing uniqueness lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

from fwdctl.domain.rules import (
    IssueCollector,
    ValidationResult,
    check_business_info,
    check_commercial_info,
    check_email,
    check_individual_info,
    check_phone_and_address,
    check_siret_format,
    check_status,
    check_vat_number,
)
from fwdctl.domain.types import ClientType
from fwdctl.services.base import BaseService
from fwdctl.services.contracts import ValidationOptions
from fwdctl.services.telemetry import traced

logger = logging.getLogger(__name__)


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = data.get(key)
    return value if isinstance(value, Mapping) else None


class ValidationService(BaseService):
    """Validates client payloads before they reach the record service."""

    @traced
    def validate_create(
        self,
        data: Mapping[str, Any],
        options: ValidationOptions | None = None,
        *,
        today: date | None = None,
    ) -> ValidationResult:
        """Validate a full create payload.  All rules run; nothing short-circuits."""
        options = options or ValidationOptions()
        out = IssueCollector()

        self._check_contact_info(_section(data, "contact_info") or {}, out, options, required=True)

        client_type = data.get("client_type")
        if not client_type:
            out.error("client_type", "Client type is required", "REQUIRED_FIELD")
        elif client_type == ClientType.INDIVIDUAL:
            check_individual_info(_section(data, "individual_info") or {}, out, today=today)
        elif client_type == ClientType.BUSINESS:
            business = _section(data, "business_info") or {}
            self._check_business(business, out, options, partial=False)
        else:
            out.error("client_type", f"Unknown client type: {client_type}", "INVALID_VALUE")

        commercial = _section(data, "commercial_info")
        if commercial is not None:
            check_commercial_info(commercial, out)
        if "status" in data:
            check_status(data["status"], out)

        result = out.result()
        logger.debug(
            "validate_create: %d errors, %d warnings", len(result.errors), len(result.warnings)
        )
        return result

    @traced
    def validate_update(
        self,
        client_id: str,
        data: Mapping[str, Any],
        options: ValidationOptions | None = None,
        *,
        today: date | None = None,
    ) -> ValidationResult:
        """Validate a partial update: only the sections present are checked.

        Uniqueness lookups exclude *client_id* itself.
        """
        options = options or ValidationOptions()
        if options.exclude_client_id is None:
            options = options.model_copy(update={"exclude_client_id": client_id})
        out = IssueCollector()

        contact_info = _section(data, "contact_info")
        if contact_info is not None:
            self._check_contact_info(contact_info, out, options, required=False)

        individual = _section(data, "individual_info")
        if individual is not None:
            check_individual_info(individual, out, partial=True, today=today)

        business = _section(data, "business_info")
        if business is not None:
            self._check_business(business, out, options, partial=True)

        commercial = _section(data, "commercial_info")
        if commercial is not None:
            check_commercial_info(commercial, out)
        if "status" in data:
            check_status(data["status"], out)

        return out.result()

    # ------------------------------------------------------------------
    # Store-backed sections
    # ------------------------------------------------------------------

    def _check_contact_info(
        self,
        contact_info: Mapping[str, Any],
        out: IssueCollector,
        options: ValidationOptions,
        *,
        required: bool,
    ) -> None:
        email = check_email(
            contact_info, out, required=required, check_formats=options.check_formats
        )
        if email and options.check_email_uniqueness:
            if self._store.clients.email_taken(email, exclude_id=options.exclude_client_id):
                out.error("contact_info.email", "Email address already exists", "DUPLICATE_EMAIL")
        check_phone_and_address(contact_info, out, check_formats=options.check_formats)

    def _check_business(
        self,
        info: Mapping[str, Any],
        out: IssueCollector,
        options: ValidationOptions,
        *,
        partial: bool,
    ) -> None:
        check_business_info(info, out, partial=partial)

        legal_info = _section(info, "legal_info")
        if legal_info is None:
            return
        siret = legal_info.get("siret")
        if siret:
            siret = str(siret)
            if options.check_formats:
                check_siret_format(siret, out)
            if options.check_siret_uniqueness and self._store.clients.siret_taken(
                siret, exclude_id=options.exclude_client_id
            ):
                out.error(
                    "business_info.legal_info.siret", "SIRET already exists", "DUPLICATE_SIRET"
                )
        if options.check_formats:
            check_vat_number(legal_info.get("vat_number"), out)
