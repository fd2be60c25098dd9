"""Pure client validation rules.

Every rule appends to an :class:`IssueCollector` instead of raising, so a
single pass reports *all* violations of a payload.  Errors block a write;
warnings are informational.  Store-backed uniqueness checks are not here:
the validation service interleaves them with these rules.

Inputs are plain dicts (create/update payloads), never models.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from fwdctl.domain.types import ClientStatus, ContactType, Industry

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-().]{7,20}$")
FR_POSTAL_CODE_RE = re.compile(r"^[0-9]{5}$")
SIRET_RE = re.compile(r"^[0-9]{14}$")
VAT_RE = re.compile(r"^[A-Z]{2}[0-9A-Z]{2,13}$")

NAME_MAX_LENGTH = 50
COMPANY_NAME_MAX_LENGTH = 100
CONTACT_TEXT_MAX_LENGTH = 100

MIN_AGE_WARNING = 16
MAX_AGE = 120
HIGH_CREDIT_LIMIT = 1_000_000
MAX_PAYMENT_TERMS_DAYS = 365

_INDUSTRIES = frozenset(member.value for member in Industry)
_STATUSES = frozenset(member.value for member in ClientStatus)
_CONTACT_TYPES = frozenset(member.value for member in ContactType)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class ValidationIssue(BaseModel):
    """One violated rule, addressed by dotted field path."""

    model_config = {"frozen": True}

    field: str
    message: str
    code: str


class ValidationResult(BaseModel):
    """Outcome of validating a payload.  ``is_valid`` is False iff errors exist."""

    model_config = {"frozen": True}

    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class IssueCollector:
    """Mutable accumulator used while rules run."""

    def __init__(self) -> None:
        self.errors: list[ValidationIssue] = []
        self.warnings: list[ValidationIssue] = []

    def error(self, field: str, message: str, code: str) -> None:
        self.errors.append(ValidationIssue(field=field, message=message, code=code))

    def warning(self, field: str, message: str, code: str) -> None:
        self.warnings.append(ValidationIssue(field=field, message=message, code=code))

    def result(self) -> ValidationResult:
        return ValidationResult(
            is_valid=not self.errors,
            errors=list(self.errors),
            warnings=list(self.warnings),
        )


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _number(value: Any) -> float | None:
    """Numeric value of *value*, or None when it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def parse_birth_date(value: Any) -> date | None:
    """Parse an ISO date or datetime string; None when unparsable."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        return None


def age_on(birth: date, today: date) -> int:
    """Whole years between *birth* and *today* (negative for future dates)."""
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years


# ---------------------------------------------------------------------------
# Contact info
# ---------------------------------------------------------------------------


def check_email(
    contact_info: Mapping[str, Any],
    out: IssueCollector,
    *,
    required: bool = True,
    check_formats: bool = True,
) -> str | None:
    """Check presence and format of ``contact_info.email``.

    Returns the email when it is present (so the caller can run the
    uniqueness lookup next), else None.
    """
    email = contact_info.get("email")
    if _blank(email):
        if required or "email" in contact_info:
            out.error("contact_info.email", "Email address is required", "REQUIRED_FIELD")
        return None
    if check_formats and not EMAIL_RE.match(email):
        out.error("contact_info.email", "Invalid email format", "INVALID_FORMAT")
    return str(email)


def check_phone_and_address(
    contact_info: Mapping[str, Any],
    out: IssueCollector,
    *,
    check_formats: bool = True,
) -> None:
    phone = contact_info.get("phone")
    if phone and check_formats and not PHONE_RE.match(str(phone)):
        out.warning(
            "contact_info.phone",
            "Phone number format may be invalid",
            "PHONE_FORMAT_WARNING",
        )

    address = contact_info.get("address")
    if not address:
        return
    if not isinstance(address, Mapping):
        out.error("contact_info.address", "Address must be an object", "INVALID_VALUE")
        return
    country = address.get("country")
    if _blank(country):
        out.error("contact_info.address.country", "Country is required", "REQUIRED_FIELD")
    postal_code = address.get("postal_code")
    if country == "FR" and postal_code and not FR_POSTAL_CODE_RE.match(str(postal_code)):
        out.warning(
            "contact_info.address.postal_code",
            "French postal code should be 5 digits",
            "POSTAL_CODE_FORMAT",
        )


# ---------------------------------------------------------------------------
# Individual info
# ---------------------------------------------------------------------------


def check_individual_info(
    info: Mapping[str, Any],
    out: IssueCollector,
    *,
    partial: bool = False,
    today: date | None = None,
) -> None:
    """Names required and capped; birth date plausibility.

    With *partial* (updates), only keys present in *info* are checked.
    """
    for key, label in (("first_name", "First name"), ("last_name", "Last name")):
        if partial and key not in info:
            continue
        value = info.get(key)
        if _blank(value):
            out.error(f"individual_info.{key}", f"{label} is required", "REQUIRED_FIELD")
        elif len(value) > NAME_MAX_LENGTH:
            out.error(
                f"individual_info.{key}",
                f"{label} too long (max {NAME_MAX_LENGTH} characters)",
                "MAX_LENGTH",
            )

    raw_birth = info.get("date_of_birth")
    if not raw_birth:
        return
    birth = parse_birth_date(raw_birth)
    if birth is None:
        out.error("individual_info.date_of_birth", "Invalid date format", "INVALID_FORMAT")
        return
    age = age_on(birth, today or date.today())
    if age > MAX_AGE:
        out.error("individual_info.date_of_birth", "Invalid birth date", "INVALID_DATE")
    elif age < MIN_AGE_WARNING:
        out.warning(
            "individual_info.date_of_birth",
            f"Client appears to be under {MIN_AGE_WARNING} years old",
            "AGE_WARNING",
        )


# ---------------------------------------------------------------------------
# Business info
# ---------------------------------------------------------------------------


def check_business_info(
    info: Mapping[str, Any],
    out: IssueCollector,
    *,
    partial: bool = False,
) -> None:
    """Company name, industry, and contacts list rules."""
    if not partial or "company_name" in info:
        company_name = info.get("company_name")
        if _blank(company_name):
            out.error("business_info.company_name", "Company name is required", "REQUIRED_FIELD")
        elif len(company_name) > COMPANY_NAME_MAX_LENGTH:
            out.error(
                "business_info.company_name",
                f"Company name too long (max {COMPANY_NAME_MAX_LENGTH} characters)",
                "MAX_LENGTH",
            )

    if not partial or "industry" in info:
        industry = info.get("industry")
        if not industry:
            out.error("business_info.industry", "Industry is required", "REQUIRED_FIELD")
        elif industry not in _INDUSTRIES:
            out.error("business_info.industry", f"Unknown industry: {industry}", "INVALID_VALUE")

    if partial and "contacts" not in info:
        return
    contacts = info.get("contacts") or []
    if not isinstance(contacts, Sequence) or isinstance(contacts, str):
        out.error("business_info.contacts", "Contacts must be a list", "INVALID_VALUE")
        return
    check_contacts(contacts, out)


def check_contacts(contacts: Sequence[Any], out: IssueCollector) -> None:
    """At least one active contact, exactly one active primary, names required.

    An empty list reports only ``REQUIRED_FIELD``: zero contacts already
    implies zero primaries.  The same holds when no contact is active.
    Inactive contacts flagged primary do not count as the primary.
    """
    if not contacts:
        out.error("business_info.contacts", "At least one contact is required", "REQUIRED_FIELD")
        return

    active = [c for c in contacts if isinstance(c, Mapping) and c.get("is_active", True)]
    primaries = [c for c in active if c.get("is_primary")]
    if not active:
        out.error(
            "business_info.contacts",
            "At least one active contact is required",
            "REQUIRED_FIELD",
        )
    elif not primaries:
        out.error(
            "business_info.contacts",
            "At least one primary contact is required",
            "PRIMARY_CONTACT_REQUIRED",
        )
    elif len(primaries) > 1:
        out.warning(
            "business_info.contacts",
            "Multiple primary contacts found",
            "MULTIPLE_PRIMARY_CONTACTS",
        )

    for index, contact in enumerate(contacts):
        prefix = f"business_info.contacts[{index}]"
        if not isinstance(contact, Mapping):
            out.error(prefix, "Contact must be an object", "INVALID_VALUE")
            continue
        if _blank(contact.get("first_name")):
            out.error(f"{prefix}.first_name", "Contact first name is required", "REQUIRED_FIELD")
        if _blank(contact.get("last_name")):
            out.error(f"{prefix}.last_name", "Contact last name is required", "REQUIRED_FIELD")


def check_siret_format(siret: str, out: IssueCollector) -> None:
    if not SIRET_RE.match(siret):
        out.error("business_info.legal_info.siret", "SIRET must be 14 digits", "INVALID_FORMAT")


def check_vat_number(vat_number: Any, out: IssueCollector) -> None:
    if vat_number and not VAT_RE.match(str(vat_number)):
        out.warning(
            "business_info.legal_info.vat_number",
            "VAT number format may be invalid",
            "VAT_FORMAT_WARNING",
        )


# ---------------------------------------------------------------------------
# Commercial info and status
# ---------------------------------------------------------------------------


def check_commercial_info(info: Mapping[str, Any], out: IssueCollector) -> None:
    if "credit_limit" in info and info["credit_limit"] is not None:
        credit_limit = _number(info["credit_limit"])
        if credit_limit is None:
            out.error(
                "commercial_info.credit_limit", "Credit limit must be a number", "INVALID_VALUE"
            )
        elif credit_limit < 0:
            out.error(
                "commercial_info.credit_limit", "Credit limit cannot be negative", "INVALID_VALUE"
            )
        elif credit_limit > HIGH_CREDIT_LIMIT:
            out.warning(
                "commercial_info.credit_limit", "High credit limit amount", "HIGH_CREDIT_LIMIT"
            )

    if "payment_terms_days" in info and info["payment_terms_days"] is not None:
        days = _number(info["payment_terms_days"])
        if days is None:
            out.error(
                "commercial_info.payment_terms_days",
                "Payment terms must be a number of days",
                "INVALID_VALUE",
            )
        elif days < 0:
            out.error(
                "commercial_info.payment_terms_days",
                "Payment terms cannot be negative",
                "INVALID_VALUE",
            )
        elif days > MAX_PAYMENT_TERMS_DAYS:
            out.warning(
                "commercial_info.payment_terms_days",
                "Payment terms exceed one year",
                "LONG_PAYMENT_TERMS",
            )


def check_status(status: Any, out: IssueCollector) -> None:
    if status not in _STATUSES:
        out.error("status", f"Unknown client status: {status}", "INVALID_VALUE")


# ---------------------------------------------------------------------------
# Single contact person (contact sub-resource)
# ---------------------------------------------------------------------------


def validate_contact_person(contact: Mapping[str, Any]) -> list[ValidationIssue]:
    """Issues for one business contact; empty when the contact is valid."""
    out = IssueCollector()
    for key, label in (("first_name", "First name"), ("last_name", "Last name")):
        value = contact.get(key)
        if _blank(value):
            out.error(key, f"{label} is required", "REQUIRED_FIELD")
        elif len(value) > NAME_MAX_LENGTH:
            out.error(key, f"{label} too long (max {NAME_MAX_LENGTH} characters)", "MAX_LENGTH")

    contact_type = contact.get("contact_type")
    if not contact_type:
        out.error("contact_type", "Contact type is required", "REQUIRED_FIELD")
    elif contact_type not in _CONTACT_TYPES:
        out.error("contact_type", f"Unknown contact type: {contact_type}", "INVALID_VALUE")

    for key, label in (("title", "Title"), ("department", "Department")):
        value = contact.get(key)
        if isinstance(value, str) and len(value) > CONTACT_TEXT_MAX_LENGTH:
            out.error(
                key, f"{label} too long (max {CONTACT_TEXT_MAX_LENGTH} characters)", "MAX_LENGTH"
            )

    info = contact.get("contact_info") or {}
    if isinstance(info, Mapping):
        email = info.get("email")
        if email and not EMAIL_RE.match(str(email)):
            out.error("contact_info.email", "Invalid email format", "INVALID_FORMAT")
        phone = info.get("phone")
        if phone and not PHONE_RE.match(str(phone)):
            out.error("contact_info.phone", "Invalid phone format", "INVALID_FORMAT")
    return out.errors
