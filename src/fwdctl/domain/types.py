"""Client, contact, and folder classification enums.

Values match the strings persisted in the ``clients`` and ``folders``
tables, so every enum is a :class:`StrEnum`.
"""

from __future__ import annotations

from enum import StrEnum


class ClientType(StrEnum):
    """Discriminator of the client union."""

    INDIVIDUAL = "individual"
    BUSINESS = "business"


class ClientStatus(StrEnum):
    """Lifecycle status of a client record."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"


class FolderStatus(StrEnum):
    """Shipment folder status (only used by the delete policy here)."""

    DRAFT = "draft"
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


class ContactType(StrEnum):
    PRIMARY = "primary"
    BILLING = "billing"
    DELIVERY = "delivery"
    TECHNICAL = "technical"
    EMERGENCY = "emergency"
    LEGAL = "legal"
    OTHER = "other"


class Industry(StrEnum):
    """Business sectors for business clients."""

    AGRICULTURE = "agriculture"
    AUTOMOTIVE = "automotive"
    BANKING = "banking"
    CONSTRUCTION = "construction"
    CONSULTING = "consulting"
    EDUCATION = "education"
    ENERGY = "energy"
    FINANCE = "finance"
    FOOD_BEVERAGE = "food_beverage"
    HEALTHCARE = "healthcare"
    HOSPITALITY = "hospitality"
    INFORMATION_TECHNOLOGY = "information_technology"
    INSURANCE = "insurance"
    LOGISTICS = "logistics"
    MANUFACTURING = "manufacturing"
    MEDIA = "media"
    MINING = "mining"
    PHARMACEUTICAL = "pharmaceutical"
    REAL_ESTATE = "real_estate"
    RETAIL = "retail"
    TELECOMMUNICATIONS = "telecommunications"
    TEXTILES = "textiles"
    TRANSPORTATION = "transportation"
    UTILITIES = "utilities"
    OTHER = "other"


class PaymentMethod(StrEnum):
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    ELECTRONIC_PAYMENT = "electronic_payment"
    CRYPTOCURRENCY = "cryptocurrency"
    OTHER = "other"


class PaymentTerms(StrEnum):
    IMMEDIATE = "immediate"
    NET_15 = "net_15"
    NET_30 = "net_30"
    NET_45 = "net_45"
    NET_60 = "net_60"
    NET_90 = "net_90"
    CUSTOM = "custom"


class CurrencyCode(StrEnum):
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"


class LanguageCode(StrEnum):
    FR = "fr"
    EN = "en"
    ES = "es"
    DE = "de"
    IT = "it"
    NL = "nl"
    AR = "ar"


class ClientPriority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# --- Operation enums ---


class DeletionType(StrEnum):
    SOFT = "soft"
    HARD = "hard"


class FolderPolicy(StrEnum):
    """What happens to a deleted client's folders."""

    KEEP = "keep"
    ARCHIVE = "archive"
    TRANSFER = "transfer"


class FolderAction(StrEnum):
    """Per-folder outcome recorded in a delete result."""

    KEPT = "kept"
    ARCHIVED = "archived"
    TRANSFERRED = "transferred"


class BatchOperationType(StrEnum):
    UPDATE = "update"
    DELETE = "delete"
    CHANGE_STATUS = "change_status"
    ADD_TAGS = "add_tags"
    REMOVE_TAGS = "remove_tags"


class FilterOperator(StrEnum):
    """Operators accepted in a search filter group."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    IN = "in"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


class FilterLogic(StrEnum):
    AND = "AND"
    OR = "OR"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class SortField(StrEnum):
    """Logical sort keys exposed to callers."""

    DISPLAY_NAME = "display_name"
    EMAIL = "email"
    CLIENT_TYPE = "client_type"
    STATUS = "status"
    COUNTRY = "country"
    CITY = "city"
    CREDIT_LIMIT = "credit_limit"
    PAYMENT_TERMS_DAYS = "payment_terms_days"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
