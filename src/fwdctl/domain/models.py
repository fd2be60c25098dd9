"""Client and folder models.

A client is a tagged union on ``client_type``: :class:`IndividualClient`
carries ``individual_info``, :class:`BusinessClient` carries
``business_info`` with its ordered list of :class:`ContactPerson`.

Models describe *persisted* records and are frozen.  Incoming create and
update payloads stay plain dicts until the validation engine has
reported on them (a missing first name must become a ``REQUIRED_FIELD``
issue, not a pydantic exception).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from fwdctl.domain.types import (
    ClientPriority,
    ClientStatus,
    ContactType,
    CurrencyCode,
    Industry,
    LanguageCode,
    PaymentMethod,
    PaymentTerms,
    RiskLevel,
)

# Country shown for clients with no address country, in rows and in facets.
UNKNOWN_COUNTRY = "OTHER"

# ---------------------------------------------------------------------------
# Contact and commercial sub-records
# ---------------------------------------------------------------------------


class Address(BaseModel):
    model_config = {"frozen": True}

    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    postal_code: str | None = None
    state_province: str | None = None
    country: str | None = None


class ContactInfo(BaseModel):
    """Primary contact channels of a client."""

    model_config = {"frozen": True}

    email: str
    phone: str | None = None
    mobile_phone: str | None = None
    fax: str | None = None
    website: str | None = None
    address: Address | None = None


class PersonContactInfo(BaseModel):
    """Contact channels of a business contact person (all optional)."""

    model_config = {"frozen": True}

    email: str | None = None
    phone: str | None = None
    mobile_phone: str | None = None


class CommercialInfo(BaseModel):
    """Commercial terms.  Field defaults are the defaults applied at creation."""

    model_config = {"frozen": True}

    credit_limit: float = 0
    credit_limit_currency: CurrencyCode = CurrencyCode.EUR
    payment_terms_days: int = 30
    payment_terms: PaymentTerms = PaymentTerms.NET_30
    payment_methods: list[PaymentMethod] = Field(
        default_factory=lambda: [PaymentMethod.BANK_TRANSFER]
    )
    preferred_language: LanguageCode = LanguageCode.FR
    priority: ClientPriority = ClientPriority.NORMAL
    risk_level: RiskLevel = RiskLevel.LOW


class CommercialHistory(BaseModel):
    model_config = {"frozen": True}

    total_orders_amount: float = 0
    total_orders_count: int = 0
    last_order_amount: float | None = None
    last_order_date: str | None = None
    current_balance: float = 0
    average_payment_delay_days: float = 0


# ---------------------------------------------------------------------------
# Variant-specific info
# ---------------------------------------------------------------------------


class IndividualInfo(BaseModel):
    model_config = {"frozen": True}

    first_name: str
    last_name: str
    date_of_birth: str | None = None
    personal_id: str | None = None
    personal_id_type: str | None = None
    title: str | None = None
    gender: str | None = None
    profession: str | None = None


class ContactPerson(BaseModel):
    """A named contact inside a business client."""

    model_config = {"frozen": True}

    first_name: str
    last_name: str
    title: str | None = None
    department: str | None = None
    contact_type: ContactType = ContactType.OTHER
    contact_info: PersonContactInfo | None = None
    is_primary: bool = False
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class LegalInfo(BaseModel):
    model_config = {"frozen": True}

    siret: str | None = None
    vat_number: str | None = None
    legal_form: str | None = None


class BusinessInfo(BaseModel):
    model_config = {"frozen": True}

    company_name: str
    industry: Industry
    legal_info: LegalInfo = Field(default_factory=LegalInfo)
    contacts: list[ContactPerson] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Client union
# ---------------------------------------------------------------------------


class ClientBase(BaseModel):
    """Fields shared by both client variants."""

    model_config = {"frozen": True}

    id: str
    status: ClientStatus = ClientStatus.ACTIVE
    contact_info: ContactInfo
    commercial_info: CommercialInfo = Field(default_factory=CommercialInfo)
    commercial_history: CommercialHistory = Field(default_factory=CommercialHistory)
    tags: list[str] = Field(default_factory=list)
    internal_notes: str | None = None
    client_notes: str | None = None
    created_by: str | None = None
    created_at: str
    updated_at: str
    deleted_at: str | None = None
    deleted_by: str | None = None
    deletion_reason: str | None = None
    version: int = 1

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class IndividualClient(ClientBase):
    client_type: Literal["individual"] = "individual"
    individual_info: IndividualInfo


class BusinessClient(ClientBase):
    client_type: Literal["business"] = "business"
    business_info: BusinessInfo


Client = Annotated[IndividualClient | BusinessClient, Field(discriminator="client_type")]

_CLIENT_ADAPTER: TypeAdapter[IndividualClient | BusinessClient] = TypeAdapter(Client)


def parse_client(document: dict[str, Any]) -> IndividualClient | BusinessClient:
    """Build the right client variant from a stored document."""
    return _CLIENT_ADAPTER.validate_python(document)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class ClientSummary(BaseModel):
    """Flattened row used by listings and search results."""

    model_config = {"frozen": True}

    id: str
    client_type: str
    status: str
    display_name: str
    email: str
    phone: str | None = None
    city: str | None = None
    country: str
    credit_limit: float
    credit_limit_currency: str
    tags: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class DisplayInfo(BaseModel):
    model_config = {"frozen": True}

    display_name: str
    contact_name: str
    type_label_fr: str
    type_label_en: str
    type_label_es: str


class ClientDetail(BaseModel):
    model_config = {"frozen": True}

    client: IndividualClient | BusinessClient
    display_info: DisplayInfo
    total_folders: int
    active_folders: int
    last_activity_date: str
    can_modify: bool
    can_delete: bool


class ClientStatistics(BaseModel):
    model_config = {"frozen": True}

    client_id: str
    total_folders: int
    folders_by_status: dict[str, int]
    total_revenue: float
    revenue_currency: str
    average_payment_delay: float
    calculated_at: str
    period_start: str
    period_end: str


class ClientPage(BaseModel):
    model_config = {"frozen": True}

    clients: list[ClientSummary]
    total: int
    page: int
    page_size: int
    total_pages: int


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

_TYPE_LABELS: dict[str, tuple[str, str, str]] = {
    "individual": ("Particulier", "Individual", "Particular"),
    "business": ("Entreprise", "Business", "Empresa"),
}


def display_name(client: IndividualClient | BusinessClient) -> str:
    """Person name for individuals, company name for businesses."""
    if isinstance(client, IndividualClient):
        info = client.individual_info
        return f"{info.first_name} {info.last_name}".strip()
    return client.business_info.company_name


def contact_name(client: IndividualClient | BusinessClient) -> str:
    """Name of the person to reach: the active primary contact for businesses."""
    if isinstance(client, IndividualClient):
        return display_name(client)
    for contact in client.business_info.contacts:
        if contact.is_primary and contact.is_active:
            if contact.title:
                return f"{contact.full_name} ({contact.title})"
            return contact.full_name
    return client.business_info.company_name


def build_display_info(client: IndividualClient | BusinessClient) -> DisplayInfo:
    fr, en, es = _TYPE_LABELS[client.client_type]
    return DisplayInfo(
        display_name=display_name(client),
        contact_name=contact_name(client),
        type_label_fr=fr,
        type_label_en=en,
        type_label_es=es,
    )


def to_summary(client: IndividualClient | BusinessClient) -> ClientSummary:
    address = client.contact_info.address
    return ClientSummary(
        id=client.id,
        client_type=client.client_type,
        status=client.status,
        display_name=display_name(client),
        email=client.contact_info.email,
        phone=client.contact_info.phone,
        city=address.city if address else None,
        country=(address.country if address and address.country else UNKNOWN_COUNTRY),
        credit_limit=client.commercial_info.credit_limit,
        credit_limit_currency=client.commercial_info.credit_limit_currency,
        tags=list(client.tags),
        created_at=client.created_at,
        updated_at=client.updated_at,
    )
