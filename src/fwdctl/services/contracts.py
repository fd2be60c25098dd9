"""Typed payload contracts for service boundaries.

Operation parameters and results that are not entities themselves:
validation options, delete parameters/results, batch operations and
their audit record, search parameters/results, and import reports.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from fwdctl.domain.models import ClientSummary
from fwdctl.domain.rules import ValidationIssue
from fwdctl.domain.types import (
    BatchOperationType,
    DeletionType,
    FilterLogic,
    FilterOperator,
    FolderAction,
    FolderPolicy,
    SortDirection,
    SortField,
)

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationOptions(BaseModel):
    """Switches for the store-backed and format rules."""

    model_config = {"frozen": True}

    check_email_uniqueness: bool = True
    check_siret_uniqueness: bool = True
    check_formats: bool = True
    exclude_client_id: str | None = None


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class DeleteClientParams(BaseModel):
    model_config = {"frozen": True}

    client_id: str
    deletion_type: DeletionType = DeletionType.SOFT
    reason: str | None = None
    force: bool = False
    handle_folders: FolderPolicy = FolderPolicy.KEEP
    transfer_to_client_id: str | None = None
    deleted_by: str | None = None


class FolderActionRecord(BaseModel):
    """What happened to one folder during a client delete."""

    model_config = {"frozen": True}

    folder_id: str
    action: FolderAction
    target_client_id: str | None = None


class DeleteClientResult(BaseModel):
    """Audit trail of a client delete: one entry per affected folder."""

    model_config = {"frozen": True}

    success: bool
    client_id: str
    deletion_type: DeletionType
    affected_folders_count: int
    folder_actions: list[FolderActionRecord] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    deleted_at: str


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


class BatchOperationData(BaseModel):
    """Operation-specific payload.  Which key is required depends on the operation."""

    model_config = {"frozen": True}

    updates: dict[str, Any] | None = None
    new_status: str | None = None
    tags: list[str] | None = None


class BatchOperation(BaseModel):
    model_config = {"frozen": True}

    operation: BatchOperationType
    client_ids: list[str]
    data: BatchOperationData = Field(default_factory=BatchOperationData)
    force: bool = False


class BatchItemError(BaseModel):
    model_config = {"frozen": True}

    client_id: str
    error: str
    error_code: str


class BatchItemWarning(BaseModel):
    model_config = {"frozen": True}

    client_id: str
    warning: str
    warning_code: str


class BatchOperationResult(BaseModel):
    """Immutable audit record of a batch run.

    ``success_ids`` holds no duplicates and is a subset of the requested ids.
    """

    model_config = {"frozen": True}

    operation: BatchOperationType
    total_requested: int
    success_count: int
    error_count: int
    warning_count: int
    success_ids: list[str] = Field(default_factory=list)
    errors: list[BatchItemError] = Field(default_factory=list)
    warnings: list[BatchItemWarning] = Field(default_factory=list)
    executed: bool
    execution_time_ms: float


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class FilterCondition(BaseModel):
    model_config = {"frozen": True}

    field: str
    operator: FilterOperator
    value: Any = None


class FilterGroup(BaseModel):
    """A boolean group of conditions and nested groups."""

    model_config = {"frozen": True}

    logic: FilterLogic = FilterLogic.AND
    filters: list[FilterCondition] = Field(default_factory=list)
    groups: list[FilterGroup] = Field(default_factory=list)
    # None inherits the enclosing group's setting; the root group defaults to False.
    case_sensitive: bool | None = None


class SearchParams(BaseModel):
    model_config = {"frozen": True}

    search_term: str | None = None
    client_types: list[str] = Field(default_factory=list)
    statuses: list[str] = Field(default_factory=list)
    countries: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)
    priorities: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    filters: FilterGroup | None = None
    sort_field: SortField = SortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC
    page: int = Field(default=1, ge=1)
    # None means the configured default page size.
    page_size: int | None = Field(default=None, ge=1)
    include_deleted: bool = False
    include_facets: bool = True


class SearchFacets(BaseModel):
    model_config = {"frozen": True}

    client_types: dict[str, int] = Field(default_factory=dict)
    statuses: dict[str, int] = Field(default_factory=dict)
    countries: dict[str, int] = Field(default_factory=dict)
    industries: dict[str, int] = Field(default_factory=dict)


class SearchResults(BaseModel):
    model_config = {"frozen": True}

    clients: list[ClientSummary]
    total_count: int
    current_page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool
    facets: SearchFacets | None = None


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


class ImportRowError(BaseModel):
    model_config = {"frozen": True}

    row: int
    errors: list[ValidationIssue] = Field(default_factory=list)
    message: str | None = None


class ImportResult(BaseModel):
    model_config = {"frozen": True}

    total_rows: int
    imported_count: int
    error_count: int
    imported_ids: list[str] = Field(default_factory=list)
    errors: list[ImportRowError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
