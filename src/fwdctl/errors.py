"""Exception hierarchy for failures the caller cannot recover from locally.

Business-rule violations are never raised: they travel as data in
``ValidationResult`` / ``BatchOperationResult``.  What is raised here is
infrastructure failure, malformed operation arguments, and single-record
writes that cannot proceed.  Every exception carries a stable ``code`` so
adapters (CLI, batch engine) can report it without parsing messages.
"""

from __future__ import annotations

from typing import Any


class FwdError(Exception):
    """Base class for all fwdctl errors."""

    code = "ERROR"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class StoreError(FwdError):
    """The persistence layer failed (connectivity, constraint, driver error)."""

    code = "STORE_ERROR"


class InvalidOperationError(FwdError):
    """Operation arguments are missing or malformed."""

    code = "INVALID_OPERATION"


class ClientNotFoundError(FwdError):
    code = "NOT_FOUND"

    def __init__(self, client_id: str) -> None:
        super().__init__(f"Client not found: {client_id}", detail={"client_id": client_id})
        self.client_id = client_id


class ActiveFoldersError(FwdError):
    """Delete refused: the client still has active folders and force is off."""

    code = "ACTIVE_FOLDERS"

    def __init__(self, client_id: str, folder_ids: list[str]) -> None:
        super().__init__(
            "Client has active folders. Use force=true to delete anyway.",
            detail={"client_id": client_id, "folder_ids": folder_ids},
        )
        self.folder_ids = folder_ids


class ConcurrentModificationError(FwdError):
    """The record changed between read and write (version mismatch)."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, client_id: str, expected_version: int) -> None:
        super().__init__(
            f"Client {client_id} was modified concurrently (expected version {expected_version})",
            detail={"client_id": client_id, "expected_version": expected_version},
        )


class ContactIndexError(FwdError):
    code = "INVALID_CONTACT_INDEX"

    def __init__(self, index: int, size: int) -> None:
        super().__init__(
            f"Invalid contact index {index} (client has {size} contacts)",
            detail={"index": index, "size": size},
        )


class ContactValidationError(FwdError):
    """A contact payload broke one or more rules."""

    code = "CONTACT_VALIDATION_FAILED"

    def __init__(self, messages: list[str], *, issues: list[dict[str, str]]) -> None:
        super().__init__(
            f"Contact validation failed: {', '.join(messages)}",
            detail={"issues": issues},
        )


class LastActiveContactError(FwdError):
    code = "LAST_ACTIVE_CONTACT"

    def __init__(self) -> None:
        super().__init__(
            "Cannot remove last active contact. At least one active contact is required."
        )
