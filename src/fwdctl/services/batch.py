"""BatchService — one operation over many clients with partial failure.

Protocol:

1. Reject empty or oversize id lists, and missing operation payloads,
   before touching the store (raises :class:`InvalidOperationError`).
2. Pre-flight: one query for every id.  Unknown ids get ``NOT_FOUND``,
   soft-deleted ids ``DELETED_CLIENT``; for deletes, ids with an active
   folder get an ``ACTIVE_FOLDERS`` warning.
3. Without ``force``, any pre-flight error (or, for deletes, an active
   folder warning) ends the run: nothing is written.
4. Execute per operation, skipping ids flagged in pre-flight.  A failing
   item becomes an error entry and the loop moves on.

INVARIANT: ``success_ids`` holds each requested id at most once.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from fwdctl.domain.tags import normalize_tags
from fwdctl.domain.types import BatchOperationType, ClientStatus
from fwdctl.errors import ActiveFoldersError, InvalidOperationError
from fwdctl.services._helpers import now_iso
from fwdctl.services.base import BaseService
from fwdctl.services.clients import ClientService
from fwdctl.services.contracts import (
    BatchItemError,
    BatchItemWarning,
    BatchOperation,
    BatchOperationResult,
    DeleteClientParams,
    ValidationOptions,
)
from fwdctl.services.telemetry import trace_span, traced
from fwdctl.services.validation import ValidationService

if TYPE_CHECKING:
    from fwdctl.infrastructure.store import Store

log = structlog.get_logger(__name__)

BATCH_DELETION_REASON = "Batch deletion"

_STATUSES = frozenset(s.value for s in ClientStatus)


class _BatchRecorder:
    """Append-only accumulator frozen into a :class:`BatchOperationResult`."""

    def __init__(self, operation: BatchOperationType, total: int) -> None:
        self.operation = operation
        self.total = total
        self.success_ids: list[str] = []
        self.errors: list[BatchItemError] = []
        self.warnings: list[BatchItemWarning] = []
        self._failed: set[str] = set()
        self._succeeded: set[str] = set()

    def success(self, client_id: str) -> None:
        if client_id not in self._succeeded:
            self._succeeded.add(client_id)
            self.success_ids.append(client_id)

    def error(self, client_id: str, message: str, code: str) -> None:
        self._failed.add(client_id)
        self.errors.append(BatchItemError(client_id=client_id, error=message, error_code=code))

    def warning(self, client_id: str, message: str, code: str) -> None:
        self.warnings.append(
            BatchItemWarning(client_id=client_id, warning=message, warning_code=code)
        )

    def failed(self, client_id: str) -> bool:
        return client_id in self._failed

    def freeze(self, *, executed: bool, started: float) -> BatchOperationResult:
        return BatchOperationResult(
            operation=self.operation,
            total_requested=self.total,
            success_count=len(self.success_ids),
            error_count=len(self.errors),
            warning_count=len(self.warnings),
            success_ids=list(self.success_ids),
            errors=list(self.errors),
            warnings=list(self.warnings),
            executed=executed,
            execution_time_ms=round((time.perf_counter() - started) * 1000, 3),
        )


class BatchService(BaseService):
    """Executes :class:`BatchOperation` requests."""

    def __init__(self, store: Store) -> None:
        super().__init__(store)
        self._clients = ClientService(store)
        self._validation = ValidationService(store)

    @traced
    def execute_batch(
        self, operation: BatchOperation, user_id: str | None = None
    ) -> BatchOperationResult:
        """Run *operation* and return its audit record.

        Raises:
            InvalidOperationError: empty/oversize id list or missing payload.
            StoreError: the pre-flight query failed.
        """
        started = time.perf_counter()
        client_ids = list(dict.fromkeys(operation.client_ids))
        self._check_request(operation, client_ids)

        recorder = _BatchRecorder(operation.operation, len(client_ids))
        with trace_span("preflight"):
            self._preflight(operation, client_ids, recorder)

        halted = not operation.force and (
            recorder.errors
            or (operation.operation == BatchOperationType.DELETE and recorder.warnings)
        )
        if halted:
            return self._finish(recorder, executed=False, started=started, user_id=user_id)

        targets = [cid for cid in client_ids if not recorder.failed(cid)]
        with trace_span(f"execute_{operation.operation.value}"):
            match operation.operation:
                case BatchOperationType.UPDATE:
                    self._run_update(operation, targets, recorder)
                case BatchOperationType.DELETE:
                    self._run_delete(operation, targets, recorder, user_id)
                case BatchOperationType.CHANGE_STATUS:
                    self._run_change_status(operation, targets, recorder)
                case BatchOperationType.ADD_TAGS:
                    self._run_tags(operation, targets, recorder, add=True)
                case BatchOperationType.REMOVE_TAGS:
                    self._run_tags(operation, targets, recorder, add=False)

        return self._finish(recorder, executed=True, started=started, user_id=user_id)

    # ------------------------------------------------------------------
    # Request checks and pre-flight
    # ------------------------------------------------------------------

    def _check_request(self, operation: BatchOperation, client_ids: list[str]) -> None:
        limit = self.settings.batch.max_batch_size
        if not client_ids:
            raise InvalidOperationError("No client IDs provided")
        if len(operation.client_ids) > limit:
            raise InvalidOperationError(
                f"Batch operation limited to {limit} clients",
                detail={"requested": len(operation.client_ids), "limit": limit},
            )

        data = operation.data
        match operation.operation:
            case BatchOperationType.UPDATE:
                if not data.updates:
                    raise InvalidOperationError("Update data is required for update operation")
            case BatchOperationType.CHANGE_STATUS:
                if not data.new_status:
                    raise InvalidOperationError("New status is required for status change")
                if data.new_status not in _STATUSES:
                    raise InvalidOperationError(f"Invalid status: {data.new_status}")
            case BatchOperationType.ADD_TAGS | BatchOperationType.REMOVE_TAGS:
                if not normalize_tags(data.tags or []):
                    raise InvalidOperationError(
                        f"Tags are required for {operation.operation.value} operation"
                    )

    def _preflight(
        self,
        operation: BatchOperation,
        client_ids: list[str],
        recorder: _BatchRecorder,
    ) -> None:
        rows = self._store.clients.lifecycle_rows(client_ids)
        for client_id in client_ids:
            row = rows.get(client_id)
            if row is None:
                recorder.error(client_id, "Client not found", "NOT_FOUND")
            elif row["deleted_at"] is not None:
                recorder.error(client_id, "Client is deleted", "DELETED_CLIENT")

        if operation.operation == BatchOperationType.DELETE:
            live = [cid for cid in client_ids if not recorder.failed(cid)]
            busy = self._store.folders.clients_with_active_folders(live)
            for client_id in live:
                if client_id in busy:
                    recorder.warning(client_id, "Client has active folders", "ACTIVE_FOLDERS")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run_update(
        self, operation: BatchOperation, targets: list[str], recorder: _BatchRecorder
    ) -> None:
        updates = operation.data.updates or {}
        options = ValidationOptions(check_email_uniqueness=False, check_siret_uniqueness=False)
        for client_id in targets:
            try:
                validation = self._validation.validate_update(client_id, updates, options)
                if not validation.is_valid:
                    message = ", ".join(issue.message for issue in validation.errors)
                    recorder.error(client_id, message, "VALIDATION_ERROR")
                    continue
                self._clients.update(client_id, updates)
            except Exception as exc:
                log.warning(
                    "batch.item_failed", client_id=client_id, operation="update", error=str(exc)
                )
                recorder.error(client_id, str(exc), "UPDATE_ERROR")
                continue
            recorder.success(client_id)

    def _run_delete(
        self,
        operation: BatchOperation,
        targets: list[str],
        recorder: _BatchRecorder,
        user_id: str | None,
    ) -> None:
        for client_id in targets:
            params = DeleteClientParams(
                client_id=client_id,
                reason=BATCH_DELETION_REASON,
                force=operation.force,
                deleted_by=user_id,
            )
            try:
                self._clients.delete(params)
            except Exception as exc:
                code = exc.code if isinstance(exc, ActiveFoldersError) else "DELETE_ERROR"
                log.warning(
                    "batch.item_failed", client_id=client_id, operation="delete", error=str(exc)
                )
                recorder.error(client_id, str(exc), code)
                continue
            recorder.success(client_id)

    def _run_change_status(
        self, operation: BatchOperation, targets: list[str], recorder: _BatchRecorder
    ) -> None:
        """One bulk statement in one transaction: all rows change or none do."""
        try:
            updated = self._store.clients.bulk_update_status(
                targets, str(operation.data.new_status), updated_at=now_iso()
            )
        except Exception as exc:
            log.warning("batch.bulk_failed", operation="change_status", error=str(exc))
            for client_id in targets:
                recorder.error(client_id, str(exc), "BATCH_UPDATE_ERROR")
            return

        reported = set(updated)
        for client_id in targets:
            if client_id in reported:
                recorder.success(client_id)
            else:
                recorder.error(client_id, "Failed to update status", "STATUS_UPDATE_FAILED")

    def _run_tags(
        self,
        operation: BatchOperation,
        targets: list[str],
        recorder: _BatchRecorder,
        *,
        add: bool,
    ) -> None:
        tags = normalize_tags(operation.data.tags or [])
        error_code = "ADD_TAGS_ERROR" if add else "REMOVE_TAGS_ERROR"
        apply = self._store.clients.add_tags if add else self._store.clients.remove_tags
        for client_id in targets:
            try:
                result = apply(client_id, tags, updated_at=now_iso())
            except Exception as exc:
                log.warning(
                    "batch.item_failed",
                    client_id=client_id,
                    operation=operation.operation.value,
                    error=str(exc),
                )
                recorder.error(client_id, str(exc), error_code)
                continue
            if result is None:
                recorder.error(client_id, "Client not found", "NOT_FOUND")
                continue
            recorder.success(client_id)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _finish(
        self,
        recorder: _BatchRecorder,
        *,
        executed: bool,
        started: float,
        user_id: str | None,
    ) -> BatchOperationResult:
        result = recorder.freeze(executed=executed, started=started)
        log.info(
            "batch.complete",
            operation=result.operation.value,
            user_id=user_id,
            requested=result.total_requested,
            success=result.success_count,
            errors=result.error_count,
            warnings=result.warning_count,
            executed=executed,
            duration_ms=result.execution_time_ms,
        )
        return result
