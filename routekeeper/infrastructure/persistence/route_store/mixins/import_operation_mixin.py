"""Import operation CRUD mixin.

Audit records of bulk imports. An operation is committed as IN_PROGRESS in
its own transaction before the batch is processed, so the record survives a
rolled-back batch, and is finalized exactly once afterwards.
"""

import logging
from typing import List, Optional, Sequence, Union

from sqlalchemy import func

from routekeeper.domain.errors import InvalidArgumentError, NotFoundError
from routekeeper.domain.models import ImportOperation, ImportStats
from routekeeper.domain.status import ImportStatus, can_transition, normalize_import_status
from routekeeper.domain.validation import fits_integer_column

from ..models import ImportOperationRow, utc_now
from ..utils import get_row, retry_read_once

logger = logging.getLogger(__name__)


class ImportOperationCRUDMixin:
    """Mixin providing CRUD operations for the import_operations table."""

    def import_operation_create(self, *, username: str, filename: str) -> ImportOperation:
        """Start an import operation in IN_PROGRESS state."""
        with self.session_scope() as session:
            row = ImportOperationRow(
                username=username,
                filename=filename,
                status=ImportStatus.IN_PROGRESS.value,
                start_time=utc_now(),
                errors=[],
            )
            session.add(row)
            session.flush()
            operation = row.to_domain()
        logger.info(f"Import operation {operation.id} started by {username} for {filename}")
        return operation

    def import_operation_finalize(
        self,
        operation_id: int,
        *,
        status: Union[str, ImportStatus],
        total_records: int = 0,
        processed_records: int = 0,
        successful_records: int = 0,
        failed_records: int = 0,
        errors: Optional[Sequence[str]] = None,
        error_message: Optional[str] = None,
    ) -> ImportOperation:
        """Move an operation to its final status and record its counters.

        Raises:
            NotFoundError: If the operation does not exist
            InvalidArgumentError: If the operation is already final or the
                status is not a final one
        """
        new_status = normalize_import_status(status)
        with self.session_scope() as session:
            row = get_row(session, ImportOperationRow, operation_id)
            if row is None:
                raise NotFoundError("ImportOperation", operation_id)
            if not can_transition(row.status, new_status):
                raise InvalidArgumentError(
                    f"Import operation {operation_id} cannot move from {row.status} "
                    f"to {new_status.value}"
                )
            row.status = new_status.value
            row.end_time = utc_now()
            row.total_records = total_records
            row.processed_records = processed_records
            row.successful_records = successful_records
            row.failed_records = failed_records
            row.errors = list(errors or [])
            row.error_message = error_message
            session.flush()
            operation = row.to_domain()
        log = logger.info if new_status is ImportStatus.SUCCESS else logger.warning
        log(
            f"Import operation {operation_id} finalized as {new_status.value}: "
            f"{successful_records}/{total_records} records committed"
        )
        return operation

    @retry_read_once
    def import_operation_get(self, operation_id: int) -> ImportOperation:
        with self.session_scope(readonly=True) as session:
            row = get_row(session, ImportOperationRow, operation_id)
            if row is None:
                raise NotFoundError("ImportOperation", operation_id)
            return row.to_domain()

    @retry_read_once
    def import_operation_history(
        self, username: str, page: int = 0, size: int = 10
    ) -> List[ImportOperation]:
        """Operations of a user, newest first.

        Args:
            username: Owner of the operations
            page: Zero-based page number
            size: Page size
        """
        if page < 0 or size < 1 or not fits_integer_column((page + 1) * size):
            raise InvalidArgumentError(f"Invalid history page {page} of size {size}")
        with self.session_scope(readonly=True) as session:
            rows = (
                session.query(ImportOperationRow)
                .filter(ImportOperationRow.username == username)
                .order_by(ImportOperationRow.start_time.desc(), ImportOperationRow.id.desc())
                .offset(page * size)
                .limit(size)
                .all()
            )
            return [row.to_domain() for row in rows]

    @retry_read_once
    def import_operation_stats(self, username: str) -> ImportStats:
        with self.session_scope(readonly=True) as session:
            counts = dict(
                session.query(ImportOperationRow.status, func.count(ImportOperationRow.id))
                .filter(ImportOperationRow.username == username)
                .group_by(ImportOperationRow.status)
                .all()
            )
        return ImportStats(
            total_operations=sum(counts.values()),
            successful_operations=counts.get(ImportStatus.SUCCESS.value, 0),
            failed_operations=counts.get(ImportStatus.FAILED.value, 0),
        )
