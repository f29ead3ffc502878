"""
Bulk route import pipeline.

Imports are all-or-nothing. The pipeline:

1. Commits an IN_PROGRESS ImportOperation so the audit record survives.
2. Parses every CSV record and validates it with the same rules as route
   creation, including name uniqueness inside the batch and against the
   stored routes.
3. On any failure, finalizes the operation as FAILED with one line-indexed
   error per failing record; nothing is written.
4. Otherwise creates every route in a single transaction and finalizes the
   operation as SUCCESS. If that transaction fails, it rolls back completely
   and the operation is FAILED.

An unexpected exception anywhere after step 1 still finalizes the operation
as FAILED before it propagates.

CSV format::

    name,coordinates_x,coordinates_y,from_x,from_y,from_name,to_x,to_y,to_name,distance,rating

The header is case-insensitive and counts as line 1. Blank lines are
skipped. An empty ``coordinates_x`` means absent and an empty location name
means no name.
"""

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from routekeeper.domain.errors import (
    ImportAbortedError,
    RouteKeeperError,
    ValidationError,
)
from routekeeper.domain.models import (
    CoordinatesDraft,
    ImportOperation,
    ImportStats,
    LocationDraft,
    RouteDraft,
)
from routekeeper.domain.status import ImportStatus
from routekeeper.domain.validation import validate_route_draft

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "name",
    "coordinates_x",
    "coordinates_y",
    "from_x",
    "from_y",
    "from_name",
    "to_x",
    "to_y",
    "to_name",
    "distance",
    "rating",
]


@dataclass
class ParsedRecord:
    line: int
    draft: RouteDraft


@dataclass
class ParsedImport:
    """
    Outcome of parsing and validating an import file.

    Attributes:
        records: Valid records, in file order
        errors: One ``"Line N: ..."`` message per failing record, or a single
            file-level error
        total_records: Data records found in the file
        failed_records: Records that failed
    """

    records: List[ParsedRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    total_records: int = 0
    failed_records: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


def _parse_real(raw: str, field_name: str, problems: List[str], optional: bool = False):
    value = raw.strip()
    if not value:
        if not optional:
            problems.append(f"{field_name} is required")
        return None
    try:
        number = float(value)
    except ValueError:
        problems.append(f"{field_name} is not a number: '{value}'")
        return None
    if not math.isfinite(number):
        problems.append(f"{field_name} must be a finite number")
        return None
    return number


def _parse_int(raw: str, field_name: str, problems: List[str]) -> Optional[int]:
    value = raw.strip()
    if not value:
        problems.append(f"{field_name} is required")
        return None
    try:
        return int(value)
    except ValueError:
        problems.append(f"{field_name} is not an integer: '{value}'")
        return None


def _parse_name(raw: str) -> Optional[str]:
    value = raw.strip()
    return value or None


def _record_to_draft(values: List[str], problems: List[str]) -> Optional[RouteDraft]:
    if len(values) != len(CSV_HEADER):
        problems.append(f"expected {len(CSV_HEADER)} fields, got {len(values)}")
        return None
    row = dict(zip(CSV_HEADER, values))
    coordinates_x = _parse_real(row["coordinates_x"], "coordinates_x", problems, optional=True)
    coordinates_y = _parse_real(row["coordinates_y"], "coordinates_y", problems)
    from_x = _parse_real(row["from_x"], "from_x", problems)
    from_y = _parse_real(row["from_y"], "from_y", problems)
    to_x = _parse_real(row["to_x"], "to_x", problems)
    to_y = _parse_real(row["to_y"], "to_y", problems)
    distance = _parse_int(row["distance"], "distance", problems)
    rating = _parse_int(row["rating"], "rating", problems)
    if problems:
        return None
    return RouteDraft(
        name=row["name"],
        coordinates=CoordinatesDraft(x=coordinates_x, y=coordinates_y),
        from_location=LocationDraft(x=from_x, y=from_y, name=_parse_name(row["from_name"])),
        to_location=LocationDraft(x=to_x, y=to_y, name=_parse_name(row["to_name"])),
        distance=distance,
        rating=rating,
    )


def parse_routes_csv(content: str) -> ParsedImport:
    """
    Parse and validate the records of an import file.

    Args:
        content: Raw CSV text

    Returns:
        ParsedImport: Valid drafts and the per-line errors
    """
    result = ParsedImport()
    reader = csv.reader(io.StringIO(content or ""))

    header = None
    seen_names: Dict[str, int] = {}
    try:
        rows = [(reader.line_num, values) for values in reader]
    except csv.Error as e:
        result.errors.append(f"Line {reader.line_num}: malformed CSV: {e}")
        return result

    for line, values in rows:
        if not any(v.strip() for v in values):
            continue
        if header is None:
            header = [v.strip().lower() for v in values]
            if header != CSV_HEADER:
                result.errors.append(
                    f"Line {line}: invalid header, expected '{','.join(CSV_HEADER)}'"
                )
                return result
            continue

        result.total_records += 1
        problems: List[str] = []
        draft = _record_to_draft(values, problems)
        if draft is not None:
            try:
                draft = validate_route_draft(draft)
            except ValidationError as e:
                problems.extend(e.errors)
            except RouteKeeperError as e:
                problems.append(str(e))
            else:
                first_line = seen_names.get(draft.name)
                if first_line is not None:
                    problems.append(f"duplicate name '{draft.name}' (first used on line {first_line})")
                else:
                    seen_names[draft.name] = line

        if problems:
            result.failed_records += 1
            result.errors.append(f"Line {line}: " + "; ".join(problems))
        else:
            result.records.append(ParsedRecord(line=line, draft=draft))

    if header is None:
        result.errors.append("File is empty")
    elif result.total_records == 0:
        result.errors.append("File contains no records")
    return result


class ImportService:
    """Bulk import pipeline and import history queries."""

    def __init__(self, store):
        self.store = store

    def import_routes(self, username: str, filename: str, content: str) -> ImportOperation:
        """
        Import routes from CSV content, all or nothing.

        Args:
            username: User starting the import
            filename: Name of the imported file
            content: Raw CSV text

        Returns:
            ImportOperation: The finalized operation, SUCCESS or FAILED
        """
        operation = self.store.import_operation_create(username=username, filename=filename)
        parsed = ParsedImport()
        try:
            return self._run(operation, parsed, filename, content)
        except Exception as e:
            logger.exception(f"Import {operation.id} failed unexpectedly")
            parsed.errors.append(f"Unexpected error: {e}")
            parsed.failed_records = parsed.total_records
            self._finalize_failed(operation, parsed, "Import aborted by an unexpected error")
            raise

    def _run(
        self, operation: ImportOperation, parsed: ParsedImport, filename: str, content: str
    ) -> ImportOperation:
        result = parse_routes_csv(content)
        parsed.records = result.records
        parsed.errors = result.errors
        parsed.total_records = result.total_records
        parsed.failed_records = result.failed_records
        if parsed.ok:
            self._check_existing_names(parsed)

        if not parsed.ok:
            logger.warning(
                f"Import {operation.id} rejected: {len(parsed.errors)} error(s) in {filename}"
            )
            return self._finalize_failed(
                operation,
                parsed,
                f"{parsed.failed_records} of {parsed.total_records} records failed validation"
                if parsed.failed_records
                else parsed.errors[0],
            )

        try:
            self._commit(parsed)
        except ImportAbortedError as e:
            parsed.errors = e.errors
            parsed.failed_records = parsed.total_records
            return self._finalize_failed(operation, parsed, str(e))

        return self.store.import_operation_finalize(
            operation.id,
            status=ImportStatus.SUCCESS,
            total_records=parsed.total_records,
            processed_records=parsed.total_records,
            successful_records=parsed.total_records,
            failed_records=0,
        )

    def _check_existing_names(self, parsed: ParsedImport) -> None:
        for record in parsed.records:
            existing = self.store.route_get_by_name(record.draft.name)
            if existing is not None:
                parsed.failed_records += 1
                parsed.errors.append(
                    f"Line {record.line}: route name '{record.draft.name}' already exists "
                    f"(route {existing.id})"
                )

    def _commit(self, parsed: ParsedImport) -> None:
        try:
            self.store.route_create_batch([record.draft for record in parsed.records])
        except (RouteKeeperError, SQLAlchemyError) as e:
            logger.error(f"Import batch rolled back: {e}")
            raise ImportAbortedError([f"Commit failed: {e}"], "Import rolled back") from e

    def _finalize_failed(
        self, operation: ImportOperation, parsed: ParsedImport, message: str
    ) -> ImportOperation:
        return self.store.import_operation_finalize(
            operation.id,
            status=ImportStatus.FAILED,
            total_records=parsed.total_records,
            processed_records=parsed.total_records,
            successful_records=0,
            failed_records=parsed.failed_records,
            errors=parsed.errors,
            error_message=message,
        )

    def history(self, username: str, page: int = 0, size: int = 10) -> List[ImportOperation]:
        return self.store.import_operation_history(username, page, size)

    def stats(self, username: str) -> ImportStats:
        return self.store.import_operation_stats(username)

    def operation_detail(self, operation_id: int) -> ImportOperation:
        return self.store.import_operation_get(operation_id)
