"""
Import Operation Status Management.

Defines the status enumeration of bulk import operations and the transition
rules the audit trail must respect.

Status Flow:
    IN_PROGRESS -> {SUCCESS, FAILED}

An operation is created IN_PROGRESS when an import call starts and is
finalized exactly once, when the pipeline terminates.
"""

from enum import Enum


class ImportStatus(str, Enum):
    """
    Lifecycle states of an import operation.

    Status Descriptions:
        IN_PROGRESS: Import started, records being parsed or committed
        SUCCESS: Every record was committed
        FAILED: The batch was rejected or rolled back; nothing was written
    """

    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_final(self) -> bool:
        """
        Check if status represents a finalized (terminal) state.

        Returns:
            bool: True if status is SUCCESS or FAILED.
        """
        return self in FINAL_IMPORT_STATUSES


FINAL_IMPORT_STATUSES: set[ImportStatus] = {
    ImportStatus.SUCCESS,
    ImportStatus.FAILED,
}

# Finalization happens exactly once: terminal states have no way out
ALLOWED_IMPORT_TRANSITIONS: dict[ImportStatus, set[ImportStatus]] = {
    ImportStatus.IN_PROGRESS: {ImportStatus.SUCCESS, ImportStatus.FAILED},
}


def normalize_import_status(value: str | ImportStatus) -> ImportStatus:
    """
    Normalize a status given as enum or string (case-insensitive).

    Args:
        value: ImportStatus instance or string such as ``"success"``.

    Returns:
        ImportStatus: The matching enum member.

    Raises:
        ValueError: If value doesn't represent a valid status.

    Examples:
        >>> normalize_import_status("  success ")
        <ImportStatus.SUCCESS: 'SUCCESS'>
    """
    if isinstance(value, ImportStatus):
        return value
    norm = str(value).strip().upper()
    try:
        return ImportStatus(norm)
    except ValueError:
        raise ValueError(f"Invalid import status: {value}") from None


def can_transition(current: str | ImportStatus, new: str | ImportStatus) -> bool:
    """Return True when ``current -> new`` is an allowed transition."""
    current_status = normalize_import_status(current)
    new_status = normalize_import_status(new)
    return new_status in ALLOWED_IMPORT_TRANSITIONS.get(current_status, set())
