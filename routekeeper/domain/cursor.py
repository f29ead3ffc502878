"""
Composite cursor for keyset pagination over routes.

A cursor points at the boundary row of a page. It records the sort column,
the boundary row's value in that column, the boundary row's id (tie-breaker)
and the sort direction, serialized as base64url-encoded JSON so callers can
treat it as an opaque token.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .errors import InvalidArgumentError
from .validation import fits_integer_column


class SortField(str, Enum):
    """Columns routes can be ordered by."""

    ID = "id"
    NAME = "name"
    DISTANCE = "distance"
    RATING = "rating"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class NavDirection(str, Enum):
    """Direction of cursor navigation relative to the boundary row."""

    NEXT = "next"
    PREV = "prev"


def parse_sort_field(value: Union[str, SortField, None]) -> SortField:
    """Parse a sort column name, defaulting to ``id``.

    Raises:
        InvalidArgumentError: If the column is not sortable.
    """
    if value is None or value == "":
        return SortField.ID
    if isinstance(value, SortField):
        return value
    try:
        return SortField(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(f.value for f in SortField)
        raise InvalidArgumentError(
            f"Unknown sort field: {value}. Allowed: {allowed}"
        ) from None


def parse_sort_direction(value: Union[str, SortDirection, None]) -> SortDirection:
    if value is None or value == "":
        return SortDirection.ASC
    if isinstance(value, SortDirection):
        return value
    try:
        return SortDirection(str(value).strip().lower())
    except ValueError:
        raise InvalidArgumentError(f"Unknown sort direction: {value}") from None


def parse_nav_direction(value: Union[str, NavDirection, None]) -> NavDirection:
    if value is None or value == "":
        return NavDirection.NEXT
    if isinstance(value, NavDirection):
        return value
    try:
        return NavDirection(str(value).strip().lower())
    except ValueError:
        raise InvalidArgumentError(f"Unknown navigation direction: {value}") from None


@dataclass(frozen=True)
class CompositeCursor:
    """
    Boundary of a page in ``(sort value, id)`` order.

    Attributes:
        sort_field: Column the page was sorted by
        sort_value: Boundary row's value in ``sort_field``
        id: Boundary row's id
        direction: Sort direction the cursor was issued for
    """

    sort_field: SortField
    sort_value: Any
    id: int
    direction: SortDirection

    def encode(self) -> str:
        payload = {
            "sort_field": self.sort_field.value,
            "sort_value": self.sort_value,
            "id": self.id,
            "direction": self.direction.value,
        }
        raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")

    @classmethod
    def decode(cls, token: str) -> "CompositeCursor":
        """
        Parse an opaque cursor token.

        Raises:
            InvalidArgumentError: If the token is not a well-formed cursor.
        """
        try:
            padded = token + "=" * (-len(token) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise InvalidArgumentError(f"Malformed cursor: {e}") from None

        if not isinstance(payload, dict):
            raise InvalidArgumentError("Malformed cursor: expected an object")
        missing = {"sort_field", "sort_value", "id", "direction"} - payload.keys()
        if missing:
            raise InvalidArgumentError(
                f"Malformed cursor: missing {', '.join(sorted(missing))}"
            )
        cursor_id = payload["id"]
        if (
            isinstance(cursor_id, bool)
            or not isinstance(cursor_id, int)
            or not fits_integer_column(cursor_id)
        ):
            raise InvalidArgumentError("Malformed cursor: id must be an integer")

        sort_field = parse_sort_field(payload["sort_field"])
        sort_value = payload["sort_value"]
        if sort_field is SortField.NAME:
            valid_value = isinstance(sort_value, str)
        else:
            valid_value = (
                isinstance(sort_value, int)
                and not isinstance(sort_value, bool)
                and fits_integer_column(sort_value)
            )
        if not valid_value:
            raise InvalidArgumentError(
                f"Malformed cursor: bad value for sort field {sort_field.value}"
            )

        return cls(
            sort_field=sort_field,
            sort_value=sort_value,
            id=cursor_id,
            direction=parse_sort_direction(payload["direction"]),
        )

    def ensure_matches(self, sort_field: SortField, direction: SortDirection) -> None:
        """Reject a cursor issued for another ordering."""
        if self.sort_field is not sort_field or self.direction is not direction:
            raise InvalidArgumentError(
                f"Cursor was issued for sort {self.sort_field.value} "
                f"{self.direction.value}, not {sort_field.value} {direction.value}"
            )
