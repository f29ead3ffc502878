"""Validation rules shared by route create, update and bulk import."""

import math
import re
from dataclasses import replace
from typing import Any, List, Optional

from .errors import ValidationError, ZeroDistanceRouteError
from .models import CoordinatesDraft, LocationDraft, RouteDraft

MAX_NAME_LENGTH = 100
MAX_COORDINATES_Y = 807.0
MIN_DISTANCE = 2
MIN_RATING = 1
ZERO_DISTANCE_EPSILON = 1e-6

# Range of the 64-bit INTEGER columns
MAX_INTEGER = 2**63 - 1
MIN_INTEGER = -(2**63)

NAME_PATTERN = re.compile(r"^[\w \-]+$")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_real(value: Any, field_name: str, errors: List[str], required: bool = True) -> None:
    """Append an error unless ``value`` is a finite real number.

    Args:
        value: Candidate value
        field_name: Dotted field name used in messages
        errors: Accumulator for error messages
        required: Whether ``None`` is rejected
    """
    if value is None:
        if required:
            errors.append(f"{field_name} is required")
        return
    if not _is_number(value):
        errors.append(f"{field_name} must be a number")
    elif not math.isfinite(value):
        errors.append(f"{field_name} must be a finite number")


def check_integer(value: Any, field_name: str, minimum: int, errors: List[str]) -> None:
    if value is None:
        errors.append(f"{field_name} is required")
    elif not _is_number(value) or not math.isfinite(value) or value != int(value):
        errors.append(f"{field_name} must be an integer")
    elif value < minimum:
        errors.append(f"{field_name} must be at least {minimum}")
    elif value > MAX_INTEGER:
        errors.append(f"{field_name} must be at most {MAX_INTEGER}")


def fits_integer_column(value: Any) -> bool:
    """Whether an integer can be bound to a 64-bit INTEGER column."""
    return MIN_INTEGER <= value <= MAX_INTEGER


def validate_threshold(value: Any, field_name: str = "threshold") -> int:
    """Return ``value`` as an int, or raise ValidationError."""
    if value is None:
        raise ValidationError(f"{field_name} is required")
    if not _is_number(value) or not math.isfinite(value) or value != int(value):
        raise ValidationError(f"{field_name} must be an integer")
    if not fits_integer_column(value):
        raise ValidationError(f"{field_name} is out of range")
    return int(value)


def check_name(name: Any, errors: List[str]) -> Optional[str]:
    """Validate a route name and return it trimmed (None when invalid)."""
    if name is None or not isinstance(name, str) or not name.strip():
        errors.append("name is required")
        return None
    trimmed = name.strip()
    if len(trimmed) > MAX_NAME_LENGTH:
        errors.append(f"name must be at most {MAX_NAME_LENGTH} characters")
        return None
    if not NAME_PATTERN.match(trimmed):
        errors.append(
            "name may only contain letters, digits, spaces, underscores and hyphens"
        )
        return None
    return trimmed


def coordinates_errors(candidate: CoordinatesDraft, prefix: str = "coordinates") -> List[str]:
    errors: List[str] = []
    check_real(candidate.x, f"{prefix}.x", errors, required=False)
    check_real(candidate.y, f"{prefix}.y", errors)
    if not errors and candidate.y > MAX_COORDINATES_Y:
        errors.append(f"{prefix}.y must not exceed {MAX_COORDINATES_Y:g}")
    return errors


def location_errors(candidate: LocationDraft, prefix: str = "location") -> List[str]:
    errors: List[str] = []
    check_real(candidate.x, f"{prefix}.x", errors)
    check_real(candidate.y, f"{prefix}.y", errors)
    if candidate.name is not None and not isinstance(candidate.name, str):
        errors.append(f"{prefix}.name must be a string")
    return errors


def validate_coordinates(candidate: CoordinatesDraft) -> None:
    """Raise ValidationError unless the coordinates value is storable."""
    errors = coordinates_errors(candidate)
    if errors:
        raise ValidationError("Invalid coordinates", errors)


def validate_location(candidate: LocationDraft) -> None:
    """Raise ValidationError unless the location value is storable."""
    errors = location_errors(candidate)
    if errors:
        raise ValidationError("Invalid location", errors)


def validate_route_draft(draft: RouteDraft) -> RouteDraft:
    """
    Validate every field of a route draft.

    Field errors are collected and raised together. Endpoint rules are
    checked only once the fields themselves are valid.

    Args:
        draft: Caller-supplied route content

    Returns:
        RouteDraft: The draft with its name trimmed and counters as ``int``

    Raises:
        ValidationError: If a field is malformed or out of range, or when
            ``from`` and ``to`` are the same location
        ZeroDistanceRouteError: If ``from`` and ``to`` are distinct locations
            at the same point
    """
    errors: List[str] = []
    name = check_name(draft.name, errors)
    errors.extend(coordinates_errors(draft.coordinates))
    errors.extend(location_errors(draft.from_location, "from"))
    errors.extend(location_errors(draft.to_location, "to"))
    check_integer(draft.distance, "distance", MIN_DISTANCE, errors)
    check_integer(draft.rating, "rating", MIN_RATING, errors)
    if errors:
        raise ValidationError("Invalid route: " + "; ".join(errors), errors)

    start, end = draft.from_location, draft.to_location
    if start.equality_key() == end.equality_key():
        raise ValidationError(
            "Route start and end must be different locations",
            ["from and to must be different locations"],
        )
    if math.hypot(end.x - start.x, end.y - start.y) < ZERO_DISTANCE_EPSILON:
        raise ZeroDistanceRouteError((start.x, start.y), (end.x, end.y))

    return replace(
        draft, name=name, distance=int(draft.distance), rating=int(draft.rating)
    )
