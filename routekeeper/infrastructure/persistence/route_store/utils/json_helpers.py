"""JSON helpers for the route store.

Canonical value keys of the shared values, and the text form of JSON columns.
"""

import json
from typing import Any, Iterable, Optional

from routekeeper.domain.models import CoordinatesDraft, LocationDraft


def _canonical_number(value: Any) -> Any:
    if value is None:
        return None
    number = float(value)
    # -0.0 and 0.0 are the same point
    return 0.0 if number == 0 else number


def canonical_key(parts: Iterable[Any]) -> str:
    """Serialize an equality key to a stable JSON string."""
    return json.dumps(list(parts), separators=(",", ":"), ensure_ascii=False)


def coordinates_value_key(candidate: CoordinatesDraft) -> str:
    """Equality key of a Coordinates value: ``[x, y]``."""
    return canonical_key([_canonical_number(candidate.x), _canonical_number(candidate.y)])


def location_value_key(candidate: LocationDraft) -> str:
    """Equality key of a Location value: ``[x, y, name]``."""
    return canonical_key(
        [_canonical_number(candidate.x), _canonical_number(candidate.y), candidate.name]
    )


def dumps_json(value: Any) -> Optional[str]:
    """Text stored in a JSON column; None stays NULL."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def loads_json(text: Optional[str]) -> Any:
    if text is None:
        return None
    return json.loads(text)
