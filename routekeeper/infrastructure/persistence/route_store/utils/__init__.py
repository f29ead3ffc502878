"""Utilities for route store persistence."""

from .json_helpers import (
    canonical_key,
    coordinates_value_key,
    dumps_json,
    loads_json,
    location_value_key,
)
from .lookup import get_row
from .retry import retry_read_once

__all__ = [
    "canonical_key",
    "coordinates_value_key",
    "dumps_json",
    "get_row",
    "loads_json",
    "location_value_key",
    "retry_read_once",
]
