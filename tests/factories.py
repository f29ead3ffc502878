"""Builders for route drafts and HTTP payloads used across the tests."""

from routekeeper.domain.models import CoordinatesDraft, LocationDraft, RouteDraft

CSV_HEADER_LINE = (
    "name,coordinates_x,coordinates_y,from_x,from_y,from_name,to_x,to_y,to_name,distance,rating"
)


def make_draft(
    name: str = "Alpha",
    coords=(1.0, 2.0),
    start=(0.0, 0.0, "Home"),
    end=(3.0, 4.0, "Work"),
    distance: int = 5,
    rating: int = 3,
) -> RouteDraft:
    """Build a RouteDraft from compact tuples: coords ``(x, y)``, endpoints ``(x, y, name)``."""
    return RouteDraft(
        name=name,
        coordinates=CoordinatesDraft(x=coords[0], y=coords[1]),
        from_location=LocationDraft(x=start[0], y=start[1], name=start[2]),
        to_location=LocationDraft(x=end[0], y=end[1], name=end[2]),
        distance=distance,
        rating=rating,
    )


def route_payload(name: str = "Alpha", **overrides) -> dict:
    """JSON body accepted by POST /api/routes."""
    payload = {
        "name": name,
        "coordinates": {"x": 1.0, "y": 2.0},
        "from": {"x": 0.0, "y": 0.0, "name": "Home"},
        "to": {"x": 3.0, "y": 4.0, "name": "Work"},
        "distance": 5,
        "rating": 3,
    }
    payload.update(overrides)
    return payload


def csv_content(*rows: str, header: str = CSV_HEADER_LINE) -> str:
    return "\n".join([header, *rows]) + "\n"
