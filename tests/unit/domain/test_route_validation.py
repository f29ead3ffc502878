"""Tests for the shared route validation rules."""

import math

import pytest

from routekeeper.domain.errors import ValidationError, ZeroDistanceRouteError
from routekeeper.domain.models import CoordinatesDraft, LocationDraft
from routekeeper.domain.validation import (
    MAX_INTEGER,
    MAX_NAME_LENGTH,
    validate_coordinates,
    validate_location,
    validate_route_draft,
    validate_threshold,
)
from tests.factories import make_draft


class TestRouteDraftValidation:
    def test_valid_draft_is_returned_normalized(self):
        draft = make_draft(name="  Coastal Loop  ", distance=5.0, rating=2.0)

        result = validate_route_draft(draft)

        assert result.name == "Coastal Loop"
        assert result.distance == 5 and isinstance(result.distance, int)
        assert result.rating == 2 and isinstance(result.rating, int)

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_rejected(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_route_draft(make_draft(name=name))
        assert "name is required" in exc_info.value.errors

    def test_name_length_limit(self):
        validate_route_draft(make_draft(name="a" * MAX_NAME_LENGTH))
        with pytest.raises(ValidationError):
            validate_route_draft(make_draft(name="a" * (MAX_NAME_LENGTH + 1)))

    @pytest.mark.parametrize("name", ["bad/name", "semi;colon", "percent%"])
    def test_name_charset(self, name):
        with pytest.raises(ValidationError):
            validate_route_draft(make_draft(name=name))

    def test_name_allows_hyphen_underscore_and_unicode_letters(self):
        result = validate_route_draft(make_draft(name="Rota_São-Paulo 2"))
        assert result.name == "Rota_São-Paulo 2"

    def test_distance_and_rating_minimums(self):
        validate_route_draft(make_draft(distance=2, rating=1))
        with pytest.raises(ValidationError) as exc_info:
            validate_route_draft(make_draft(distance=1, rating=0))
        assert "distance must be at least 2" in exc_info.value.errors
        assert "rating must be at least 1" in exc_info.value.errors

    def test_non_integral_distance_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_route_draft(make_draft(distance=2.5))
        assert "distance must be an integer" in exc_info.value.errors

    def test_counters_bounded_by_integer_column(self):
        validate_route_draft(make_draft(distance=MAX_INTEGER, rating=MAX_INTEGER))
        with pytest.raises(ValidationError) as exc_info:
            validate_route_draft(make_draft(distance=10**20, rating=1e19))
        assert f"distance must be at most {MAX_INTEGER}" in exc_info.value.errors
        assert f"rating must be at most {MAX_INTEGER}" in exc_info.value.errors

    def test_boolean_counters_rejected(self):
        with pytest.raises(ValidationError):
            validate_route_draft(make_draft(rating=True))

    def test_errors_are_collected_together(self):
        draft = make_draft(name="", coords=(None, 900.0), distance=0, rating=0)

        with pytest.raises(ValidationError) as exc_info:
            validate_route_draft(draft)

        assert len(exc_info.value.errors) == 4
        assert exc_info.value.details() == {"errors": exc_info.value.errors}

    def test_same_location_twice_rejected(self):
        draft = make_draft(start=(1.0, 1.0, "A"), end=(1.0, 1.0, "A"))
        with pytest.raises(ValidationError) as exc_info:
            validate_route_draft(draft)
        assert not isinstance(exc_info.value, ZeroDistanceRouteError)

    def test_distinct_locations_at_same_point_are_zero_distance(self):
        draft = make_draft(start=(1.0, 1.0, "A"), end=(1.0, 1.0, "B"))

        with pytest.raises(ZeroDistanceRouteError) as exc_info:
            validate_route_draft(draft)

        assert exc_info.value.details() == {"from_point": [1.0, 1.0], "to_point": [1.0, 1.0]}

    def test_points_within_epsilon_are_zero_distance(self):
        draft = make_draft(start=(1.0, 1.0, "A"), end=(1.0 + 1e-9, 1.0, "B"))
        with pytest.raises(ZeroDistanceRouteError):
            validate_route_draft(draft)


class TestValueValidation:
    def test_coordinates_y_upper_bound(self):
        validate_coordinates(CoordinatesDraft(x=None, y=807.0))
        with pytest.raises(ValidationError) as exc_info:
            validate_coordinates(CoordinatesDraft(x=1.0, y=807.5))
        assert exc_info.value.errors == ["coordinates.y must not exceed 807"]

    def test_coordinates_x_optional_y_required(self):
        validate_coordinates(CoordinatesDraft(y=0.0))
        with pytest.raises(ValidationError):
            validate_coordinates(CoordinatesDraft(x=1.0, y=None))

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_values_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_location(LocationDraft(x=value, y=0.0))

    def test_location_requires_both_components(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_location(LocationDraft(x=None, y=None))
        assert len(exc_info.value.errors) == 2

    def test_location_name_optional(self):
        validate_location(LocationDraft(x=1.0, y=2.0))
        validate_location(LocationDraft(x=1.0, y=2.0, name=""))


class TestThresholds:
    def test_integral_values_accepted(self):
        assert validate_threshold(3) == 3
        assert validate_threshold(-4.0) == -4
        assert validate_threshold(-(2**63)) == -(2**63)

    @pytest.mark.parametrize("value", [2**63, -(2**63) - 1, 10**20])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_threshold(value)

    @pytest.mark.parametrize("value", [None, "3", 2.5, True, math.inf])
    def test_non_integers_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_threshold(value)
