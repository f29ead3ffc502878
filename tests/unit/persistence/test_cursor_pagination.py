"""Tests for filtered listing, offset pages and cursor pages."""

import pytest

from routekeeper.domain.cursor import CompositeCursor, SortDirection, SortField
from routekeeper.domain.errors import InvalidArgumentError
from routekeeper.infrastructure.persistence.route_store import RouteStore
from tests.factories import make_draft

# (name, distance, rating) in insertion order; ids are 1..5
ROUTES = [
    ("Echo", 5, 2),
    ("alpha", 7, 4),
    ("Delta", 7, 1),
    ("Charlie", 3, 4),
    ("Bravo", 9, 3),
]


@pytest.fixture
def populated(store):
    return [
        store.route_create(make_draft(name=name, distance=distance, rating=rating))
        for name, distance, rating in ROUTES
    ]


def _walk_forward(store, size, **kwargs):
    """Follow next cursors from the first page, returning the pages' ids."""
    pages = []
    page = store.route_page(page_size=size, **kwargs)
    pages.append([r.id for r in page.content])
    while page.has_next:
        page = store.route_page(page_size=size, cursor=page.next_cursor, nav="next", **kwargs)
        pages.append([r.id for r in page.content])
    return pages


class TestFilteredListing:
    def test_default_order_is_id(self, store, populated):
        assert [r.id for r in store.route_list_filtered()] == [1, 2, 3, 4, 5]

    def test_case_insensitive_substring(self, store, populated):
        names = [r.name for r in store.route_list_filtered("A", sort="name")]
        # binary collation: uppercase names sort before lowercase ones
        assert names == ["Bravo", "Charlie", "Delta", "alpha"]

    def test_wildcards_are_literal(self, store):
        store.route_create(make_draft(name="Trail_A"))
        store.route_create(make_draft(name="TrailXA"))
        store.route_create(make_draft(name="Full 100"))

        assert [r.name for r in store.route_list_filtered("l_a")] == ["Trail_A"]
        assert store.route_list_filtered("%") == []

    def test_blank_filter_matches_all(self, store, populated):
        assert len(store.route_list_filtered("   ")) == 5

    def test_sort_with_id_tie_breaker(self, store, populated):
        routes = store.route_list_filtered(sort="distance", direction="desc")
        assert [r.id for r in routes] == [5, 2, 3, 1, 4]

    def test_unknown_sort(self, store):
        with pytest.raises(InvalidArgumentError):
            store.route_list_filtered(sort="creation_date")


class TestOffsetPages:
    def test_page_and_total(self, store, populated):
        routes, total = store.route_find_paginated(page=1, size=2)
        assert [r.id for r in routes] == [3, 4]
        assert total == 5

    def test_page_past_end(self, store, populated):
        routes, total = store.route_find_paginated(page=9, size=2)
        assert routes == []
        assert total == 5

    def test_filtered_total(self, store, populated):
        _, total = store.route_find_paginated(page=0, size=10, name_filter="ha")
        assert total == 2

    @pytest.mark.parametrize("page, size", [(-1, 2), (0, 0), (0, 101), (2**62, 10)])
    def test_invalid_arguments(self, store, page, size):
        with pytest.raises(InvalidArgumentError):
            store.route_find_paginated(page=page, size=size)


class TestCursorPages:
    def test_first_page(self, store, populated):
        page = store.route_page(page_size=2)

        assert [r.id for r in page.content] == [1, 2]
        assert page.has_next and not page.has_prev
        assert page.next_cursor is not None
        assert page.prev_cursor is None
        assert page.total_count == 5
        assert page.size == 2

    def test_forward_walk_covers_everything_once(self, store, populated):
        assert _walk_forward(store, 2) == [[1, 2], [3, 4], [5]]

    @pytest.mark.parametrize(
        "sort, direction, expected",
        [
            ("distance", "desc", [5, 2, 3, 1, 4]),
            ("rating", "asc", [3, 1, 5, 2, 4]),
            ("name", "asc", [5, 4, 3, 1, 2]),
            ("id", "desc", [5, 4, 3, 2, 1]),
        ],
    )
    def test_walk_matches_full_ordering(self, store, populated, sort, direction, expected):
        pages = _walk_forward(store, 2, sort=sort, direction=direction)
        assert [route_id for page in pages for route_id in page] == expected

    def test_navigate_back(self, store, populated):
        first = store.route_page(page_size=2)
        second = store.route_page(page_size=2, cursor=first.next_cursor)
        third = store.route_page(page_size=2, cursor=second.next_cursor)

        back = store.route_page(page_size=2, cursor=third.prev_cursor, nav="prev")

        assert not third.has_next and third.next_cursor is None
        assert [r.id for r in back.content] == [3, 4]
        assert back.has_prev and back.has_next

        start = store.route_page(page_size=2, cursor=back.prev_cursor, nav="prev")
        assert [r.id for r in start.content] == [1, 2]
        assert not start.has_prev and start.prev_cursor is None

    def test_round_trip_forward_then_back(self, store, populated):
        forward = []
        page = store.route_page(page_size=2, sort="rating", direction="desc")
        forward.append([r.id for r in page.content])
        while page.has_next:
            page = store.route_page(
                page_size=2, sort="rating", direction="desc", cursor=page.next_cursor
            )
            forward.append([r.id for r in page.content])

        backward = [forward[-1]]
        while page.has_prev:
            page = store.route_page(
                page_size=2, sort="rating", direction="desc", cursor=page.prev_cursor, nav="prev"
            )
            backward.append([r.id for r in page.content])

        assert forward == [[2, 4], [5, 1], [3]]
        assert backward == list(reversed(forward))

    def test_insert_between_pages_neither_duplicates_nor_skips(self, store, populated):
        first = store.route_page(page_size=2)
        store.route_create(make_draft(name="Foxtrot"))

        rest = []
        page = store.route_page(page_size=2, cursor=first.next_cursor)
        rest.extend(r.id for r in page.content)
        while page.has_next:
            page = store.route_page(page_size=2, cursor=page.next_cursor)
            rest.extend(r.id for r in page.content)

        assert rest == [3, 4, 5, 6]

    def test_boundary_row_deleted(self, store, populated):
        first = store.route_page(page_size=2)
        store.route_delete(2)

        second = store.route_page(page_size=2, cursor=first.next_cursor)

        assert [r.id for r in second.content] == [3, 4]
        assert second.has_prev
        assert second.total_count == 4

    def test_empty_page_past_the_end(self, store, populated):
        last = CompositeCursor(SortField.ID, 5, 5, SortDirection.ASC).encode()

        page = store.route_page(page_size=2, cursor=last)

        assert page.content == []
        assert not page.has_next and page.next_cursor is None
        assert page.has_prev
        assert page.prev_cursor == last

    def test_filter_applies_to_cursor_pages(self, store, populated):
        page = store.route_page(name_filter="ha", page_size=10)
        assert [r.name for r in page.content] == ["alpha", "Charlie"]
        assert page.total_count == 2

    def test_cursor_for_other_ordering_rejected(self, store, populated):
        first = store.route_page(page_size=2, sort="name")
        with pytest.raises(InvalidArgumentError):
            store.route_page(page_size=2, sort="rating", cursor=first.next_cursor)

    def test_malformed_cursor_rejected(self, store):
        with pytest.raises(InvalidArgumentError):
            store.route_page(cursor="definitely-not-a-cursor")

    def test_page_size_bounded_by_store_limit(self, db_path):
        with RouteStore(f"sqlite:///{db_path}", max_page_size=3) as small:
            small.route_page(page_size=3)
            with pytest.raises(InvalidArgumentError):
                small.route_page(page_size=4)

    def test_empty_store(self, store):
        page = store.route_page()
        assert page.content == []
        assert not page.has_next and not page.has_prev
        assert page.total_count == 0
