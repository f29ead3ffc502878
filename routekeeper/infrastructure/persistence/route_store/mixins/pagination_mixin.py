"""Route listing and pagination mixin.

Two pagination modes are offered. Offset pages (``route_find_paginated``)
address a page by number. Cursor pages (``route_page``) address a page by
the boundary row of the previous one and use a keyset predicate on
``(sort value, id)``, so concurrent inserts and deletes never make a row
appear twice or be skipped relative to the cursor.

Rows are always ordered by the sort column in the requested direction and
then by ``id`` ascending.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_

from routekeeper.domain.cursor import (
    CompositeCursor,
    NavDirection,
    SortDirection,
    SortField,
    parse_nav_direction,
    parse_sort_direction,
    parse_sort_field,
)
from routekeeper.domain.errors import InvalidArgumentError
from routekeeper.domain.models import CursorPage, Route
from routekeeper.domain.validation import fits_integer_column

from ..models import RouteRow
from ..utils import retry_read_once

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGE_SIZE = 100

SORT_COLUMNS = {
    SortField.ID: RouteRow.id,
    SortField.NAME: RouteRow.name,
    SortField.DISTANCE: RouteRow.distance,
    SortField.RATING: RouteRow.rating,
}


def _after(column, value, boundary_id: int, direction: SortDirection):
    """Predicate for rows strictly after the boundary in page order."""
    ahead = column > value if direction is SortDirection.ASC else column < value
    return or_(ahead, and_(column == value, RouteRow.id > boundary_id))


def _before(column, value, boundary_id: int, direction: SortDirection):
    """Predicate for rows strictly before the boundary in page order."""
    behind = column < value if direction is SortDirection.ASC else column > value
    return or_(behind, and_(column == value, RouteRow.id < boundary_id))


class PaginationMixin:
    """Mixin providing filtered listing, offset pages and cursor pages."""

    max_page_size: int = DEFAULT_MAX_PAGE_SIZE

    def _filtered_query(self, session, name_filter: Optional[str]):
        query = session.query(RouteRow)
        if name_filter is not None and name_filter.strip():
            needle = name_filter.strip().lower()
            query = query.filter(func.lower(RouteRow.name).contains(needle, autoescape=True))
        return query

    @staticmethod
    def _ordering(column, direction: SortDirection, reverse: bool = False):
        ascending = direction is SortDirection.ASC
        if reverse:
            ascending = not ascending
        primary = column.asc() if ascending else column.desc()
        tie_breaker = RouteRow.id.desc() if reverse else RouteRow.id.asc()
        return primary, tie_breaker

    def _check_page_size(self, size: int) -> None:
        if isinstance(size, bool) or not isinstance(size, int) or size < 1:
            raise InvalidArgumentError(f"Page size must be a positive integer, got {size}")
        if size > self.max_page_size:
            raise InvalidArgumentError(
                f"Page size {size} exceeds the maximum of {self.max_page_size}"
            )

    @retry_read_once
    def route_list_filtered(
        self,
        name_filter: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> List[Route]:
        """List every route matching a case-insensitive name substring.

        Wildcard characters in ``name_filter`` are matched literally.

        Raises:
            InvalidArgumentError: If the sort column or direction is unknown
        """
        sort_field = parse_sort_field(sort)
        sort_direction = parse_sort_direction(direction)
        with self.session_scope(readonly=True) as session:
            rows = (
                self._filtered_query(session, name_filter)
                .order_by(*self._ordering(SORT_COLUMNS[sort_field], sort_direction))
                .all()
            )
            return [row.to_domain() for row in rows]

    @retry_read_once
    def route_find_paginated(
        self,
        page: int = 0,
        size: int = 10,
        name_filter: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> Tuple[List[Route], int]:
        """Offset pagination over the filtered, ordered routes.

        Args:
            page: Zero-based page number
            size: Page size
            name_filter: Optional name substring
            sort: Sort column
            direction: ``asc`` or ``desc``

        Returns:
            Tuple of (routes on the page, total matching routes)
        """
        if isinstance(page, bool) or not isinstance(page, int) or page < 0:
            raise InvalidArgumentError(f"Page number must be a non-negative integer, got {page}")
        self._check_page_size(size)
        if not fits_integer_column((page + 1) * size):
            raise InvalidArgumentError(f"Page {page} is out of range")
        sort_field = parse_sort_field(sort)
        sort_direction = parse_sort_direction(direction)
        with self.session_scope(readonly=True) as session:
            query = self._filtered_query(session, name_filter)
            total = query.count()
            rows = (
                query.order_by(*self._ordering(SORT_COLUMNS[sort_field], sort_direction))
                .offset(page * size)
                .limit(size)
                .all()
            )
            return [row.to_domain() for row in rows], total

    @retry_read_once
    def route_page(
        self,
        name_filter: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
        cursor: Optional[str] = None,
        page_size: int = 10,
        nav: Optional[str] = None,
    ) -> CursorPage:
        """Fetch one cursor page.

        Args:
            name_filter: Optional name substring, must not change between
                calls sharing a cursor
            sort: Sort column (``id``, ``name``, ``distance``, ``rating``)
            direction: ``asc`` or ``desc``
            cursor: Boundary token from a previous page, None for the first page
            page_size: Number of routes per page
            nav: ``next`` (rows after the cursor) or ``prev`` (rows before it)

        Returns:
            CursorPage: Routes plus navigation tokens and the total count

        Raises:
            InvalidArgumentError: If the page size, sort column or direction
                is invalid, or the cursor is malformed or was issued for a
                different ordering
        """
        self._check_page_size(page_size)
        sort_field = parse_sort_field(sort)
        sort_direction = parse_sort_direction(direction)
        nav_direction = parse_nav_direction(nav)
        boundary = None
        if cursor:
            boundary = CompositeCursor.decode(cursor)
            boundary.ensure_matches(sort_field, sort_direction)

        column = SORT_COLUMNS[sort_field]
        with self.session_scope(readonly=True) as session:
            base = self._filtered_query(session, name_filter)
            total = base.count()

            if boundary is None or nav_direction is NavDirection.NEXT:
                query = base
                if boundary is not None:
                    query = query.filter(
                        _after(column, boundary.sort_value, boundary.id, sort_direction)
                    )
                rows = (
                    query.order_by(*self._ordering(column, sort_direction))
                    .limit(page_size + 1)
                    .all()
                )
                has_next = len(rows) > page_size
                rows = rows[:page_size]
                if boundary is None:
                    has_prev = False
                elif rows:
                    has_prev = self._exists(
                        base,
                        _before(column, getattr(rows[0], column.key), rows[0].id, sort_direction),
                    )
                else:
                    has_prev = self._exists(
                        base, _before(column, boundary.sort_value, boundary.id, sort_direction)
                    )
            else:
                rows = (
                    base.filter(_before(column, boundary.sort_value, boundary.id, sort_direction))
                    .order_by(*self._ordering(column, sort_direction, reverse=True))
                    .limit(page_size + 1)
                    .all()
                )
                has_prev = len(rows) > page_size
                rows = list(reversed(rows[:page_size]))
                if rows:
                    has_next = self._exists(
                        base,
                        _after(column, getattr(rows[-1], column.key), rows[-1].id, sort_direction),
                    )
                else:
                    has_next = self._exists(
                        base, _after(column, boundary.sort_value, boundary.id, sort_direction)
                    )

            content = [row.to_domain() for row in rows]

        # An empty page past the boundary navigates back from the boundary itself
        next_cursor = None
        prev_cursor = None
        if has_next:
            next_cursor = (
                self._cursor_for(content[-1], sort_field, sort_direction) if content else cursor
            )
        if has_prev:
            prev_cursor = (
                self._cursor_for(content[0], sort_field, sort_direction) if content else cursor
            )

        logger.debug(
            f"Cursor page sort={sort_field.value} {sort_direction.value} nav={nav_direction.value}: "
            f"{len(content)} routes, has_next={has_next}, has_prev={has_prev}"
        )
        return CursorPage(
            content=content,
            next_cursor=next_cursor,
            prev_cursor=prev_cursor,
            has_next=has_next,
            has_prev=has_prev,
            total_count=total,
        )

    @staticmethod
    def _exists(query, predicate) -> bool:
        return query.filter(predicate).first() is not None

    @staticmethod
    def _cursor_for(route: Route, sort_field: SortField, direction: SortDirection) -> str:
        return CompositeCursor(
            sort_field=sort_field,
            sort_value=getattr(route, sort_field.value),
            id=route.id,
            direction=direction,
        ).encode()
