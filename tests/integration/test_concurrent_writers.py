"""Concurrent writers on one SQLite file.

Each test starts several threads against stores opened on the same file, the
way multiple web workers share a database.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from routekeeper.domain.errors import DuplicateNameError
from routekeeper.infrastructure.persistence.route_store import RouteStore
from routekeeper.infrastructure.persistence.route_store.models import (
    CoordinatesRow,
    LocationRow,
    ObjectReferenceRow,
    RouteRow,
)
from tests.factories import make_draft

pytestmark = pytest.mark.integration

WORKERS = 8


@pytest.fixture
def stores(db_path):
    """Two independent stores (separate engines) on the same file."""
    first = RouteStore(f"sqlite:///{db_path}")
    second = RouteStore(f"sqlite:///{db_path}")
    yield [first, second]
    first.close()
    second.close()


def _run_concurrently(fn, count):
    barrier = threading.Barrier(count)

    def task(i):
        barrier.wait()
        return fn(i)

    with ThreadPoolExecutor(max_workers=count) as pool:
        futures = [pool.submit(task, i) for i in range(count)]
        outcomes = []
        for future in futures:
            try:
                outcomes.append(future.result())
            except Exception as e:  # noqa: BLE001
                outcomes.append(e)
    return outcomes


def test_shared_values_created_once(stores):
    outcomes = _run_concurrently(
        lambda i: stores[i % 2].route_create(make_draft(name=f"Route {i}")), WORKERS
    )

    assert all(not isinstance(o, Exception) for o in outcomes), outcomes
    first_id = min(route.id for route in outcomes)
    with stores[0].session_scope() as session:
        assert session.query(CoordinatesRow).count() == 1
        assert session.query(LocationRow).count() == 2
        assert session.query(ObjectReferenceRow).count() == 3 * WORKERS
        coordinates = session.query(CoordinatesRow).one()
        assert coordinates.owner_route_id == first_id


def test_duplicate_name_race_has_one_winner(stores):
    outcomes = _run_concurrently(
        lambda i: stores[i % 2].route_create(make_draft(name="Contested", coords=(i, i))), WORKERS
    )

    winners = [o for o in outcomes if not isinstance(o, Exception)]
    losers = [o for o in outcomes if isinstance(o, Exception)]
    assert len(winners) == 1
    assert len(losers) == WORKERS - 1
    assert all(isinstance(e, DuplicateNameError) for e in losers)
    # rejected writers leave no coordinates behind
    assert len(stores[0].available_coordinates()) == 1


def test_deletes_and_creates_interleaved(stores):
    seeds = [stores[0].route_create(make_draft(name=f"Seed {i}")) for i in range(WORKERS)]

    def work(i):
        store = stores[i % 2]
        if i % 2:
            return store.route_create(make_draft(name=f"Fresh {i}"))
        # deleting a non-owner never needs a rebind target
        return store.route_delete(seeds[i + 1].id)

    outcomes = _run_concurrently(work, WORKERS)

    assert all(not isinstance(o, Exception) for o in outcomes), outcomes
    coordinates = stores[1].available_coordinates()
    assert len(coordinates) == 1
    assert coordinates[0].owner_route_id == seeds[0].id
    _, total = stores[1].route_find_paginated(page=0, size=50)
    assert total == WORKERS


def test_reader_not_blocked_by_open_writer(stores):
    route = stores[0].route_create(make_draft(name="Steady", rating=3))

    with stores[0].session_scope() as session:
        session.get(RouteRow, route.id).rating = 4
        session.flush()

        started = time.monotonic()
        assert stores[1].route_get(route.id).rating == 3
        assert stores[1].route_count_rating_less_than(4) == 1
        assert time.monotonic() - started < 5

    assert stores[1].route_get(route.id).rating == 4
