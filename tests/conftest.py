"""Test configuration and global fixtures.

Every test that touches the database gets its own temporary SQLite file, so
tests never share state and concurrency tests exercise real file locking.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from routekeeper.application.services.route_service import (  # noqa: E402
    RouteService,
    get_route_service,
    set_route_service,
)
from routekeeper.infrastructure.persistence.route_store import RouteStore  # noqa: E402
from routekeeper.infrastructure.settings import Settings  # noqa: E402


@pytest.fixture
def db_path():
    """Temporary SQLite file, removed with its WAL side files afterwards."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(path + suffix)
        except FileNotFoundError:
            pass


@pytest.fixture
def store(db_path):
    """RouteStore on a fresh temporary database."""
    route_store = RouteStore(f"sqlite:///{db_path}")
    yield route_store
    route_store.close()


@pytest.fixture
def settings(db_path):
    return Settings(database_url=f"sqlite:///{db_path}", default_page_size=10, max_page_size=50)


@pytest.fixture
def service(store, settings):
    return RouteService(store, settings)


@pytest.fixture
def client(service):
    """TestClient whose route service is the temporary one."""
    from fastapi.testclient import TestClient

    from routekeeper.presentation.web.app import create_app

    app = create_app()
    app.dependency_overrides[get_route_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _reset_global_service():
    """Keep tests from leaking the process-wide RouteService."""
    yield
    set_route_service(None)
