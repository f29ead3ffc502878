"""
SQLAlchemy route store.

``RouteStore`` owns the engine and the session factory; the storage
operations themselves live in the mixins it is composed of.
"""

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .mixins import (
    DeletionMixin,
    ImportOperationCRUDMixin,
    OwnershipMixin,
    PaginationMixin,
    QueriesMixin,
    RouteCRUDMixin,
    ValueStoreMixin,
)
from .mixins.pagination_mixin import DEFAULT_MAX_PAGE_SIZE
from .models import Base

DEFAULT_SQLITE_PATH = "routekeeper.db"
SQLITE_BUSY_TIMEOUT_SECONDS = 30
READONLY_OPTION = "routekeeper_readonly"

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_SECONDS * 1000}",
)


def _is_in_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class RouteStore(
    ValueStoreMixin,
    OwnershipMixin,
    RouteCRUDMixin,
    PaginationMixin,
    DeletionMixin,
    QueriesMixin,
    ImportOperationCRUDMixin,
):
    """
    Route storage engine on a relational database.

    Each public operation opens its own ``session_scope()``. Operations that
    touch several tables (route create and update, delete with rebind, batch
    import) do all their work inside that one scope.

    Attributes:
        max_page_size: Largest page size the pagination methods accept

    Example:
        >>> with RouteStore("sqlite:///routes.db") as store:
        ...     store.route_get(1)
    """

    def __init__(
        self, database_url: Optional[str] = None, max_page_size: Optional[int] = None
    ):
        """
        Open the database and create missing tables.

        Args:
            database_url: SQLAlchemy URL; ``DB_URL`` or ``DB_PATH`` when None
            max_page_size: Page size limit, defaults to 100
        """
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")
        self._database_url = database_url or self._url_from_environment()
        self.max_page_size = max_page_size or DEFAULT_MAX_PAGE_SIZE

        self._engine = self._create_engine(self._database_url)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)

        self._logger.info(f"Route store opened at {self._database_url}")

    @property
    def database_url(self) -> str:
        return str(self._database_url)

    @staticmethod
    def _url_from_environment() -> str:
        """``DB_URL`` if set, else a SQLite file at ``DB_PATH``."""
        db_url = os.getenv("DB_URL")
        if db_url:
            return db_url
        return f"sqlite:///{os.getenv('DB_PATH', DEFAULT_SQLITE_PATH)}"

    def _create_engine(self, database_url: str):
        url = str(database_url)
        if not url.startswith("sqlite:"):
            options: Dict[str, Any] = {
                "pool_size": 10,
                "max_overflow": 20,
                "pool_pre_ping": True,
                "pool_recycle": 3600,
            }
            return create_engine(database_url, **options)

        options = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
            }
        }
        # in-memory databases live on a single connection
        if _is_in_memory_sqlite(url):
            options["poolclass"] = StaticPool
        engine = create_engine(database_url, **options)
        self._install_sqlite_hooks(engine)
        return engine

    @staticmethod
    def _install_sqlite_hooks(engine) -> None:
        """
        Take transaction control away from pysqlite.

        The driver's implicit BEGIN is disabled and every transaction starts
        explicitly: writers with ``BEGIN IMMEDIATE``, so SAVEPOINTs behave and
        concurrent writers wait on the busy timeout rather than failing on a
        lock upgrade; read-only sessions with a deferred ``BEGIN``, which under
        WAL never waits for a writer.
        """

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            for pragma in SQLITE_PRAGMAS:
                cursor.execute(pragma)
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            if conn.get_execution_options().get(READONLY_OPTION):
                conn.exec_driver_sql("BEGIN")
            else:
                conn.exec_driver_sql("BEGIN IMMEDIATE")

    def get_session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session_scope(self, readonly: bool = False):
        """
        Transaction around a block of work.

        Commits when the block completes and rolls back when it raises; the
        session is closed either way.

        Args:
            readonly: The block only reads; on SQLite it does not take the
                write lock

        Yields:
            Session: A session not shared with other callers
        """
        session = self.get_session()
        try:
            if readonly:
                session.connection(execution_options={READONLY_OPTION: True})
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        with self.session_scope(readonly=True) as session:
            session.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        """Release pooled connections."""
        if hasattr(self, "_engine"):
            self._engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = ["RouteStore"]
