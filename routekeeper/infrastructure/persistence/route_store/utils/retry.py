"""Retry helper for read-only store operations."""

import functools
import logging

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


def retry_read_once(func):
    """Retry a read-only method once when the datastore reports a transient error.

    Write paths must not use this decorator: a failed write is surfaced to the
    caller instead of being replayed.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            logger.warning(f"Transient error in {func.__name__}, retrying once: {e}")
            return func(*args, **kwargs)

    return wrapper
