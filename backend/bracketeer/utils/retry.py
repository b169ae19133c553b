"""
Bounded retry policy for the persistence boundary.

Only ``OperationalError`` (locked database, dropped connection) is retried; the unit of
work is re-run from scratch after a rollback, so it must be idempotent.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from bracketeer.config import DB_RETRY_ATTEMPTS, DB_RETRY_BACKOFF_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(
    unit_of_work: Callable[[], T],
    session: Optional[Session] = None,
    attempts: int = DB_RETRY_ATTEMPTS,
    backoff_seconds: float = DB_RETRY_BACKOFF_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``unit_of_work``; on OperationalError roll back and retry with exponential backoff."""
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    delay = backoff_seconds
    for attempt in range(1, attempts + 1):
        try:
            return unit_of_work()
        except OperationalError as exc:
            if session is not None:
                session.rollback()
            if attempt == attempts:
                logger.error("Persistence failed after %s attempts: %s", attempts, exc)
                raise
            logger.warning("Persistence attempt %s/%s failed (%s); retrying in %.3fs", attempt, attempts, exc, delay)
            sleep(delay)
            delay *= 2
    raise AssertionError("unreachable")
