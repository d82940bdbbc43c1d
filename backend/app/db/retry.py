"""
Bounded retry for transient database connection errors.
"""
from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logger import logger

T = TypeVar("T")

_CONNECTION_MARKERS = ("closed", "connection", "terminating", "timeout expired")


def is_transient_db_error(exc: BaseException) -> bool:
    if isinstance(exc, DisconnectionError):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    if isinstance(exc, DBAPIError):
        message = str(exc.orig or exc).lower()
        return any(marker in message for marker in _CONNECTION_MARKERS)
    return False


def with_retry(
    operation: Callable[[], T],
    db: Optional[Session] = None,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
) -> T:
    """
    Run ``operation`` and retry it on transient connection errors.

    Waits ``base_delay * attempt`` seconds between attempts. The session, when
    given, is rolled back before each retry so the next attempt starts on a
    fresh transaction. Any other error propagates immediately.
    """
    attempts = max_attempts or settings.DB_RETRY_MAX_ATTEMPTS
    delay = settings.DB_RETRY_BASE_DELAY_SECONDS if base_delay is None else base_delay

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except (DBAPIError, DisconnectionError) as exc:
            if not is_transient_db_error(exc) or attempt >= attempts:
                raise
            if db is not None:
                db.rollback()
            sleep_s = delay * attempt
            logger.warning(
                "Database connection error (attempt %s/%s), retrying in %.1fs: %s",
                attempt, attempts, sleep_s, exc,
            )
            time.sleep(sleep_s)

    raise RuntimeError("with_retry exhausted without result")  # pragma: no cover
