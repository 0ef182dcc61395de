# Overview: Service-layer helpers for row locking and retrying store operations.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on transient failures.

    Retries on OperationalError (dropped connections, locks) and
    StaleDataError (optimistic locking conflicts). Anything else, and the
    last transient failure, propagates.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            current_app.logger.warning(
                "Transient store error (attempt %d/%d), retrying in %.2fs: %s",
                attempt + 1, attempts, delay, exc,
            )
            time.sleep(delay)
    raise ValueError("attempts must be >= 1")
