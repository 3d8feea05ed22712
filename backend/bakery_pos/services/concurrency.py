# Overview: Retry helper for short database operations that can hit transient lock errors.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError

from ..extensions import db


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError ("database is locked" on SQLite, deadlocks
    elsewhere). The session is rolled back before each retry so `func`
    must redo all of its work.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
