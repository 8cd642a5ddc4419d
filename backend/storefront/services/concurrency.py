# Overview: Retry helper for write transactions that can hit lock contention.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError

from ..extensions import db


def run_with_retry(op, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a write transaction, retrying when the database reports lock
    contention ("database is locked", deadlock).

    The session is rolled back before every retry so op always starts from a
    clean transaction. Domain errors raised by op are never retried.
    """
    attempt = 1
    while True:
        try:
            return op()
        except OperationalError:
            db.session.rollback()
            if attempt == attempts:
                raise
            delay = backoff_base * 2 ** (attempt - 1)
            current_app.logger.warning(
                "Write contention (attempt %s of %s), retrying in %.2fs", attempt, attempts, delay
            )
            time.sleep(delay)
            attempt += 1
