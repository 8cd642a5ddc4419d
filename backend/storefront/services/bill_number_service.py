# Overview: Allocates human-readable bill numbers from a per-day sequence.

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import BillSequence
from storefront.time_utils import utcnow


BILL_NUMBER_PAD = 5
RETURN_BILL_PREFIX = "RTN-"


def format_bill_number(prefix: str, sequence_date: str, number: int, pad: int = BILL_NUMBER_PAD) -> str:
    return f"{prefix}-{sequence_date}-{number:0{pad}d}"


def return_bill_number(original_bill_no: str) -> str:
    return f"{RETURN_BILL_PREFIX}{original_bill_no}"


def _increment(sequence_date: str) -> int | None:
    stmt = (
        update(BillSequence)
        .where(BillSequence.sequence_date == sequence_date)
        .values(next_number=BillSequence.next_number + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    db.session.flush()
    current = (
        db.session.query(BillSequence.next_number)
        .filter_by(sequence_date=sequence_date)
        .scalar()
    )
    return current - 1


def next_bill_number(now: datetime | None = None) -> str:
    """
    Atomically allocate the next bill number for today: PREFIX-YYYYMMDD-NNNNN.

    The UPDATE takes a write lock on the day's sequence row, so two checkouts
    can never read the same number. The first sale of a day inserts the row;
    if another writer inserts it first we fall back to the increment path.

    Runs in the caller's transaction and does not commit. A rolled-back sale
    leaves a gap in the sequence, never a duplicate.
    """
    now = now or utcnow()
    sequence_date = now.strftime("%Y%m%d")
    prefix = current_app.config.get("BILL_PREFIX", "REDA")

    number = _increment(sequence_date)
    if number is None:
        try:
            with db.session.begin_nested():
                db.session.add(BillSequence(sequence_date=sequence_date, next_number=2))
            number = 1
        except IntegrityError:
            number = _increment(sequence_date)
            if number is None:
                raise

    return format_bill_number(prefix, sequence_date, number)
