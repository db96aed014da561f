# Overview: Service-layer allocation of human-readable document numbers.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..models import DocumentSequence


ORDER_DOCUMENT_TYPE = "ORDER"
ORDER_PREFIX = "ORD"


class OrderNumberGenerator:
    """
    Allocates ORD-YYYYMMDD-NNNNNN numbers from a per-day database counter.

    The counter is bumped with a single UPDATE inside the caller's
    transaction, so two checkouts can never receive the same number and a
    rolled-back checkout gives its number back.
    """

    def __init__(self, *, prefix: str = ORDER_PREFIX, pad: int = 6):
        self.prefix = prefix
        self.pad = pad

    def next_order_number(self, session, now: datetime) -> str:
        period = now.strftime("%Y%m%d")
        number = next_document_number(session, document_type=ORDER_DOCUMENT_TYPE, period=period)
        return f"{self.prefix}-{period}-{number:0{self.pad}d}"


def next_document_number(session, *, document_type: str, period: str) -> int:
    """
    Atomically allocate the next number for (document_type, period).

    The first allocation of a period inserts the counter row inside a
    SAVEPOINT; if a concurrent writer inserted it first, the savepoint is
    rolled back and the increment is retried against the existing row.
    """
    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.period == period,
        )
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = session.execute(stmt)
    if not result.rowcount:
        try:
            with session.begin_nested():
                session.add(DocumentSequence(document_type=document_type, period=period, next_number=2))
            return 1
        except IntegrityError:
            result = session.execute(stmt)
            if not result.rowcount:
                raise

    current = (
        session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type, period=period)
        .scalar()
    )
    return current - 1
