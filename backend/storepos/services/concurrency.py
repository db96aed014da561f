# Overview: Transaction scoping and row locking shared by the inventory, order and refund engines.

from __future__ import annotations

from contextlib import contextmanager


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The conditional UPDATEs in the ledger and refund engine do not rely on it.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work(session):
    """
    Scope one atomic business operation.

    Commits when the block returns normally; rolls back and re-raises on any
    exception, so callers never observe a partial checkout, refund or
    adjustment. Nothing is retried here: a failed unit surfaces to the caller.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
