"""
Database error classification.

Only deadlocks are treated as transient: a conflict on the dedup key is
resolved inside the upsert statement, and every other database error is
fatal for the transaction that raised it.
"""

from sqlalchemy.exc import DBAPIError

# PostgreSQL SQLSTATE for ``deadlock_detected``
DEADLOCK_SQLSTATE = "40P01"


def sqlstate_of(exc: BaseException) -> str | None:
    """Return the SQLSTATE carried by a DB-API error, if any."""
    orig = getattr(exc, "orig", exc)
    # psycopg2 exposes ``pgcode``, psycopg 3 exposes ``sqlstate``
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_deadlock(exc: BaseException) -> bool:
    """True when ``exc`` is the database's deadlock signal."""
    return isinstance(exc, DBAPIError) and sqlstate_of(exc) == DEADLOCK_SQLSTATE
