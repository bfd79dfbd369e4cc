from __future__ import annotations

from datetime import date
import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.database import get_dialect_name
from app.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


def _lock_key(barber_id: str, booking_date: date) -> str:
    return f"barber:{barber_id}:calendar:{booking_date.isoformat()}"


def acquire_calendar_lock(db: Session, barber_id: str, booking_date: date) -> None:
    """
    Serialise writers of one barber's calendar day for the rest of the transaction.

    PostgreSQL takes a transaction-scoped advisory lock that is released on
    commit or rollback. SQLite sessions already hold the database write lock
    from BEGIN IMMEDIATE, so there is nothing extra to take.
    """
    dialect = get_dialect_name(db)
    key = _lock_key(barber_id, booking_date)
    if dialect == "postgresql":
        db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
        prometheus_metrics.record_calendar_lock(dialect, "acquired")
        logger.debug("calendar_lock_acquired", extra={"lock_key": key})
        return
    if dialect != "sqlite":
        logger.warning(
            "calendar_lock_unsupported_dialect",
            extra={"dialect": dialect, "lock_key": key},
        )
        prometheus_metrics.record_calendar_lock(dialect, "unsupported")
        return
    prometheus_metrics.record_calendar_lock(dialect, "implicit")
