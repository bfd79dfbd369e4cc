"""
Time source for the booking core.

All past-date and hold-expiry checks go through a ``Clock`` so tests can
pin "now" instead of sleeping. Times are naive wall-clock values in the
shop's timezone; bookings store local dates and times without offsets.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Protocol

import pytz

from .config import settings


class Clock(Protocol):
    """Anything that can tell the current shop-local wall-clock time."""

    def now(self) -> datetime:
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Reads the real clock and converts it to the shop's timezone."""

    def __init__(self, timezone_name: Optional[str] = None) -> None:
        self.timezone = pytz.timezone(timezone_name or settings.shop_timezone)

    def now(self) -> datetime:
        return datetime.now(self.timezone).replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """
    A clock pinned to a given instant.

    Usage:
        clock = FixedClock(datetime(2030, 1, 7, 9, 0))
        clock.advance(minutes=11)
    """

    def __init__(self, current: datetime) -> None:
        if current.tzinfo is not None:
            current = current.replace(tzinfo=None)
        self._current = current

    def now(self) -> datetime:
        return self._current

    def today(self) -> date:
        return self._current.date()

    def set(self, current: datetime) -> None:
        self._current = current.replace(tzinfo=None)

    def advance(self, **delta: float) -> datetime:
        self._current = self._current + timedelta(**delta)
        return self._current


_default_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Return the process-wide default clock."""
    return _default_clock
