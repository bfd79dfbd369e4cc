"""
Booking lifecycle transition table.

Every lifecycle operation asks this table whether it may run from the
booking's current status and what status it leaves behind. Rejections carry
an operation-specific message so callers see why the booking cannot change.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from .exceptions import InvalidTransitionException
from .enums import BookingStatus


class BookingAction(str, Enum):
    """Operations that move (or keep) a booking in the lifecycle."""

    CONFIRM = "confirm"
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"
    EXPIRE = "expire"
    COMPLETE = "complete"
    NO_SHOW = "no_show"
    MARK_PAID = "mark_paid"


P = BookingStatus.PENDING
C = BookingStatus.CONFIRMED
D = BookingStatus.COMPLETED
X = BookingStatus.CANCELLED
N = BookingStatus.NO_SHOW

# (current status, action) -> resulting status
TRANSITIONS: Dict[Tuple[BookingStatus, BookingAction], BookingStatus] = {
    (P, BookingAction.CONFIRM): C,
    (P, BookingAction.RESCHEDULE): P,
    (C, BookingAction.RESCHEDULE): C,
    (N, BookingAction.RESCHEDULE): N,
    (P, BookingAction.CANCEL): X,
    (C, BookingAction.CANCEL): X,
    (N, BookingAction.CANCEL): X,
    (P, BookingAction.EXPIRE): X,
    (P, BookingAction.COMPLETE): D,
    (C, BookingAction.COMPLETE): D,
    (N, BookingAction.COMPLETE): D,
    (P, BookingAction.NO_SHOW): N,
    (C, BookingAction.NO_SHOW): N,
    (P, BookingAction.MARK_PAID): P,
    (C, BookingAction.MARK_PAID): C,
    (N, BookingAction.MARK_PAID): N,
    (D, BookingAction.MARK_PAID): D,
}

# Statuses whose time range still occupies the barber's calendar
BLOCKING_STATUSES = frozenset(
    {
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
    }
)

_REJECTION_MESSAGES: Dict[Tuple[BookingStatus, BookingAction], str] = {
    (D, BookingAction.RESCHEDULE): "Cannot update a completed booking",
    (X, BookingAction.RESCHEDULE): "Cannot update a cancelled booking",
    (X, BookingAction.CANCEL): "Booking is already cancelled",
    (D, BookingAction.CANCEL): "Cannot cancel a completed booking",
    (X, BookingAction.COMPLETE): "Cannot complete a cancelled booking",
    (D, BookingAction.COMPLETE): "Booking is already completed",
    (X, BookingAction.NO_SHOW): "Cannot mark cancelled booking as no-show",
    (D, BookingAction.NO_SHOW): "Cannot mark completed booking as no-show",
    (N, BookingAction.NO_SHOW): "Booking is already marked as no-show",
    (X, BookingAction.MARK_PAID): "Cannot mark cancelled booking as paid",
}


def coerce_status(status: "BookingStatus | str") -> BookingStatus:
    return status if isinstance(status, BookingStatus) else BookingStatus(status)


def next_status(status: "BookingStatus | str", action: BookingAction) -> Optional[BookingStatus]:
    """Return the resulting status, or None when the transition is not allowed."""
    return TRANSITIONS.get((coerce_status(status), action))


def can_transition(status: "BookingStatus | str", action: BookingAction) -> bool:
    return next_status(status, action) is not None


def assert_transition(status: "BookingStatus | str", action: BookingAction) -> BookingStatus:
    """
    Return the resulting status for ``action`` or raise.

    Raises:
        InvalidTransitionException: if ``action`` is not allowed from ``status``
    """
    current = coerce_status(status)
    result = TRANSITIONS.get((current, action))
    if result is None:
        message = _REJECTION_MESSAGES.get(
            (current, action),
            f"Cannot {action.value.replace('_', ' ')} a booking that is {current.value}",
        )
        raise InvalidTransitionException(message, current_status=current.value, action=action.value)
    return result
