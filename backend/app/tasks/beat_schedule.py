# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for Trim.

The hold sweep releases slots held by bookings whose deposit never arrived.
The reminder job runs once a day in shop time and reminds customers about
the next day's bookings.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

from celery.schedules import crontab

from app.core.config import settings


def get_beat_schedule(interval_seconds: Optional[int] = None) -> Dict[str, Dict[str, Any]]:
    """
    Build the beat schedule.

    Args:
        interval_seconds: Sweep interval; defaults to settings.hold_sweep_interval_seconds
    """
    interval = interval_seconds or settings.hold_sweep_interval_seconds
    return {
        "expire-stale-booking-holds": {
            "task": "app.tasks.booking_tasks.expire_stale_holds",
            "schedule": timedelta(seconds=interval),
            "options": {
                "queue": "bookings",
                # A sweep that waited longer than one interval is superseded by the next
                "expires": interval,
            },
        },
        "send-daily-booking-reminders": {
            "task": "app.tasks.booking_tasks.send_daily_reminders",
            "schedule": crontab(hour=settings.reminder_hour, minute=settings.reminder_minute),
            "options": {"queue": "bookings", "expires": 3600},
        },
    }
