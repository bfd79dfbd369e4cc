# backend/app/tasks/__init__.py
"""
Celery tasks package for Trim.

- Hold sweep releasing expired booking holds
- Booking notification delivery

Run the worker with: celery -A app.tasks worker --beat
"""

from app.tasks.booking_tasks import expire_stale_holds
from app.tasks.celery_app import BaseTask, celery_app
from app.tasks.notification_tasks import send_booking_notification

__all__ = [
    "celery_app",
    "BaseTask",
    "expire_stale_holds",
    "send_booking_notification",
]
