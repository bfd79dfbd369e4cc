"""
Hold-expiry reconciler.

Cancels PENDING bookings whose payment hold ran out, releasing their slots.
Each hold is cancelled through BookingService.expire_hold, the same
transition explicit cancellation uses, in its own transaction, so one
failure never aborts the rest of the batch.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_service import BookingService

logger = logging.getLogger(__name__)


class HoldExpiryService(BaseService):
    """Sweeps stale booking holds."""

    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        booking_service: Optional[BookingService] = None,
        batch_size: Optional[int] = None,
    ):
        super().__init__(db, clock)
        self.booking_service = booking_service or BookingService(db, clock=self.clock)
        self.batch_size = batch_size or settings.hold_sweep_batch_size
        self.repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("expire_stale_holds")
    def expire_stale_holds(self, batch_size: Optional[int] = None) -> Dict[str, Any]:
        """
        Cancel every PENDING booking whose hold expired before now.

        Running it twice is safe: a hold cancelled by the first run is no
        longer PENDING and is not selected again.

        Returns:
            Summary with scanned, cancelled, skipped and failed counts
        """
        now = self.clock.now()
        limit = batch_size or self.batch_size
        with self.transaction():
            booking_ids = self.repository.find_expired_hold_ids(now, limit)

        cancelled = skipped = failed = 0
        for booking_id in booking_ids:
            try:
                if self.booking_service.expire_hold(booking_id):
                    cancelled += 1
                else:
                    skipped += 1
            except Exception:
                failed += 1
                self.logger.exception(
                    "Failed to cancel expired booking", extra={"booking_id": booking_id}
                )

        prometheus_metrics.record_hold_expiry("cancelled", cancelled)
        prometheus_metrics.record_hold_expiry("skipped", skipped)
        prometheus_metrics.record_hold_expiry("failed", failed)

        if cancelled or failed:
            self.logger.info(
                f"Hold sweep cancelled {cancelled} expired bookings",
                extra={"scanned": len(booking_ids), "skipped": skipped, "failed": failed},
            )

        return {
            "scanned": len(booking_ids),
            "cancelled": cancelled,
            "skipped": skipped,
            "failed": failed,
            "processed_at": now.isoformat(),
        }
