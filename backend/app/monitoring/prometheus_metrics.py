"""
Prometheus metrics module for the Trim booking core.

Service timings come from the @measure_operation decorator; the domain
counters below track slot contention, hold expiry and payment callbacks.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "trim_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "trim_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "trim_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "trim_booking_conflicts_total",
    "Booking writes rejected because the slot was taken",
    ["operation", "source"],  # source: recheck | integrity | lock
    registry=REGISTRY,
)

calendar_lock_total = Counter(
    "trim_calendar_lock_total",
    "Calendar lock acquisitions by dialect and outcome",
    ["dialect", "outcome"],
    registry=REGISTRY,
)

hold_expiry_total = Counter(
    "trim_hold_expiry_total",
    "Outcomes of the stale-hold sweep per booking",
    ["outcome"],  # cancelled | skipped | failed
    registry=REGISTRY,
)

payment_webhook_total = Counter(
    "trim_payment_webhook_total",
    "Payment gateway callbacks by outcome",
    ["outcome"],  # confirmed | duplicate | ignored | late | failed
    registry=REGISTRY,
)

notifications_total = Counter(
    "trim_notifications_total",
    "Post-commit notification dispatches by outcome",
    ["event_type", "status"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_conflict(operation: str, source: str) -> None:
        booking_conflicts_total.labels(operation=operation, source=source).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_calendar_lock(dialect: str, outcome: str) -> None:
        calendar_lock_total.labels(dialect=dialect, outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_hold_expiry(outcome: str, count: int = 1) -> None:
        if count <= 0:
            return
        hold_expiry_total.labels(outcome=outcome).inc(count)
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_payment_webhook(outcome: str) -> None:
        payment_webhook_total.labels(outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_notification(event_type: str, status: str) -> None:
        notifications_total.labels(event_type=event_type, status=status).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        now = monotonic()
        with PrometheusMetrics._cache_lock:
            payload = PrometheusMetrics._cache_payload
            ts = PrometheusMetrics._cache_ts
            if payload is None or ts is None or (now - ts) > PrometheusMetrics._cache_ttl_seconds:
                payload = cast(bytes, generate_latest(REGISTRY))
                PrometheusMetrics._cache_payload = payload
                PrometheusMetrics._cache_ts = now
        return payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        """Invalidate cached metrics so next scrape refreshes."""
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
