# backend/app/core/config.py
from decimal import Decimal
import logging
import os
from pathlib import Path
from typing import Annotated, Any, Literal, Set

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
import pytz

from .constants import BRAND_NAME


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    """Runtime configuration for the booking core."""

    app_name: str = Field(default=BRAND_NAME, description="Display name used in logs")
    environment: Literal["development", "test", "production"] = Field(
        default="development", description="Deployment environment"
    )
    is_testing: bool = Field(default=False, description="Set by the test suite")

    database_url: str = Field(
        default="sqlite:///./trim_booking.db",
        description="SQLAlchemy URL for the booking database",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Broker URL for Celery"
    )

    # Wall-clock interpretation: the shop runs in a single local timezone
    shop_timezone: str = Field(default="Europe/Dublin", description="IANA timezone of the shop")

    # Booking rules
    booking_hold_minutes: int = Field(
        default=10, ge=1, description="Minutes a PENDING booking holds its slot awaiting payment"
    )
    slot_interval_minutes: int = Field(
        default=15, ge=1, le=240, description="Granularity of offered start times"
    )
    deposit_rounding_step: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Round deposits to the nearest multiple of this amount (0 disables)",
    )
    pay_in_shop_methods: Annotated[Set[str], NoDecode] = Field(
        default_factory=lambda: {"pay_in_shop"},
        description="Payment method identifiers that take no online deposit",
    )

    # Hold-expiry reconciler
    hold_sweep_interval_seconds: int = Field(
        default=60, ge=5, description="How often the stale-hold sweep runs"
    )
    hold_sweep_batch_size: int = Field(
        default=200, ge=1, description="Maximum holds cancelled per sweep"
    )

    # Daily reminders for the next day's bookings, in shop time
    reminder_hour: int = Field(default=10, ge=0, le=23, description="Hour the reminder job runs")
    reminder_minute: int = Field(default=0, ge=0, le=59, description="Minute the reminder job runs")

    # Payment gateway
    payment_succeeded_event_types: Annotated[Set[str], NoDecode] = Field(
        default_factory=lambda: {"payment_intent.succeeded"},
        description="Gateway event types that confirm a deposit",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("shop_timezone")
    @classmethod
    def validate_shop_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("pay_in_shop_methods", "payment_succeeded_event_types", mode="before")
    @classmethod
    def split_csv(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {item.strip() for item in value.split(",") if item.strip()}
        return value

    def get_database_url(self) -> str:
        """Return the database URL, preferring TEST_DATABASE_URL under tests."""
        if self.is_testing or is_running_tests():
            test_url = os.getenv("TEST_DATABASE_URL")
            if test_url:
                return test_url
        return self.database_url


settings = Settings()
