# backend/alembic/versions/001_booking_core.py
"""Booking core - customers, barbers, services, calendar, bookings, payments

Revision ID: 001_booking_core
Revises:
Create Date: 2026-10-18 00:00:00.000000

Bookings store barber, date and time range directly together with a price
and duration snapshot. Non-cancelled bookings of one barber can never
overlap: a partial unique index on the start slot guards every dialect and,
on PostgreSQL, an exclusion constraint over the [start, end) span guards
the whole range.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _create_extension_prefer_extensions_schema(extension_name: str) -> None:
    """Create extension using extensions schema when available."""

    bind = op.get_bind()
    if bind is None or bind.dialect.name != "postgresql":
        return

    op.execute(
        f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_extension WHERE extname = '{extension_name}') THEN
                IF EXISTS (SELECT 1 FROM pg_namespace WHERE nspname = 'extensions') THEN
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name} WITH SCHEMA extensions';
                ELSE
                    EXECUTE 'CREATE EXTENSION IF NOT EXISTS {extension_name}';
                END IF;
            END IF;
        END $$;
        """
    )


def upgrade() -> None:
    """Create booking core tables."""
    bind = op.get_bind()
    is_postgres = bind is not None and bind.dialect.name == "postgresql"

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="customer"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("blacklisted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("blacklist_reason", sa.Text(), nullable=True),
        sa.Column("blacklisted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "barbers",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_barbers_id", "barbers", ["id"])

    op.create_table(
        "services",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
        sa.CheckConstraint("price >= 0", name="check_service_price_non_negative"),
        sa.CheckConstraint(
            "deposit_percentage BETWEEN 0 AND 100", name="check_service_deposit_percentage"
        ),
    )
    op.create_index("ix_services_id", "services", ["id"])

    op.create_table(
        "barber_availability",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("barber_id", sa.String(26), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.ForeignKeyConstraint(["barber_id"], ["barbers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_barber_availability_day"),
    )
    op.create_index(
        "idx_barber_availability_barber_day", "barber_availability", ["barber_id", "day_of_week"]
    )

    op.create_table(
        "barber_breaks",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("barber_id", sa.String(26), nullable=False),
        sa.Column("break_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("label", sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(["barber_id"], ["barbers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_barber_breaks_barber_date", "barber_breaks", ["barber_id", "break_date"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=False),
        sa.Column("barber_id", sa.String(26), nullable=False),
        sa.Column("service_id", sa.String(26), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        # Service snapshot
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("service_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column(
            "payment_status", sa.String(20), nullable=False, server_default="DEPOSIT_PENDING"
        ),
        sa.Column("payment_method", sa.String(30), nullable=True),
        sa.Column("deposit_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("outstanding_balance", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancellation_reason", sa.String(50), nullable=True),
        sa.Column("no_show_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["customer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["barber_id"], ["barbers.id"]),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELLED', 'NO_SHOW')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('PENDING', 'DEPOSIT_PENDING', 'DEPOSIT_PAID', "
            "'FULLY_PAID', 'CANCELLED', 'REFUNDED')",
            name="ck_bookings_payment_status",
        ),
        sa.CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        sa.CheckConstraint("deposit_amount >= 0", name="check_deposit_non_negative"),
        sa.CheckConstraint("outstanding_balance >= 0", name="check_outstanding_non_negative"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_expires_at", "bookings", ["expires_at"])
    op.create_index("idx_bookings_barber_date", "bookings", ["barber_id", "booking_date"])
    op.create_index("idx_bookings_status_expires", "bookings", ["status", "expires_at"])
    op.create_index(
        "uq_bookings_barber_slot_active",
        "bookings",
        ["barber_id", "booking_date", "start_time"],
        unique=True,
        sqlite_where=sa.text("status <> 'CANCELLED'"),
        postgresql_where=sa.text("status <> 'CANCELLED'"),
    )

    if is_postgres:
        _create_extension_prefer_extensions_schema("btree_gist")
        # An end_time of 00:00 closes the span at midnight of the next day
        op.execute(
            """
            ALTER TABLE bookings
              ADD COLUMN IF NOT EXISTS booking_span tsrange
              GENERATED ALWAYS AS (
                tsrange(
                  (booking_date::timestamp + start_time),
                  CASE
                    WHEN end_time = time '00:00'
                      THEN (booking_date::timestamp + interval '1 day')
                    ELSE (booking_date::timestamp + end_time)
                  END,
                  '[)'
                )
              ) STORED
            """
        )
        op.execute(
            """
            ALTER TABLE bookings
              ADD CONSTRAINT bookings_no_overlap_per_barber
              EXCLUDE USING gist (
                barber_id WITH =,
                booking_span WITH &&
              )
              WHERE (status <> 'CANCELLED')
            """
        )

    op.create_table(
        "payments",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("gateway_reference", sa.String(255), nullable=True),
        sa.Column("payment_method", sa.String(30), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("gateway_reference"),
    )
    op.create_index("idx_payments_booking_id", "payments", ["booking_id"])


def downgrade() -> None:
    """Drop booking core tables."""
    bind = op.get_bind()
    if bind is not None and bind.dialect.name == "postgresql":
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap_per_barber")

    op.drop_table("payments")
    op.drop_table("bookings")
    op.drop_table("barber_breaks")
    op.drop_table("barber_availability")
    op.drop_table("services")
    op.drop_table("barbers")
    op.drop_table("users")
