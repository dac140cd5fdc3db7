"""Initial cabin booking schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "cabins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name_fa", sa.String(length=255), nullable=False),
        sa.Column("name_en", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False, unique=True),
        sa.Column("size_sqm", sa.Integer(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("base_price_irr", sa.Numeric(14, 0), nullable=False),
        sa.Column("base_price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    discount_type_enum = sa.Enum("percent", "fixed", name="discounttype")
    op.create_table(
        "coupons",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("discount_type", discount_type_enum, nullable=False),
        sa.Column("discount_value", sa.Numeric(14, 2), nullable=False),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("used_count >= 0", name="ck_coupons_used_count"),
        sa.CheckConstraint("discount_value >= 0", name="ck_coupons_discount_value"),
    )

    season_type_enum = sa.Enum(
        "off_season", "regular", "high_season", "peak", "special", name="seasontype"
    )
    op.create_table(
        "seasonal_prices",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "cabin_id",
            sa.Integer(),
            sa.ForeignKey("cabins.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("season_name_fa", sa.String(length=255), nullable=False),
        sa.Column("season_name_en", sa.String(length=255), nullable=False),
        sa.Column("season_type", season_type_enum, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("price_irr", sa.Numeric(14, 0), nullable=False),
        sa.Column("price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("start_date <= end_date", name="ck_seasonal_prices_range"),
    )
    op.create_index(
        "ix_seasonal_prices_cabin_range",
        "seasonal_prices",
        ["cabin_id", "start_date", "end_date"],
    )

    op.create_table(
        "daily_prices",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "cabin_id",
            sa.Integer(),
            sa.ForeignKey("cabins.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("price_irr", sa.Numeric(14, 0), nullable=False),
        sa.Column("price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column("reason_fa", sa.String(length=255), nullable=True),
        sa.Column("reason_en", sa.String(length=255), nullable=True),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_daily_prices_date", "daily_prices", ["date"])

    op.create_table(
        "blocked_dates",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "cabin_id",
            sa.Integer(),
            sa.ForeignKey("cabins.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("reason_fa", sa.String(length=255), nullable=True),
        sa.Column("reason_en", sa.String(length=255), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_blocked_dates_date", "blocked_dates", ["date"])

    reservation_status_enum = sa.Enum(
        "pending",
        "pending_payment",
        "confirmed",
        "cancelled",
        "completed",
        name="reservationstatus",
    )
    payment_status_enum = sa.Enum(
        "unpaid", "pending", "paid", "refunded", "failed", name="paymentstatus"
    )
    payment_method_enum = sa.Enum(
        "online_zarinpal",
        "online_paypal",
        "crypto_usdt",
        "cash_on_arrival",
        name="paymentmethod",
    )
    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "cabin_id",
            sa.Integer(),
            sa.ForeignKey("cabins.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("guest_name", sa.String(length=255), nullable=False),
        sa.Column("guest_phone", sa.String(length=32), nullable=False),
        sa.Column("guest_email", sa.String(length=255), nullable=True),
        sa.Column("guests_count", sa.Integer(), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("nights_count", sa.Integer(), nullable=False),
        sa.Column("calculated_price_irr", sa.Numeric(14, 0), nullable=False),
        sa.Column("calculated_price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "discount_amount_irr", sa.Numeric(14, 0), nullable=False, server_default="0"
        ),
        sa.Column(
            "discount_amount_usd", sa.Numeric(10, 2), nullable=False, server_default="0"
        ),
        sa.Column("final_price_irr", sa.Numeric(14, 0), nullable=False),
        sa.Column("final_price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "coupon_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("coupons.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("coupon_code", sa.String(length=64), nullable=True),
        sa.Column("payment_method", payment_method_enum, nullable=False),
        sa.Column(
            "payment_status",
            payment_status_enum,
            nullable=False,
            server_default="unpaid",
        ),
        sa.Column("payment_reference", sa.String(length=255), nullable=True),
        sa.Column("payment_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_verified_by", sa.String(length=255), nullable=True),
        sa.Column(
            "status",
            reservation_status_enum,
            nullable=False,
            server_default="pending",
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "check_in_date < check_out_date", name="ck_reservations_date_order"
        ),
        sa.CheckConstraint("guests_count > 0", name="ck_reservations_guests_positive"),
    )
    op.create_index(
        "ix_reservations_cabin_dates",
        "reservations",
        ["cabin_id", "check_in_date", "check_out_date"],
    )

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        # Half-open ranges: a stay may start on another stay's check-out day.
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE reservations
            ADD CONSTRAINT ex_reservations_no_overlap
            EXCLUDE USING gist (
                cabin_id WITH =,
                daterange(check_in_date, check_out_date, '[)') WITH &&
            )
            WHERE (status IN ('pending', 'pending_payment', 'confirmed'))
            """
        )


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(
            "ALTER TABLE reservations DROP CONSTRAINT IF EXISTS ex_reservations_no_overlap"
        )
    op.drop_index("ix_reservations_cabin_dates", table_name="reservations")
    op.drop_table("reservations")
    op.drop_index("ix_blocked_dates_date", table_name="blocked_dates")
    op.drop_table("blocked_dates")
    op.drop_index("ix_daily_prices_date", table_name="daily_prices")
    op.drop_table("daily_prices")
    op.drop_index("ix_seasonal_prices_cabin_range", table_name="seasonal_prices")
    op.drop_table("seasonal_prices")
    op.drop_table("coupons")
    op.drop_table("cabins")
    if bind.dialect.name == "postgresql":
        for enum_name in (
            "paymentmethod",
            "paymentstatus",
            "reservationstatus",
            "seasontype",
            "discounttype",
        ):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
