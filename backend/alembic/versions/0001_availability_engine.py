"""availability engine tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "weekly_schedule_days",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("business_id", sa.Integer, nullable=False, index=True),
        sa.Column("weekday", sa.Integer, nullable=False),
        sa.Column("is_available", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("start_time", sa.String(5), nullable=False, server_default=sa.text("'09:00'")),
        sa.Column("end_time", sa.String(5), nullable=False, server_default=sa.text("'17:00'")),
        sa.Column("updated_at", sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("business_id", "weekday", name="uq_schedule_business_weekday"),
    )

    op.create_table(
        "slot_overrides",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("business_id", sa.Integer, nullable=False, index=True),
        sa.Column("weekday", sa.Integer, nullable=False),
        sa.Column("slot_time", sa.String(5), nullable=False),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint(
            "business_id", "weekday", "slot_time", name="uq_override_business_weekday_time"
        ),
    )

    op.create_table(
        "availability_blocks",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("business_id", sa.Integer, nullable=False, index=True),
        sa.Column("block_date", sa.Date, nullable=False, index=True),
        sa.Column("start_time", sa.String(5)),
        sa.Column("end_time", sa.String(5)),
        sa.Column("reason", sa.Text),
        sa.Column("is_all_day", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("business_id", sa.Integer, nullable=False, index=True),
        sa.Column("slot_date", sa.Date, nullable=False),
        sa.Column("slot_time", sa.String(5), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False, server_default=sa.text("60")),
        sa.Column("order_id", sa.String(64)),
        sa.Column("lock_id", sa.String(32), unique=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("business_id", "slot_date", "slot_time", name="uq_booking_business_slot"),
    )

    op.create_table(
        "reservation_locks",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("lock_id", sa.String(32), nullable=False, unique=True),
        sa.Column("business_id", sa.Integer, nullable=False),
        sa.Column("slot_date", sa.Date, nullable=False),
        sa.Column("slot_time", sa.String(5), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False, server_default=sa.text("60")),
        sa.Column("state", sa.String(16), nullable=False, server_default=sa.text("'held'")),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("expires_at", sa.DateTime, nullable=False, index=True),
        sa.UniqueConstraint("business_id", "slot_date", "slot_time", name="uq_lock_business_slot"),
    )


def downgrade():
    op.drop_table("reservation_locks")
    op.drop_table("bookings")
    op.drop_table("availability_blocks")
    op.drop_table("slot_overrides")
    op.drop_table("weekly_schedule_days")
