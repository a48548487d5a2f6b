"""Initial schema for the tailor shop backend.

Revision ID: 4a1c9e2d7b10
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4a1c9e2d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("customer", "admin", name="userrole")
order_status = sa.Enum("Pending", "Ready to Check", "Completed", "Finished", "Cancelled", name="orderstatus")
notification_audience = sa.Enum("customer", "admins", name="notificationaudience")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("role", user_role, nullable=False, server_default="customer"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "service_types",
        sa.Column("service_type_id", sa.String(length=26), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("downpayment_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("downpayment_amount >= 0", name="ck_service_types_downpayment_positive"),
    )

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=26), primary_key=True),
        sa.Column("user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("service_type", sa.String(length=120), nullable=False),
        sa.Column("sizes", sa.Text(), nullable=False),
        sa.Column("total_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("design_image", sa.String(length=255)),
        sa.Column("gcash_proof", sa.String(length=255)),
        sa.Column("refund_image", sa.String(length=255)),
        sa.Column("preferred_due_date", sa.Date()),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("state", sa.String(length=20), server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_appointments_user_id", "appointments", ["user_id"])
    op.create_index("ix_appointments_slot", "appointments", ["appointment_date", "appointment_time"])
    op.create_index("ix_appointments_status_state", "appointments", ["status", "state"])

    op.create_table(
        "orders",
        sa.Column("order_id", sa.String(length=26), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=26),
            sa.ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("queue_number", sa.Integer()),
        sa.Column("status", order_status, nullable=False, server_default="Pending"),
        sa.Column("handled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("scheduled_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("total_amount", sa.Numeric(10, 2)),
        sa.Column("check_appointment_date", sa.Date()),
        sa.Column("check_appointment_time", sa.Time()),
        sa.Column("pickup_appointment_date", sa.Date()),
        sa.Column("pickup_appointment_time", sa.Time()),
        *_timestamps(),
    )
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_check_slot", "orders", ["check_appointment_date", "check_appointment_time"])
    op.create_index("ix_orders_pickup_slot", "orders", ["pickup_appointment_date", "pickup_appointment_time"])

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.String(length=26), primary_key=True),
        sa.Column("audience", notification_audience, nullable=False),
        sa.Column("user_id", sa.String(length=26), sa.ForeignKey("users.user_id", ondelete="CASCADE")),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text()),
        sa.Column("data", sa.JSON()),
        sa.Column("read_at", sa.DateTime(timezone=True)),
        sa.Column("is_viewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_notifications_audience_user", "notifications", ["audience", "user_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_audience_user", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_orders_pickup_slot", table_name="orders")
    op.drop_index("ix_orders_check_slot", table_name="orders")
    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_appointments_status_state", table_name="appointments")
    op.drop_index("ix_appointments_slot", table_name="appointments")
    op.drop_index("ix_appointments_user_id", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("service_types")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    notification_audience.drop(op.get_bind(), checkfirst=False)
    order_status.drop(op.get_bind(), checkfirst=False)
    user_role.drop(op.get_bind(), checkfirst=False)
