"""Order ORM model."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import OrderStatus, enum_values
from src.shared.models import TimestampMixin
from src.shared.ulid import ulid_primary_key

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment


class Order(Base, TimestampMixin):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_status", "status"),
        Index("ix_orders_check_slot", "check_appointment_date", "check_appointment_time"),
        Index("ix_orders_pickup_slot", "pickup_appointment_date", "pickup_appointment_time"),
    )

    order_id: Mapped[str] = ulid_primary_key()
    appointment_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("appointments.appointment_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    queue_number: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(
            OrderStatus,
            values_callable=enum_values,
            validate_strings=True,
            name="orderstatus",
        ),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    handled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    check_appointment_date: Mapped[date | None] = mapped_column(Date)
    check_appointment_time: Mapped[time | None] = mapped_column(Time)
    pickup_appointment_date: Mapped[date | None] = mapped_column(Date)
    pickup_appointment_time: Mapped[time | None] = mapped_column(Time)

    appointment: Mapped[Appointment] = relationship(back_populates="order")
