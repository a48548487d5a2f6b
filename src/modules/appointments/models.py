"""Appointment ORM model."""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.modules.appointments.sizes import Sizes, SizesType
from src.shared.enums import AppointmentState, AppointmentStatus
from src.shared.models import TimestampMixin
from src.shared.ulid import ulid_primary_key

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.orders.models import Order
    from src.modules.users.models import User


class Appointment(Base, TimestampMixin):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_slot", "appointment_date", "appointment_time"),
        Index("ix_appointments_status_state", "status", "state"),
    )

    appointment_id: Mapped[str] = ulid_primary_key()
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    service_type: Mapped[str] = mapped_column(String(120), nullable=False)
    sizes: Mapped[Sizes] = mapped_column(SizesType, nullable=False, default=dict)
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text)
    design_image: Mapped[str | None] = mapped_column(String(255))
    gcash_proof: Mapped[str | None] = mapped_column(String(255))
    refund_image: Mapped[str | None] = mapped_column(String(255))
    preferred_due_date: Mapped[date | None] = mapped_column(Date)
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[time] = mapped_column(Time, nullable=False)
    # Plain strings: legacy rows carry mixed-case status and a NULL state.
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    state: Mapped[str | None] = mapped_column(String(20), default=AppointmentState.ACTIVE.value)

    user: Mapped[User] = relationship(back_populates="appointments")
    order: Mapped[Order | None] = relationship(
        back_populates="appointment",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def normalized_status(self) -> str:
        return (self.status or "").strip().lower()

    @property
    def is_active(self) -> bool:
        return self.state is None or self.state == AppointmentState.ACTIVE

    @property
    def display_status(self) -> str:
        """Customer-facing label; requires ``order`` to be loaded."""
        if self.normalized_status == AppointmentStatus.REJECTED:
            return "Rejected"
        if self.state == AppointmentState.CANCELLED:
            return "Cancelled"
        if self.normalized_status == AppointmentStatus.ACCEPTED and self.order is not None:
            return "Accepted"
        return "Requesting"


# Late imports for relationship targets.
from src.modules.orders.models import Order  # noqa: E402
from src.modules.users.models import User  # noqa: E402
