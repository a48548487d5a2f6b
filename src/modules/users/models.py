"""Shop accounts: customers who book and admins who run the queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import UserRole, enum_values
from src.shared.models import TimestampMixin
from src.shared.ulid import ulid_primary_key

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment


class User(Base, TimestampMixin):
    __tablename__ = "users"

    user_id: Mapped[str] = ulid_primary_key()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=enum_values, validate_strings=True, name="userrole"),
        nullable=False,
        default=UserRole.CUSTOMER,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    appointments: Mapped[list[Appointment]] = relationship(
        back_populates="user",
        order_by="Appointment.appointment_date",
    )


from src.modules.appointments.models import Appointment  # noqa: E402
