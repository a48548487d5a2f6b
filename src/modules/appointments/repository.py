"""Appointment persistence."""

from __future__ import annotations

from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import NotFoundError
from src.modules.appointments.models import Appointment
from src.shared.enums import AppointmentState, AppointmentStatus


def _active_state():
    return or_(Appointment.state == AppointmentState.ACTIVE.value, Appointment.state.is_(None))


class AppointmentRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, appointment_id: str) -> Appointment | None:
        stmt = (
            select(Appointment)
            .options(selectinload(Appointment.order), selectinload(Appointment.user))
            .where(Appointment.appointment_id == appointment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active_on(self, slot_date: date) -> list[Appointment]:
        """Active (or legacy stateless) appointments booked on ``slot_date``."""
        stmt = (
            select(Appointment)
            .options(selectinload(Appointment.order))
            .where(Appointment.appointment_date == slot_date, _active_state())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> list[Appointment]:
        stmt = (
            select(Appointment)
            .options(selectinload(Appointment.order), selectinload(Appointment.user))
            .where(Appointment.user_id == user_id)
            .order_by(Appointment.created_at.desc(), Appointment.appointment_id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_awaiting_admin(self) -> list[Appointment]:
        """Pending requests: still active, or cancelled and not yet refunded."""
        stmt = (
            select(Appointment)
            .options(selectinload(Appointment.user), selectinload(Appointment.order))
            .where(
                Appointment.status == AppointmentStatus.PENDING.value,
                or_(
                    Appointment.state == AppointmentState.ACTIVE.value,
                    Appointment.state.is_(None),
                    (Appointment.state == AppointmentState.CANCELLED.value) & Appointment.refund_image.is_(None),
                ),
            )
            .order_by(Appointment.created_at.desc(), Appointment.appointment_id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def next_upcoming_for_user(self, user_id: str, today: date) -> Appointment | None:
        stmt = (
            select(Appointment)
            .where(
                Appointment.user_id == user_id,
                Appointment.appointment_date >= today,
                _active_state(),
            )
            .order_by(Appointment.appointment_date, Appointment.appointment_time)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def add(self, appointment: Appointment) -> None:
        self.db.add(appointment)

    async def delete(self, appointment: Appointment) -> None:
        await self.db.delete(appointment)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    async def refresh(self, appointment: Appointment) -> Appointment:
        refreshed = await self.get(appointment.appointment_id)
        if refreshed is None:
            raise NotFoundError("Appointment not found")
        return refreshed
