"""Order persistence."""

from __future__ import annotations

from datetime import date, datetime, time

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.modules.appointments.models import Appointment
from src.modules.orders.models import Order
from src.shared.enums import ACTIVE_ORDER_STATUSES, OrderStatus


class OrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _with_appointment(self):
        return select(Order).options(selectinload(Order.appointment).selectinload(Appointment.user))

    async def get(self, order_id: str) -> Order | None:
        stmt = self._with_appointment().where(Order.order_id == order_id).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self) -> list[Order]:
        """Orders that are neither Finished nor Cancelled."""
        stmt = (
            self._with_appointment()
            .where(Order.status.in_(ACTIVE_ORDER_STATUSES))
            .order_by(Order.created_at, Order.order_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_active_scheduled_on(
        self,
        slot_date: date,
        day_start: datetime,
        day_end: datetime,
    ) -> list[Order]:
        """Active orders with any check/pickup slot or schedule timestamp on ``slot_date``."""
        stmt = select(Order).where(
            Order.status.in_(ACTIVE_ORDER_STATUSES),
            or_(
                Order.check_appointment_date == slot_date,
                Order.pickup_appointment_date == slot_date,
                and_(Order.scheduled_at >= day_start, Order.scheduled_at < day_end),
                and_(Order.completed_at >= day_start, Order.completed_at < day_end),
            ),
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_booked_before(self, slot_date: date, slot_time: time) -> int:
        """Orders whose appointment falls earlier on the same day."""
        stmt = (
            select(func.count(Order.order_id))
            .join(Appointment, Order.appointment_id == Appointment.appointment_id)
            .where(
                Appointment.appointment_date == slot_date,
                Appointment.appointment_time < slot_time,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def list_for_admin(self) -> list[Order]:
        """Everything not yet Finished whose refund has not been processed."""
        stmt = (
            self._with_appointment()
            .join(Order.appointment)
            .where(Order.status != OrderStatus.FINISHED, Appointment.refund_image.is_(None))
            .order_by(Order.created_at, Order.order_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_finished(self, user_id: str | None = None) -> list[Order]:
        stmt = self._with_appointment().where(Order.status == OrderStatus.FINISHED)
        if user_id:
            stmt = stmt.join(Order.appointment).where(Appointment.user_id == user_id)
        stmt = stmt.order_by(Order.created_at.desc(), Order.order_id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_active_for_user(self, user_id: str) -> list[Order]:
        stmt = (
            self._with_appointment()
            .join(Order.appointment)
            .where(Appointment.user_id == user_id, Order.status.in_(ACTIVE_ORDER_STATUSES))
            .order_by(Order.created_at.desc(), Order.order_id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def latest_for_user(self, user_id: str, active_only: bool = False) -> Order | None:
        stmt = self._with_appointment().join(Order.appointment).where(Appointment.user_id == user_id)
        if active_only:
            stmt = stmt.where(Order.status.in_(ACTIVE_ORDER_STATUSES))
        stmt = stmt.order_by(Order.created_at.desc(), Order.order_id.desc()).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def count_by_status(self, statuses: frozenset[OrderStatus] | set[OrderStatus]) -> int:
        stmt = select(func.count(Order.order_id)).where(Order.status.in_(statuses))
        result = await self.db.execute(stmt)
        return result.scalar_one()

    def add(self, order: Order) -> None:
        self.db.add(order)

    async def commit(self) -> None:
        await self.db.commit()
