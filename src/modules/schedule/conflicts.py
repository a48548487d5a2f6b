"""Slot occupancy across appointments and orders."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from src.modules.appointments.repository import AppointmentRepository
from src.modules.orders.repository import OrderRepository
from src.shared.timeutils import (
    DateLike,
    TimeLike,
    normalize_date,
    normalize_time,
    parse_date,
    shop_day_bounds,
    to_shop_time,
)

logger = logging.getLogger(__name__)


class ConflictChecker:
    """Answers whether a (date, time) slot is claimed by live work.

    Appointments count while their state is active (or unset) and their order,
    if any, is not Finished/Cancelled. Orders count through their check and
    pickup slots while their own status is not terminal.
    """

    def __init__(self, appointments: AppointmentRepository, orders: OrderRepository):
        self.appointments = appointments
        self.orders = orders

    async def booked_times(
        self,
        slot_date: DateLike,
        exclude_order_id: str | None = None,
        exclude_appointment_id: str | None = None,
        *,
        include_order_timestamps: bool = False,
    ) -> set[str]:
        """Every ``HH:MM`` claimed on ``slot_date``.

        ``include_order_timestamps`` also counts the time part of the orders'
        ``scheduled_at``/``completed_at``, as the public availability view does.
        """
        day = parse_date(slot_date)
        booked: set[str] = set()

        for appointment in await self.appointments.list_active_on(day):
            if appointment.appointment_id == exclude_appointment_id:
                continue
            order = appointment.order
            if order is not None:
                if exclude_order_id and order.order_id == exclude_order_id:
                    continue
                if order.status.is_terminal:
                    continue
            _add_time(booked, appointment.appointment_time)

        day_start, day_end = shop_day_bounds(day)
        for order in await self.orders.list_active_scheduled_on(day, day_start, day_end):
            if exclude_order_id and order.order_id == exclude_order_id:
                continue
            if _same_day(order.check_appointment_date, day):
                _add_time(booked, order.check_appointment_time)
            if _same_day(order.pickup_appointment_date, day):
                _add_time(booked, order.pickup_appointment_time)
            if include_order_timestamps:
                for stamp in (order.scheduled_at, order.completed_at):
                    if stamp is not None and to_shop_time(stamp).date() == day:
                        _add_time(booked, to_shop_time(stamp))
        return booked

    async def has_conflict(
        self,
        slot_date: DateLike,
        slot_time: TimeLike,
        exclude_order_id: str | None = None,
        exclude_appointment_id: str | None = None,
    ) -> bool:
        """Fails open: a lookup error is logged and reported as no conflict."""
        try:
            target = normalize_time(slot_time)
            booked = await self.booked_times(slot_date, exclude_order_id, exclude_appointment_id)
        except (SQLAlchemyError, ValueError):
            logger.exception("Conflict check failed for %s %s; allowing the slot", slot_date, slot_time)
            await self.appointments.rollback()
            return False
        return target in booked


def _same_day(value: date | None, day: date) -> bool:
    return value is not None and normalize_date(value) == day.isoformat()


def _add_time(booked: set[str], value: TimeLike | None) -> None:
    normalized = normalize_time(value)
    if normalized is not None:
        booked.add(normalized)
