"""Status-dependent "next appointment" for an order."""

from __future__ import annotations

import logging
from typing import NamedTuple

from src.modules.orders.models import Order
from src.shared.enums import AppointmentStatus, OrderStatus, TERMINAL_ORDER_STATUSES
from src.shared.timeutils import normalize_date, normalize_time

logger = logging.getLogger(__name__)


class DerivedSlot(NamedTuple):
    date: str | None
    time: str | None


NO_SLOT = DerivedSlot(None, None)


class DateTimeDeriver:
    """Maps an order to the one date/time its customer should next show up.

    - appointment still pending: nothing, whatever the order says
    - Ready to Check: the check slot, else the appointment slot
    - Completed: the pickup slot, else the appointment slot
    - Pending: the appointment slot
    - Finished / Cancelled: nothing

    Dates come out as ``YYYY-MM-DD`` and times as ``HH:MM:SS``. Never raises;
    an unreadable component is reported as ``None``.
    """

    def derive(self, order: Order) -> DerivedSlot:
        appointment = order.appointment
        if appointment is None:
            return NO_SLOT
        if appointment.normalized_status == AppointmentStatus.PENDING:
            return NO_SLOT

        own_slot = (appointment.appointment_date, appointment.appointment_time)
        status = order.status
        if status == OrderStatus.READY_TO_CHECK:
            raw = self._pick((order.check_appointment_date, order.check_appointment_time), own_slot)
        elif status == OrderStatus.COMPLETED:
            raw = self._pick((order.pickup_appointment_date, order.pickup_appointment_time), own_slot)
        elif status == OrderStatus.PENDING:
            raw = own_slot
        elif status in TERMINAL_ORDER_STATUSES:
            return NO_SLOT
        else:
            # Unknown status: fall back to the appointment itself.
            raw = own_slot
        return self._normalize(order, *raw)

    @staticmethod
    def _pick(preferred, fallback):
        if preferred[0] is not None and preferred[1] is not None:
            return preferred
        return fallback

    @staticmethod
    def _normalize(order: Order, raw_date, raw_time) -> DerivedSlot:
        try:
            slot_date = normalize_date(raw_date)
        except (TypeError, ValueError):
            logger.warning("Unreadable date %r on order %s", raw_date, order.order_id)
            slot_date = None
        try:
            slot_time = normalize_time(raw_time, seconds=True)
        except (TypeError, ValueError):
            logger.warning("Unreadable time %r on order %s", raw_time, order.order_id)
            slot_time = None
        return DerivedSlot(slot_date, slot_time)
