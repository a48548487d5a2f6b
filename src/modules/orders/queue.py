"""Per-day queue numbering and the live "today" queue."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime

from src.modules.orders.derivation import DateTimeDeriver, DerivedSlot
from src.modules.orders.models import Order
from src.modules.orders.repository import OrderRepository
from src.modules.orders.schemas import QueueEntry, QueueView
from src.shared.enums import AppointmentStatus
from src.shared.timeutils import shop_now

logger = logging.getLogger(__name__)

LATEST_TIME = "23:59:59"
NO_QUEUE_MESSAGE = "No upcoming queues for today"


class QueueManager:
    """Recomputes queue numbers from derived slots.

    Derived slots are memoised for the lifetime of the instance, so build one
    per request.
    """

    def __init__(self, orders: OrderRepository, deriver: DateTimeDeriver | None = None):
        self.orders = orders
        self.deriver = deriver or DateTimeDeriver()
        self._derived: dict[str, DerivedSlot] = {}

    def derive(self, order: Order) -> DerivedSlot:
        cached = self._derived.get(order.order_id)
        if cached is None:
            cached = self.deriver.derive(order)
            self._derived[order.order_id] = cached
        return cached

    def forget(self, order: Order) -> None:
        self._derived.pop(order.order_id, None)

    def _sort_key(self, order: Order) -> tuple[str, str]:
        return (self.derive(order).time or LATEST_TIME, order.order_id)

    def _renumber(self, group: list[Order]) -> int:
        changed = 0
        for position, order in enumerate(sorted(group, key=self._sort_key), start=1):
            if order.queue_number != position:
                logger.debug("Order %s queue %s -> %s", order.order_id, order.queue_number, position)
                order.queue_number = position
                changed += 1
        return changed

    async def recalculate_queue_numbers(self) -> int:
        """Dense 1..N numbering per derived date; returns how many orders moved."""
        groups: dict[str, list[Order]] = defaultdict(list)
        for order in await self.orders.list_active():
            slot_date = self.derive(order).date
            if slot_date is not None:
                groups[slot_date].append(order)

        changed = sum(self._renumber(group) for group in groups.values())
        if changed:
            await self.orders.commit()
        logger.info("Queue recalculated: %d groups, %d orders renumbered", len(groups), changed)
        return changed

    async def _orders_on(self, day: date) -> list[Order]:
        target = day.isoformat()
        return [
            order
            for order in await self.orders.list_active()
            if order.appointment is not None
            and order.appointment.normalized_status != AppointmentStatus.PENDING
            and self.derive(order).date == target
        ]

    async def get_today_queue(self, now: datetime | None = None) -> QueueView:
        now = now or shop_now()
        current_date = now.date().isoformat()
        current_time = now.strftime("%H:%M:%S")

        todays = await self._orders_on(now.date())
        if not todays:
            return QueueView(
                has_queue=False,
                message=NO_QUEUE_MESSAGE,
                current_date=current_date,
                current_time=current_time,
            )

        if self._renumber(todays):
            await self.orders.commit()
        todays.sort(key=self._sort_key)

        current_index = len(todays) - 1
        for index, order in enumerate(todays):
            if (self.derive(order).time or LATEST_TIME) >= current_time:
                current_index = index
                break

        entries = [self._entry(order) for order in todays]
        return QueueView(
            has_queue=True,
            current_date=current_date,
            current_time=current_time,
            current_customer=entries[current_index],
            next_customer=entries[current_index + 1] if current_index + 1 < len(entries) else None,
            all_orders=entries,
        )

    async def today_count(self, today: date | None = None) -> int:
        """Orders whose derived date is today."""
        day = today or shop_now().date()
        target = day.isoformat()
        return sum(1 for order in await self.orders.list_active() if self.derive(order).date == target)

    def _entry(self, order: Order) -> QueueEntry:
        slot = self.derive(order)
        user = order.appointment.user
        return QueueEntry(
            order_id=order.order_id,
            queue_number=order.queue_number,
            name=user.name if user is not None else None,
            appointment_date=slot.date,
            appointment_time=slot.time,
            status=order.status,
        )
