"""Order pipeline: admin status changes, customer reschedules and read views."""

from __future__ import annotations

import logging
from datetime import datetime

from src.core.exceptions import (
    AuthorizationError,
    DomainRuleError,
    DomainValidationError,
    NotFoundError,
    SlotConflictError,
)
from src.modules.appointments.schemas import AppointmentReschedule, SizesUpdate
from src.modules.notifications.service import AdminBroadcast, CustomerRecipient, NotificationSink
from src.modules.orders.models import Order
from src.modules.orders.queue import QueueManager
from src.modules.orders.repository import OrderRepository
from src.modules.orders.schemas import OrderStats, OrderStatusUpdate, QueueView
from src.modules.schedule.conflicts import ConflictChecker
from src.modules.users.models import User
from src.shared.enums import ACTIVE_ORDER_STATUSES, OrderStatus
from src.shared.timeutils import shop_now

logger = logging.getLogger(__name__)

STATUS_NOTIFICATIONS = {
    OrderStatus.READY_TO_CHECK: ("ready_to_check", "Your order is now ready to be checked"),
    OrderStatus.COMPLETED: ("order_completed", "Your order is now completed"),
    OrderStatus.FINISHED: ("order_finished", "Congratulations! Your order is now finished!"),
}


class OrderService:
    def __init__(
        self,
        orders: OrderRepository,
        checker: ConflictChecker,
        notifications: NotificationSink,
        queue: QueueManager | None = None,
    ):
        self.orders = orders
        self.checker = checker
        self.notifications = notifications
        self.queue = queue or QueueManager(orders)

    def _now(self) -> datetime:
        return shop_now()

    async def update_status(self, order_id: str, payload: OrderStatusUpdate) -> Order:
        if payload.status == OrderStatus.CANCELLED:
            raise AuthorizationError(
                "Admin cannot set order status to Cancelled. Only users can cancel their orders."
            )
        order = await self._get(order_id)
        if order.status == OrderStatus.CANCELLED:
            raise DomainRuleError("Cancelled orders cannot change status")
        self._require_slot_fields(payload)
        await self._ensure_free(order, payload)

        order.status = payload.status
        order.handled = False
        if payload.status == OrderStatus.READY_TO_CHECK:
            if payload.scheduled_at is not None:
                order.scheduled_at = payload.scheduled_at
            order.check_appointment_date = payload.check_appointment_date
            order.check_appointment_time = payload.check_appointment_time
        elif payload.status == OrderStatus.COMPLETED:
            if payload.scheduled_at is not None:
                order.completed_at = payload.scheduled_at
            order.total_amount = payload.total_amount
            order.pickup_appointment_date = payload.pickup_appointment_date
            order.pickup_appointment_time = payload.pickup_appointment_time
        await self.orders.commit()
        logger.info("Order %s moved to %s", order.order_id, order.status)

        self.queue.forget(order)
        await self.queue.recalculate_queue_numbers()
        await self._notify_status(order, payload)
        return await self._get(order_id)

    def _require_slot_fields(self, payload: OrderStatusUpdate) -> None:
        required: tuple[str, ...] = ()
        if payload.status == OrderStatus.READY_TO_CHECK:
            required = ("check_appointment_date", "check_appointment_time")
        elif payload.status == OrderStatus.COMPLETED:
            required = ("pickup_appointment_date", "pickup_appointment_time", "total_amount")
        errors = {
            field: [f"The {field.replace('_', ' ')} field is required when status is {payload.status}."]
            for field in required
            if getattr(payload, field) is None
        }
        if errors:
            raise DomainValidationError("Validation error", errors)

    async def _ensure_free(self, order: Order, payload: OrderStatusUpdate) -> None:
        if payload.status == OrderStatus.READY_TO_CHECK:
            slot = (payload.check_appointment_date, payload.check_appointment_time, "check_appointment_time")
        elif payload.status == OrderStatus.COMPLETED:
            slot = (payload.pickup_appointment_date, payload.pickup_appointment_time, "pickup_appointment_time")
        else:
            return
        slot_date, slot_time, field = slot
        if await self.checker.has_conflict(slot_date, slot_time, exclude_order_id=order.order_id):
            logger.warning("Order %s slot %s %s already taken", order.order_id, slot_date, slot_time)
            raise SlotConflictError(field=field)

    async def _notify_status(self, order: Order, payload: OrderStatusUpdate) -> None:
        template = STATUS_NOTIFICATIONS.get(order.status)
        if template is None:
            return
        type_, title = template
        data: dict[str, object] = {"order_id": order.order_id, "appointment_id": order.appointment_id}
        if order.status == OrderStatus.READY_TO_CHECK:
            data.update(
                scheduled_at=payload.scheduled_at.isoformat() if payload.scheduled_at else None,
                check_appointment_date=order.check_appointment_date.isoformat(),
                check_appointment_time=order.check_appointment_time.strftime("%H:%M"),
            )
        elif order.status == OrderStatus.COMPLETED:
            data.update(
                scheduled_at=payload.scheduled_at.isoformat() if payload.scheduled_at else None,
                total_amount=float(order.total_amount),
                pickup_appointment_date=order.pickup_appointment_date.isoformat(),
                pickup_appointment_time=order.pickup_appointment_time.strftime("%H:%M"),
            )
        await self.notifications.notify(CustomerRecipient(order.appointment.user_id), type_, title, data=data)

    async def toggle_handled(self, order_id: str, handled: bool) -> Order:
        order = await self._get(order_id)
        order.handled = handled
        await self.orders.commit()
        logger.info("Order %s handled=%s", order_id, handled)
        return order

    async def update_sizes(self, order_id: str, payload: SizesUpdate) -> Order:
        order = await self._get(order_id)
        if order.appointment is None:
            raise NotFoundError("Appointment not found for this order")
        order.appointment.sizes = payload.sizes
        order.appointment.total_quantity = payload.total_quantity
        await self.orders.commit()
        logger.info("Order %s sizes updated (%d pieces)", order_id, payload.total_quantity)
        return order

    async def reschedule(self, order_id: str, payload: AppointmentReschedule, user: User) -> Order:
        """Customer moves the appointment behind an accepted order."""
        order = await self._get(order_id)
        appointment = order.appointment
        if appointment is None or appointment.user_id != user.user_id:
            raise AuthorizationError()
        if order.status in (OrderStatus.FINISHED, OrderStatus.CANCELLED):
            raise DomainRuleError("Finished or cancelled orders cannot be rescheduled")
        if payload.appointment_date < self._now().date():
            raise DomainValidationError(
                "Validation error",
                {"appointment_date": ["The appointment date must be a date after or equal to today."]},
            )
        if await self.checker.has_conflict(
            payload.appointment_date,
            payload.appointment_time,
            exclude_order_id=order.order_id,
        ):
            logger.warning("Reschedule conflict for order %s", order.order_id)
            raise SlotConflictError()

        appointment.appointment_date = payload.appointment_date
        appointment.appointment_time = payload.appointment_time
        appointment.preferred_due_date = payload.preferred_due_date
        await self.orders.commit()
        logger.info("Order %s rescheduled by %s", order.order_id, user.user_id)

        await self.notifications.notify(
            CustomerRecipient(user.user_id),
            "order_details_updated",
            "You have successfully updated your Order Details!",
            data={"order_id": order.order_id, "appointment_id": appointment.appointment_id},
        )
        when = payload.appointment_time.strftime("%I:%M %p").lstrip("0")
        await self.notifications.notify(
            AdminBroadcast(),
            "customer_appointment_updated",
            f"{user.name} updated their next appointment date and time!",
            f"Your next appointment date and time with them will be "
            f"{payload.appointment_date.strftime('%B')} {payload.appointment_date.day}, "
            f"{payload.appointment_date.year} at {when}",
            {
                "order_id": order.order_id,
                "appointment_id": appointment.appointment_id,
                "customer_name": user.name,
                "customer_user_id": user.user_id,
                "appointment_date": payload.appointment_date.isoformat(),
                "appointment_time": payload.appointment_time.strftime("%H:%M"),
                "preferred_due_date": payload.preferred_due_date.isoformat(),
            },
        )
        return await self._get(order_id)

    async def list_for_admin(self) -> list[Order]:
        await self.queue.recalculate_queue_numbers()
        return await self.orders.list_for_admin()

    async def history(self) -> list[Order]:
        return await self.orders.list_finished()

    async def stats(self) -> OrderStats:
        return OrderStats(
            pending_orders=await self.orders.count_by_status(ACTIVE_ORDER_STATUSES),
            finished_orders=await self.orders.count_by_status({OrderStatus.FINISHED}),
        )

    async def my_orders(self, user: User) -> list[Order]:
        return await self.orders.list_active_for_user(user.user_id)

    async def my_latest(self, user: User) -> Order | None:
        return await self.orders.latest_for_user(user.user_id, active_only=True)

    async def my_history(self, user: User) -> list[Order]:
        return await self.orders.list_finished(user.user_id)

    async def today_queue(self) -> QueueView:
        return await self.queue.get_today_queue(self._now())

    async def today_count(self) -> int:
        return await self.queue.today_count(self._now().date())

    async def recalculate(self) -> int:
        return await self.queue.recalculate_queue_numbers()

    async def _get(self, order_id: str) -> Order:
        order = await self.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order
