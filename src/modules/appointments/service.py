"""Appointment lifecycle: booking, acceptance, rejection, cancellation and refunds."""

from __future__ import annotations

import logging
from datetime import date, datetime

from src.core.exceptions import (
    AuthorizationError,
    DomainRuleError,
    DomainValidationError,
    NotFoundError,
    SlotConflictError,
)
from src.core.storage import ImageUpload, LocalFileStorage
from src.modules.appointments.models import Appointment
from src.modules.appointments.repository import AppointmentRepository
from src.modules.appointments.schemas import AppointmentCreate, AppointmentReschedule, NextAppointment
from src.modules.notifications.service import AdminBroadcast, CustomerRecipient, NotificationSink
from src.modules.orders.derivation import DateTimeDeriver
from src.modules.orders.models import Order
from src.modules.orders.repository import OrderRepository
from src.modules.schedule.conflicts import ConflictChecker
from src.modules.users.models import User
from src.shared.enums import AppointmentState, AppointmentStatus, OrderStatus
from src.shared.timeutils import shop_now

logger = logging.getLogger(__name__)


def _display_slot(slot_date: date, slot_time) -> str:
    return f"{slot_date.strftime('%B')} {slot_date.day}, {slot_date.year} at {slot_time.strftime('%I:%M %p').lstrip('0')}"


class AppointmentService:
    def __init__(
        self,
        appointments: AppointmentRepository,
        orders: OrderRepository,
        checker: ConflictChecker,
        notifications: NotificationSink,
        storage: LocalFileStorage,
    ):
        self.appointments = appointments
        self.orders = orders
        self.checker = checker
        self.notifications = notifications
        self.storage = storage

    def _now(self) -> datetime:
        return shop_now()

    def _today(self) -> date:
        return self._now().date()

    async def book_appointment(
        self,
        payload: AppointmentCreate,
        user: User,
        gcash_proof: ImageUpload | None,
        design_image: ImageUpload | None = None,
    ) -> Appointment:
        if gcash_proof is None:
            raise DomainValidationError("Validation error", {"gcash_proof": ["The gcash proof field is required."]})
        self._ensure_bookable_date(payload.appointment_date)
        for image in (gcash_proof, design_image):
            if image is not None:
                self.storage.validate(image)

        if await self.checker.has_conflict(payload.appointment_date, payload.appointment_time):
            logger.warning("Double booking attempt for %s %s", payload.appointment_date, payload.appointment_time)
            raise SlotConflictError()

        design_path = await self.storage.save("designs", design_image) if design_image else None
        gcash_path = await self.storage.save("gcash_proofs", gcash_proof)

        appointment = Appointment(
            user_id=user.user_id,
            service_type=payload.service_type,
            sizes=payload.sizes,
            total_quantity=payload.total_quantity,
            notes=payload.notes,
            design_image=design_path,
            gcash_proof=gcash_path,
            preferred_due_date=payload.preferred_due_date,
            appointment_date=payload.appointment_date,
            appointment_time=payload.appointment_time,
            status=AppointmentStatus.PENDING.value,
            state=AppointmentState.ACTIVE.value,
        )
        self.appointments.add(appointment)
        await self.appointments.commit()
        logger.info("Appointment %s booked by %s", appointment.appointment_id, user.user_id)

        slot_data = {
            "appointment_id": appointment.appointment_id,
            "appointment_date": payload.appointment_date.isoformat(),
            "appointment_time": payload.appointment_time.strftime("%H:%M:%S"),
        }
        await self.notifications.notify(
            CustomerRecipient(user.user_id),
            "appointment_booked",
            "You have successfully booked an appointment!",
            "Please wait while the admin reviews your appointment request. "
            "Your order will be processed once it has been approved.",
            {**slot_data, "created_by": "customer"},
        )
        await self.notifications.notify(
            AdminBroadcast(),
            "appointment_book",
            "New appointment submitted",
            data={**slot_data, "customer_name": user.name, "customer_user_id": user.user_id},
        )
        return await self.appointments.refresh(appointment)

    async def update_details(
        self,
        appointment_id: str,
        payload: AppointmentReschedule,
        user: User,
    ) -> Appointment:
        """Move a still-pending appointment to another free slot."""
        appointment = await self._get_owned(appointment_id, user)
        if appointment.normalized_status != AppointmentStatus.PENDING or not appointment.is_active:
            raise DomainRuleError("Only pending appointments can be updated")
        self._ensure_bookable_date(payload.appointment_date)
        if await self.checker.has_conflict(
            payload.appointment_date,
            payload.appointment_time,
            exclude_appointment_id=appointment.appointment_id,
        ):
            logger.warning("Reschedule conflict for appointment %s", appointment.appointment_id)
            raise SlotConflictError()

        appointment.appointment_date = payload.appointment_date
        appointment.appointment_time = payload.appointment_time
        appointment.preferred_due_date = payload.preferred_due_date
        await self.appointments.commit()
        logger.info("Appointment %s rescheduled", appointment.appointment_id)

        await self.notifications.notify(
            CustomerRecipient(user.user_id),
            "appointment_updated",
            "You have successfully updated your appointment details!",
            data={"appointment_id": appointment.appointment_id},
        )
        await self.notifications.notify(
            AdminBroadcast(),
            "customer_appointment_updated",
            f"{user.name} updated their appointment date and time!",
            f"Appointment date and time: {_display_slot(payload.appointment_date, payload.appointment_time)}",
            {
                "appointment_id": appointment.appointment_id,
                "customer_name": user.name,
                "customer_user_id": user.user_id,
                "appointment_date": payload.appointment_date.isoformat(),
                "appointment_time": payload.appointment_time.strftime("%H:%M"),
                "preferred_due_date": payload.preferred_due_date.isoformat(),
            },
        )
        return await self.appointments.refresh(appointment)

    async def accept_appointment(self, appointment_id: str) -> Order:
        """Turn a pending appointment into an order at the back of its day's queue."""
        appointment = await self._get(appointment_id)
        if appointment.normalized_status != AppointmentStatus.PENDING or not appointment.is_active:
            raise DomainRuleError("Only pending appointments can be accepted")
        if appointment.order is not None:
            raise DomainRuleError("This appointment already has an order")

        earlier = await self.orders.count_booked_before(appointment.appointment_date, appointment.appointment_time)
        order = Order(
            appointment=appointment,
            queue_number=earlier + 1,
            status=OrderStatus.PENDING,
            handled=False,
        )
        self.orders.add(order)
        appointment.status = AppointmentStatus.ACCEPTED.value
        await self.orders.commit()
        logger.info("Appointment %s accepted as order %s (queue %s)", appointment_id, order.order_id, order.queue_number)

        await self.notifications.notify(
            CustomerRecipient(appointment.user_id),
            "appointment_accepted",
            "Your appointment has been accepted by the Admin!",
            data={
                "appointment_id": appointment.appointment_id,
                "order_id": order.order_id,
                "appointment_date": appointment.appointment_date.isoformat(),
                "appointment_time": appointment.appointment_time.strftime("%H:%M:%S"),
            },
        )
        refreshed = await self.orders.get(order.order_id)
        if refreshed is None:
            raise NotFoundError("Order not found")
        return refreshed

    async def reject_appointment(self, appointment_id: str, refund_image: ImageUpload | None) -> Appointment:
        if refund_image is None:
            raise DomainValidationError("Validation error", {"refund_image": ["The refund image field is required."]})
        self.storage.validate(refund_image)
        appointment = await self._get(appointment_id)
        self._ensure_rejectable(appointment)

        refund_path = await self.storage.save("refunds", refund_image)
        appointment.status = AppointmentStatus.REJECTED.value
        appointment.state = AppointmentState.CANCELLED.value
        appointment.refund_image = refund_path
        if appointment.order is not None:
            appointment.order.status = OrderStatus.CANCELLED
        await self.appointments.commit()
        logger.info("Appointment %s rejected", appointment_id)

        await self.notifications.notify(
            CustomerRecipient(appointment.user_id),
            "appointment_rejected",
            "We're sorry, unfortunately your appointment has been rejected by the admin.",
            "Please ensure you uploaded the correct gcash payment proof and try again next time. "
            "Your payment has been refunded.",
            {
                "appointment_id": appointment.appointment_id,
                "refund_image": refund_path,
                "reason": "rejected_by_admin",
            },
        )
        return await self.appointments.refresh(appointment)

    @staticmethod
    def _ensure_rejectable(appointment: Appointment) -> None:
        if appointment.refund_image:
            raise DomainRuleError("This appointment has already been refunded")
        if not appointment.is_active or appointment.normalized_status == AppointmentStatus.REJECTED:
            raise DomainRuleError("Only active appointments can be rejected")
        if appointment.order is not None and appointment.order.status.is_terminal:
            raise DomainRuleError("Finished or cancelled orders cannot be rejected")

    async def cancel_appointment(self, appointment_id: str, user: User) -> Appointment:
        """Customer self-cancel; the slot is released and any order is marked Cancelled."""
        appointment = await self._get(appointment_id)
        if appointment.user_id != user.user_id:
            raise AuthorizationError()
        if not appointment.is_active:
            raise DomainRuleError("This appointment has already been cancelled")

        order = appointment.order
        if appointment.normalized_status != AppointmentStatus.PENDING:
            if order is None:
                raise DomainRuleError("Only pending appointments can be cancelled")
            if order.status != OrderStatus.PENDING:
                raise DomainRuleError("Only pending orders can be cancelled")
            if order.handled:
                raise DomainRuleError("This order has already been handled and cannot be cancelled")

        if appointment.normalized_status == AppointmentStatus.PENDING and order is None:
            cancellation_type, title = "booking_appointment", f"{user.name} cancelled a booking appointment"
        elif order is not None and order.status == OrderStatus.PENDING:
            cancellation_type, title = "order", f"{user.name} cancelled an order"
        else:
            cancellation_type, title = "appointment", f"{user.name} cancelled an appointment"

        appointment.state = AppointmentState.CANCELLED.value
        if order is not None:
            order.status = OrderStatus.CANCELLED
        await self.appointments.commit()
        logger.info("Appointment %s cancelled by %s (%s)", appointment_id, user.user_id, cancellation_type)

        cancelled_at = self._now().strftime("%Y-%m-%d %H:%M:%S")
        await self.notifications.notify(
            AdminBroadcast(),
            "customer_appointment_updated",
            title,
            data={
                "appointment_id": appointment.appointment_id,
                "customer_name": user.name,
                "customer_user_id": user.user_id,
                "cancellation_type": cancellation_type,
                "cancelled_at": cancelled_at,
            },
        )
        await self.notifications.notify(
            CustomerRecipient(user.user_id),
            "order_cancelled",
            "You have successfully cancelled an order!",
            data={"appointment_id": appointment.appointment_id, "cancelled_at": cancelled_at},
        )
        return await self.appointments.refresh(appointment)

    async def refund_appointment(self, appointment_id: str, refund_image: ImageUpload | None) -> Appointment:
        if refund_image is None:
            raise DomainValidationError("Validation error", {"refund_image": ["The refund image field is required."]})
        self.storage.validate(refund_image)
        appointment = await self._get(appointment_id)
        if appointment.state != AppointmentState.CANCELLED:
            raise DomainRuleError("Only cancelled appointments can be refunded")
        await self._attach_refund(appointment, refund_image)
        return await self.appointments.refresh(appointment)

    async def refund_order(self, order_id: str, refund_image: ImageUpload | None) -> Appointment:
        if refund_image is None:
            raise DomainValidationError("Validation error", {"refund_image": ["The refund image field is required."]})
        self.storage.validate(refund_image)
        order = await self.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.appointment is None:
            raise NotFoundError("Appointment not found for this order")
        if order.status != OrderStatus.CANCELLED:
            raise DomainRuleError("Only cancelled orders can be refunded")
        appointment = await self._get(order.appointment_id)
        await self._attach_refund(appointment, refund_image)
        return await self.appointments.refresh(appointment)

    async def _attach_refund(self, appointment: Appointment, refund_image: ImageUpload) -> None:
        if appointment.refund_image:
            raise DomainRuleError("This appointment has already been refunded")
        appointment.refund_image = await self.storage.save("refunds", refund_image)
        await self.appointments.commit()
        logger.info("Refund recorded for appointment %s", appointment.appointment_id)

        data = {"appointment_id": appointment.appointment_id, "refund_image": appointment.refund_image}
        if appointment.order is not None:
            data["order_id"] = appointment.order.order_id
        await self.notifications.notify(
            CustomerRecipient(appointment.user_id),
            "refund_processed",
            "Your down payment for the cancelled appointment/order has been successfully refunded by the admin.",
            data=data,
        )

    async def destroy(self, appointment_id: str) -> None:
        """Hard delete; the order goes with it."""
        appointment = await self._get(appointment_id)
        user_id = appointment.user_id
        await self.notifications.notify(
            CustomerRecipient(user_id),
            "appointment_rejected",
            "We're sorry, unfortunately your appointment has been rejected by the admin.",
            "Please ensure you uploaded the correct gcash payment proof and try again next time",
            {"appointment_id": appointment.appointment_id, "reason": "deleted_by_admin"},
        )
        await self.appointments.delete(appointment)
        await self.appointments.commit()
        logger.info("Appointment %s destroyed", appointment_id)

    async def list_mine(self, user: User) -> list[Appointment]:
        return await self.appointments.list_for_user(user.user_id)

    async def admin_pending(self) -> list[Appointment]:
        return await self.appointments.list_awaiting_admin()

    async def admin_get(self, appointment_id: str) -> Appointment:
        return await self._get(appointment_id)

    async def next_appointment(self, user: User) -> NextAppointment:
        """Derived slot of the latest order, else the next upcoming active appointment."""
        order = await self.orders.latest_for_user(user.user_id)
        if order is not None:
            slot = DateTimeDeriver().derive(order)
            return NextAppointment(
                appointment_date=slot.date,
                appointment_time=slot.time,
                order_id=order.order_id,
                appointment_id=order.appointment_id,
                service_type=order.appointment.service_type if order.appointment else None,
                status=order.status,
            )

        appointment = await self.appointments.next_upcoming_for_user(user.user_id, self._today())
        if appointment is None:
            return NextAppointment()
        return NextAppointment(
            appointment_date=appointment.appointment_date.isoformat(),
            appointment_time=appointment.appointment_time.strftime("%H:%M:%S"),
            service_type=appointment.service_type,
            appointment_id=appointment.appointment_id,
            status=appointment.status,
        )

    def _ensure_bookable_date(self, slot_date: date) -> None:
        if slot_date < self._today():
            raise DomainValidationError(
                "Validation error",
                {"appointment_date": ["The appointment date must be a date after or equal to today."]},
            )

    async def _get(self, appointment_id: str) -> Appointment:
        appointment = await self.appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    async def _get_owned(self, appointment_id: str, user: User) -> Appointment:
        appointment = await self._get(appointment_id)
        if appointment.user_id != user.user_id:
            raise AuthorizationError()
        return appointment
