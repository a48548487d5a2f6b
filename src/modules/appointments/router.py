"""Appointments API routes."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin, require_customer
from src.core.storage import ImageUpload, LocalFileStorage, get_storage
from src.modules.appointments.models import Appointment
from src.modules.appointments.repository import AppointmentRepository
from src.modules.appointments.schemas import (
    AppointmentCreate,
    AppointmentDetail,
    AppointmentReschedule,
    NextAppointment,
)
from src.modules.appointments.service import AppointmentService
from src.modules.notifications.service import NotificationSink
from src.modules.orders.models import Order
from src.modules.orders.repository import OrderRepository
from src.modules.orders.schemas import OrderPublic
from src.modules.schedule.conflicts import ConflictChecker
from src.modules.users.models import User
from src.shared.schemas import validate_form

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])
admin_router = APIRouter(prefix="/api/v1/admin/appointments", tags=["admin-appointments"])


def get_service(
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
) -> AppointmentService:
    appointments = AppointmentRepository(db)
    orders = OrderRepository(db)
    return AppointmentService(
        appointments,
        orders,
        ConflictChecker(appointments, orders),
        NotificationSink(db),
        storage,
    )


async def booking_form(
    service_type: str | None = Form(None),
    sizes: str | None = Form(None),
    total_quantity: str | None = Form(None),
    notes: str | None = Form(None),
    preferred_due_date: str | None = Form(None),
    appointment_date: str | None = Form(None),
    appointment_time: str | None = Form(None),
) -> AppointmentCreate:
    fields = {
        "service_type": service_type,
        "sizes": sizes,
        "total_quantity": total_quantity,
        "notes": notes,
        "preferred_due_date": preferred_due_date,
        "appointment_date": appointment_date,
        "appointment_time": appointment_time,
    }
    return validate_form(AppointmentCreate, {key: value for key, value in fields.items() if value is not None})


@router.post("", response_model=AppointmentDetail, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    payload: AppointmentCreate = Depends(booking_form),
    gcash_proof: UploadFile | None = File(None),
    design_image: UploadFile | None = File(None),
    current_user: User = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.book_appointment(
        payload,
        current_user,
        await ImageUpload.from_upload("gcash_proof", gcash_proof),
        await ImageUpload.from_upload("design_image", design_image),
    )


@router.get("/me", response_model=list[AppointmentDetail])
async def my_appointments(
    current_user: User = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> list[Appointment]:
    return await service.list_mine(current_user)


@router.get("/next", response_model=NextAppointment)
async def next_appointment(
    current_user: User = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> NextAppointment:
    return await service.next_appointment(current_user)


@router.patch("/{appointment_id}", response_model=AppointmentDetail)
async def reschedule_appointment(
    appointment_id: str,
    payload: AppointmentReschedule,
    current_user: User = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.update_details(appointment_id, payload, current_user)


@router.post("/{appointment_id}/cancel", response_model=AppointmentDetail)
async def cancel_appointment(
    appointment_id: str,
    current_user: User = Depends(require_customer),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.cancel_appointment(appointment_id, current_user)


@admin_router.get("", response_model=list[AppointmentDetail])
async def admin_pending_appointments(
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> list[Appointment]:
    return await service.admin_pending()


@admin_router.get("/{appointment_id}", response_model=AppointmentDetail)
async def admin_get_appointment(
    appointment_id: str,
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.admin_get(appointment_id)


@admin_router.post("/{appointment_id}/accept", response_model=OrderPublic, status_code=status.HTTP_201_CREATED)
async def accept_appointment(
    appointment_id: str,
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> Order:
    return await service.accept_appointment(appointment_id)


@admin_router.post("/{appointment_id}/reject", response_model=AppointmentDetail)
async def reject_appointment(
    appointment_id: str,
    refund_image: UploadFile | None = File(None),
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.reject_appointment(
        appointment_id,
        await ImageUpload.from_upload("refund_image", refund_image),
    )


@admin_router.post("/{appointment_id}/refund", response_model=AppointmentDetail)
async def refund_appointment(
    appointment_id: str,
    refund_image: UploadFile | None = File(None),
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> Appointment:
    return await service.refund_appointment(
        appointment_id,
        await ImageUpload.from_upload("refund_image", refund_image),
    )


@admin_router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def destroy_appointment(
    appointment_id: str,
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> None:
    await service.destroy(appointment_id)
