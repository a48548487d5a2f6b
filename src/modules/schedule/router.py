"""Schedule routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import get_current_user, require_admin
from src.modules.appointments.repository import AppointmentRepository
from src.modules.orders.repository import OrderRepository
from src.modules.schedule.conflicts import ConflictChecker
from src.modules.schedule.schemas import AvailableSlots, BookedTimes
from src.modules.schedule.service import AvailabilityService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/schedule", tags=["schedule"])
admin_router = APIRouter(prefix="/api/v1/admin/schedule", tags=["admin-schedule"])


def get_availability_service(db: AsyncSession = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(ConflictChecker(AppointmentRepository(db), OrderRepository(db)))


@router.get("/available-slots", response_model=AvailableSlots)
async def available_slots(
    date_value: str | None = Query(None, alias="date"),
    exclude_order_id: str | None = Query(None),
    exclude_appointment_id: str | None = Query(None),
    _: User = Depends(get_current_user),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailableSlots:
    slots = await service.get_available_slots(date_value, exclude_order_id, exclude_appointment_id)
    return AvailableSlots(date=service.validate_date(date_value).isoformat(), available_slots=slots)


@admin_router.get("/booked-times", response_model=BookedTimes)
async def booked_times(
    date_value: str | None = Query(None, alias="date"),
    order_id: str | None = Query(None),
    _: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
) -> BookedTimes:
    times = await service.booked_times(date_value, order_id)
    return BookedTimes(date=date_value or "", booked_times=times)
