"""Orders API routes."""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin, require_customer
from src.core.storage import ImageUpload
from src.modules.appointments.models import Appointment
from src.modules.appointments.repository import AppointmentRepository
from src.modules.appointments.router import get_service as get_appointment_service
from src.modules.appointments.schemas import AppointmentDetail, AppointmentReschedule, SizesUpdate
from src.modules.appointments.service import AppointmentService
from src.modules.notifications.service import NotificationSink
from src.modules.orders.models import Order
from src.modules.orders.repository import OrderRepository
from src.modules.orders.schemas import (
    HandledUpdate,
    OrderPublic,
    OrderStats,
    OrderStatusUpdate,
    QueueView,
    TodayCount,
)
from src.modules.orders.service import OrderService
from src.modules.schedule.conflicts import ConflictChecker
from src.modules.users.models import User
from src.shared.schemas import ResponseEnvelope

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])
admin_router = APIRouter(prefix="/api/v1/admin/orders", tags=["admin-orders"])


def get_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    orders = OrderRepository(db)
    return OrderService(
        orders,
        ConflictChecker(AppointmentRepository(db), orders),
        NotificationSink(db),
    )


@router.get("/me", response_model=list[OrderPublic])
async def my_orders(
    current_user: User = Depends(require_customer),
    service: OrderService = Depends(get_service),
) -> list[Order]:
    return await service.my_orders(current_user)


@router.get("/me/latest", response_model=ResponseEnvelope[OrderPublic])
async def my_latest_order(
    current_user: User = Depends(require_customer),
    service: OrderService = Depends(get_service),
) -> ResponseEnvelope[OrderPublic]:
    order = await service.my_latest(current_user)
    return ResponseEnvelope(data=OrderPublic.model_validate(order) if order else None)


@router.get("/me/history", response_model=list[OrderPublic])
async def my_order_history(
    current_user: User = Depends(require_customer),
    service: OrderService = Depends(get_service),
) -> list[Order]:
    return await service.my_history(current_user)


@router.patch("/{order_id}/appointment", response_model=OrderPublic)
async def reschedule_order(
    order_id: str,
    payload: AppointmentReschedule,
    current_user: User = Depends(require_customer),
    service: OrderService = Depends(get_service),
) -> Order:
    return await service.reschedule(order_id, payload, current_user)


@admin_router.get("", response_model=list[OrderPublic])
async def admin_list_orders(
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> list[Order]:
    return await service.list_for_admin()


@admin_router.get("/history", response_model=list[OrderPublic])
async def admin_order_history(
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> list[Order]:
    return await service.history()


@admin_router.get("/stats", response_model=OrderStats)
async def admin_order_stats(
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> OrderStats:
    return await service.stats()


@admin_router.get("/today-queue", response_model=QueueView)
async def today_queue(
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> QueueView:
    return await service.today_queue()


@admin_router.get("/today-count", response_model=TodayCount)
async def today_count(
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> TodayCount:
    return TodayCount(count=await service.today_count())


@admin_router.post("/recalculate-queue", response_model=ResponseEnvelope[int])
async def recalculate_queue(
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> ResponseEnvelope[int]:
    changed = await service.recalculate()
    return ResponseEnvelope(data=changed, message="Queue numbers recalculated successfully")


@admin_router.patch("/{order_id}/status", response_model=OrderPublic)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> Order:
    return await service.update_status(order_id, payload)


@admin_router.patch("/{order_id}/handled", response_model=OrderPublic)
async def toggle_handled(
    order_id: str,
    payload: HandledUpdate,
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> Order:
    return await service.toggle_handled(order_id, payload.handled)


@admin_router.patch("/{order_id}/sizes", response_model=OrderPublic)
async def update_order_sizes(
    order_id: str,
    payload: SizesUpdate,
    _: User = Depends(require_admin),
    service: OrderService = Depends(get_service),
) -> Order:
    return await service.update_sizes(order_id, payload)


@admin_router.post("/{order_id}/refund", response_model=AppointmentDetail)
async def refund_order(
    order_id: str,
    refund_image: UploadFile | None = File(None),
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
) -> Appointment:
    return await service.refund_order(order_id, await ImageUpload.from_upload("refund_image", refund_image))
