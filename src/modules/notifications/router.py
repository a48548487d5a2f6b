"""Notification feed routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin, require_customer
from src.core.exceptions import NotFoundError
from src.modules.notifications.models import Notification
from src.modules.notifications.schemas import NotificationPublic
from src.modules.notifications.service import NotificationSink
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])
admin_router = APIRouter(prefix="/api/v1/admin/notifications", tags=["admin-notifications"])


def get_sink(db: AsyncSession = Depends(get_db)) -> NotificationSink:
    return NotificationSink(db)


@router.get("", response_model=list[NotificationPublic])
async def my_notifications(
    current_user: User = Depends(require_customer),
    sink: NotificationSink = Depends(get_sink),
) -> list[Notification]:
    return await sink.list_for_customer(current_user.user_id)


@admin_router.get("", response_model=list[NotificationPublic])
async def admin_feed(
    _: User = Depends(require_admin),
    sink: NotificationSink = Depends(get_sink),
) -> list[Notification]:
    return await sink.list_admin_feed()


@router.patch("/{notification_id}/read", response_model=NotificationPublic)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(require_customer),
    sink: NotificationSink = Depends(get_sink),
) -> Notification:
    notification = await sink.mark_read(notification_id, current_user.user_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification
