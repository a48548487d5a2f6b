"""Fire-and-forget notification sink.

Notifications are written after the triggering transaction has committed, so
a failed write never undoes the state change that produced it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import TransientInfrastructureError
from src.modules.notifications.models import Notification
from src.shared.enums import NotificationAudience

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerRecipient:
    user_id: str


@dataclass(frozen=True)
class AdminBroadcast:
    """Every admin sees the notification in the shared admin feed."""


Recipient = CustomerRecipient | AdminBroadcast


class NotificationSink:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        recipient: Recipient,
        type_: str,
        title: str,
        body: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> Notification | None:
        try:
            return await self._persist(recipient, type_, title, body, data)
        except TransientInfrastructureError as exc:
            logger.warning("Failed to create %s notification for %s: %s", type_, recipient, exc)
            return None

    async def _persist(
        self,
        recipient: Recipient,
        type_: str,
        title: str,
        body: str | None,
        data: dict[str, Any] | None,
    ) -> Notification:
        if isinstance(recipient, CustomerRecipient):
            audience, user_id = NotificationAudience.CUSTOMER, recipient.user_id
        else:
            audience, user_id = NotificationAudience.ADMINS, None
        notification = Notification(
            audience=audience,
            user_id=user_id,
            type=type_,
            title=title,
            body=body,
            data=data,
        )
        self.db.add(notification)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise TransientInfrastructureError(str(exc)) from exc
        return notification

    async def list_for_customer(self, user_id: str) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(
                Notification.audience == NotificationAudience.CUSTOMER,
                Notification.user_id == user_id,
            )
            .order_by(Notification.created_at.desc(), Notification.notification_id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_admin_feed(self) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.audience == NotificationAudience.ADMINS)
            .order_by(Notification.created_at.desc(), Notification.notification_id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: str, user_id: str) -> Notification | None:
        stmt = select(Notification).where(
            Notification.notification_id == notification_id,
            Notification.audience == NotificationAudience.CUSTOMER,
            Notification.user_id == user_id,
        )
        result = await self.db.execute(stmt)
        notification = result.scalar_one_or_none()
        if notification is None:
            return None
        notification.read_at = notification.read_at or datetime.now(timezone.utc)
        notification.is_viewed = True
        await self.db.commit()
        return notification
