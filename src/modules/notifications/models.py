"""Notification ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database import Base
from src.shared.enums import NotificationAudience, enum_values
from src.shared.models import TimestampMixin
from src.shared.ulid import ulid_primary_key


class Notification(Base, TimestampMixin):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_audience_user", "audience", "user_id"),)

    notification_id: Mapped[str] = ulid_primary_key()
    audience: Mapped[NotificationAudience] = mapped_column(
        Enum(
            NotificationAudience,
            values_callable=enum_values,
            validate_strings=True,
            name="notificationaudience",
        ),
        nullable=False,
    )
    # Only set for customer notifications.
    user_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str | None] = mapped_column(Text)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_viewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
