"""Notification schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.shared.enums import NotificationAudience


class NotificationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_id: str = Field(serialization_alias="id")
    audience: NotificationAudience
    type: str
    title: str
    body: str | None = None
    data: dict[str, Any] | None = None
    is_viewed: bool
    created_at: datetime
