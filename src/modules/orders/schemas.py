"""Order schemas."""

from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from src.modules.appointments.schemas import AppointmentPublic, OrderBrief
from src.modules.users.schemas import UserSummary
from src.shared.enums import OrderStatus
from src.shared.timeutils import parse_time


class AppointmentWithCustomer(AppointmentPublic):
    user: UserSummary | None = None


class OrderPublic(OrderBrief):
    scheduled_at: datetime | None = None
    completed_at: datetime | None = None
    appointment: AppointmentWithCustomer


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    scheduled_at: datetime | None = None
    total_amount: Decimal | None = Field(None, ge=0)
    check_appointment_date: date | None = None
    check_appointment_time: time | None = None
    pickup_appointment_date: date | None = None
    pickup_appointment_time: time | None = None

    @field_validator("check_appointment_time", "pickup_appointment_time", mode="before")
    @classmethod
    def _parse_time(cls, value):
        if isinstance(value, str) and value:
            return parse_time(value)
        return value or None


class HandledUpdate(BaseModel):
    handled: bool


class OrderStats(BaseModel):
    pending_orders: int
    finished_orders: int


class TodayCount(BaseModel):
    count: int


class QueueEntry(BaseModel):
    order_id: str
    queue_number: int | None = None
    name: str | None = None
    appointment_date: str | None = None
    appointment_time: str | None = None
    status: OrderStatus


class QueueView(BaseModel):
    has_queue: bool
    message: str | None = None
    current_date: str
    current_time: str
    current_customer: QueueEntry | None = None
    next_customer: QueueEntry | None = None
    all_orders: list[QueueEntry] = Field(default_factory=list)

