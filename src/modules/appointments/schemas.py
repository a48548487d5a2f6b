"""Appointments schemas."""

from datetime import date, time
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_serializer, field_validator

from src.modules.appointments.sizes import Sizes, decode_sizes, total_of
from src.modules.schedule.slots import is_bookable
from src.modules.users.schemas import UserSummary
from src.shared.enums import OrderStatus
from src.shared.timeutils import parse_time


class SlotFields(BaseModel):
    appointment_date: date
    appointment_time: time
    preferred_due_date: date

    @field_validator("appointment_time", mode="before")
    @classmethod
    def _parse_time(cls, value):
        if isinstance(value, str):
            return parse_time(value)
        return value

    @field_validator("appointment_time")
    @classmethod
    def _on_the_slot_grid(cls, value: time) -> time:
        if value.second or not is_bookable(value.strftime("%H:%M")):
            raise ValueError("The appointment time must be one of the bookable time slots")
        return value


class SizedFields(BaseModel):
    sizes: Sizes
    total_quantity: int = Field(..., ge=1)

    @field_validator("sizes", mode="before")
    @classmethod
    def _decode_sizes(cls, value):
        return decode_sizes(value)

    @field_validator("total_quantity")
    @classmethod
    def _matches_sizes(cls, value: int, info: ValidationInfo) -> int:
        sizes = info.data.get("sizes")
        if sizes is not None and total_of(sizes) != value:
            raise ValueError("Total quantity does not match the sum of sizes")
        return value


class AppointmentCreate(SizedFields, SlotFields):
    service_type: str = Field(..., min_length=1, max_length=120)
    notes: str | None = None


class AppointmentReschedule(SlotFields):
    """New slot for a pending appointment or an accepted order."""


class SizesUpdate(SizedFields):
    pass


class OrderBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_id: str = Field(serialization_alias="id")
    queue_number: int | None = None
    status: OrderStatus
    handled: bool
    total_amount: Decimal | None = None
    check_appointment_date: date | None = None
    check_appointment_time: time | None = None
    pickup_appointment_date: date | None = None
    pickup_appointment_time: time | None = None


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str = Field(serialization_alias="id")
    user_id: str
    service_type: str
    sizes: Sizes
    total_quantity: int
    notes: str | None = None
    design_image: str | None = None
    gcash_proof: str | None = None
    refund_image: str | None = None
    preferred_due_date: date | None = None
    appointment_date: date
    appointment_time: time
    status: str
    state: str | None = None

    @field_serializer("appointment_time")
    def _serialize_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class AppointmentDetail(AppointmentPublic):
    """An appointment together with its order (if accepted) and owner."""

    display_status: str
    order: OrderBrief | None = None
    user: UserSummary | None = None


class NextAppointment(BaseModel):
    service_type: str | None = None
    appointment_date: str | None = None
    appointment_time: str | None = None
    order_id: str | None = None
    appointment_id: str | None = None
    status: str | None = None
