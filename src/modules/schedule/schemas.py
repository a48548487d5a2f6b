"""Schedule schemas."""

from pydantic import BaseModel


class AvailableSlots(BaseModel):
    date: str
    available_slots: list[str]


class BookedTimes(BaseModel):
    date: str
    booked_times: list[str]
