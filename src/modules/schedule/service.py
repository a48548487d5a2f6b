"""Free-slot computation for booking and rescheduling flows."""

from __future__ import annotations

from datetime import date

from src.core.exceptions import DomainValidationError
from src.modules.schedule.conflicts import ConflictChecker
from src.modules.schedule.slots import generate_slots
from src.shared.timeutils import DateLike, parse_date, shop_now


def _parse_requested(date_input: DateLike | None) -> date:
    if date_input is None or (isinstance(date_input, str) and not date_input.strip()):
        raise DomainValidationError("Date parameter is required", {"date": ["The date field is required."]})
    try:
        return parse_date(date_input)
    except ValueError as exc:
        raise DomainValidationError("Invalid date format", {"date": ["The date is not a valid date."]}) from exc


class AvailabilityService:
    def __init__(self, checker: ConflictChecker):
        self.checker = checker

    def _today(self) -> date:
        return shop_now().date()

    def validate_date(self, date_input: DateLike | None) -> date:
        """Parse a requested booking date; it must be today or later."""
        requested = _parse_requested(date_input)
        if requested < self._today():
            raise DomainValidationError(
                "Date must be today or in the future",
                {"date": ["The date must be today or in the future."]},
            )
        return requested

    async def get_available_slots(
        self,
        date_input: DateLike | None,
        exclude_order_id: str | None = None,
        exclude_appointment_id: str | None = None,
    ) -> list[str]:
        requested = self.validate_date(date_input)
        booked = await self.checker.booked_times(
            requested,
            exclude_order_id,
            exclude_appointment_id,
            include_order_timestamps=True,
        )
        return [slot for slot in generate_slots() if slot not in booked]

    async def booked_times(self, date_input: DateLike | None, exclude_order_id: str | None = None) -> list[str]:
        """Times already taken on a date, for the admin check/pickup pickers."""
        booked = await self.checker.booked_times(_parse_requested(date_input), exclude_order_id)
        return sorted(booked)
