import logging
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from src.core.exceptions import DomainValidationError
from src.modules.appointments.repository import AppointmentRepository
from src.modules.orders.repository import OrderRepository
from src.modules.schedule.conflicts import ConflictChecker
from src.modules.schedule.service import AvailabilityService
from src.modules.schedule.slots import generate_slots
from src.shared.enums import AppointmentState, AppointmentStatus, OrderStatus

BOOKING_DATE = date(2031, 3, 14)
MANILA = ZoneInfo("Asia/Manila")


@pytest.fixture
def checker(db_session):
    return ConflictChecker(AppointmentRepository(db_session), OrderRepository(db_session))


@pytest.fixture
def availability(checker):
    return AvailabilityService(checker)


@pytest.mark.asyncio
async def test_active_appointment_occupies_its_slot(checker, make_appointment):
    await make_appointment(appointment_time=time(9, 0))

    assert await checker.has_conflict(BOOKING_DATE, "09:00")
    assert await checker.has_conflict("2031-03-14 00:00:00", "09:00:00")
    assert not await checker.has_conflict(BOOKING_DATE, "09:30")
    assert not await checker.has_conflict(date(2031, 3, 15), "09:00")


@pytest.mark.asyncio
async def test_legacy_null_state_still_occupies(checker, make_appointment):
    await make_appointment(appointment_time=time(10, 0), state=None)
    assert await checker.has_conflict(BOOKING_DATE, "10:00")


@pytest.mark.asyncio
async def test_cancelled_appointment_releases_slot(checker, make_appointment):
    await make_appointment(appointment_time=time(9, 0), state=AppointmentState.CANCELLED.value)
    assert not await checker.has_conflict(BOOKING_DATE, "09:00")


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal", [OrderStatus.FINISHED, OrderStatus.CANCELLED])
async def test_terminal_order_releases_appointment_slot(checker, make_appointment, make_order, terminal):
    appointment = await make_appointment(appointment_time=time(9, 0), status=AppointmentStatus.ACCEPTED.value)
    await make_order(appointment, status=terminal)
    assert not await checker.has_conflict(BOOKING_DATE, "09:00")


@pytest.mark.asyncio
async def test_check_and_pickup_slots_occupy(checker, make_appointment, make_order):
    appointment = await make_appointment(appointment_date=date(2031, 3, 1), status=AppointmentStatus.ACCEPTED.value)
    order = await make_order(
        appointment,
        status=OrderStatus.READY_TO_CHECK,
        check_appointment_date=BOOKING_DATE,
        check_appointment_time=time(14, 0),
        pickup_appointment_date=BOOKING_DATE,
        pickup_appointment_time=time(16, 30),
    )

    assert await checker.has_conflict(BOOKING_DATE, "14:00")
    assert await checker.has_conflict(BOOKING_DATE, "16:30")
    assert not await checker.has_conflict(BOOKING_DATE, "14:00", exclude_order_id=order.order_id)


@pytest.mark.asyncio
async def test_excluded_appointment_does_not_conflict_with_itself(checker, make_appointment):
    appointment = await make_appointment(appointment_time=time(9, 0))
    assert not await checker.has_conflict(
        BOOKING_DATE,
        "09:00",
        exclude_appointment_id=appointment.appointment_id,
    )


@pytest.mark.asyncio
async def test_excluded_order_releases_its_appointment(checker, make_appointment, make_order):
    appointment = await make_appointment(appointment_time=time(9, 0), status=AppointmentStatus.ACCEPTED.value)
    order = await make_order(appointment)
    assert await checker.has_conflict(BOOKING_DATE, "09:00")
    assert not await checker.has_conflict(BOOKING_DATE, "09:00", exclude_order_id=order.order_id)


@pytest.mark.asyncio
async def test_lookup_failure_fails_open_and_logs(checker, monkeypatch, caplog):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(checker.appointments, "list_active_on", broken)
    with caplog.at_level(logging.ERROR, logger="src.modules.schedule.conflicts"):
        assert await checker.has_conflict(BOOKING_DATE, "09:00") is False
    assert any(record.levelno == logging.ERROR for record in caplog.records)


@pytest.mark.asyncio
async def test_available_slots_drop_all_five_sources(availability, make_appointment, make_order):
    await make_appointment(appointment_time=time(8, 0))
    other = await make_appointment(appointment_date=date(2031, 3, 1), status=AppointmentStatus.ACCEPTED.value)
    await make_order(
        other,
        status=OrderStatus.COMPLETED,
        scheduled_at=datetime(2031, 3, 14, 9, 0, tzinfo=MANILA),
        completed_at=datetime(2031, 3, 14, 10, 30, tzinfo=MANILA),
        check_appointment_date=BOOKING_DATE,
        check_appointment_time=time(13, 0),
        pickup_appointment_date=BOOKING_DATE,
        pickup_appointment_time=time(15, 0),
    )

    slots = await availability.get_available_slots("2031-03-14")

    for taken in ("08:00", "09:00", "10:30", "13:00", "15:00"):
        assert taken not in slots
    assert set(slots) <= set(generate_slots())
    assert len(slots) == len(generate_slots()) - 5
    assert slots == [slot for slot in generate_slots() if slot in slots]


@pytest.mark.asyncio
async def test_finished_order_timestamps_do_not_block(availability, make_appointment, make_order):
    other = await make_appointment(appointment_date=date(2031, 3, 1), status=AppointmentStatus.ACCEPTED.value)
    await make_order(other, status=OrderStatus.FINISHED, scheduled_at=datetime(2031, 3, 14, 9, 0, tzinfo=MANILA))
    assert "09:00" in await availability.get_available_slots(BOOKING_DATE)


@pytest.mark.asyncio
async def test_available_slots_honour_exclusions(availability, make_appointment):
    appointment = await make_appointment(appointment_time=time(11, 0))
    assert "11:00" not in await availability.get_available_slots(BOOKING_DATE)
    slots = await availability.get_available_slots(BOOKING_DATE, exclude_appointment_id=appointment.appointment_id)
    assert "11:00" in slots


@pytest.mark.asyncio
@pytest.mark.parametrize("past", ["2020-01-01", "2020-01-01T10:00:00", date(2020, 1, 1)])
async def test_past_dates_are_rejected(availability, past):
    with pytest.raises(DomainValidationError) as exc_info:
        await availability.get_available_slots(past)
    assert exc_info.value.detail == "Date must be today or in the future"


@pytest.mark.asyncio
async def test_today_is_accepted(availability, monkeypatch):
    monkeypatch.setattr(AvailabilityService, "_today", lambda self: BOOKING_DATE)
    assert await availability.get_available_slots("2031-03-14") == list(generate_slots())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("value", "message"),
    [(None, "Date parameter is required"), ("", "Date parameter is required"), ("next friday", "Invalid date format")],
)
async def test_missing_or_malformed_date(availability, value, message):
    with pytest.raises(DomainValidationError) as exc_info:
        await availability.get_available_slots(value)
    assert exc_info.value.detail == message
    assert "date" in exc_info.value.errors


@pytest.mark.asyncio
async def test_admin_booked_times_skip_order_timestamps_and_excluded_order(availability, make_appointment, make_order):
    await make_appointment(appointment_time=time(8, 0))
    other = await make_appointment(appointment_date=date(2031, 3, 1), status=AppointmentStatus.ACCEPTED.value)
    order = await make_order(
        other,
        status=OrderStatus.READY_TO_CHECK,
        scheduled_at=datetime(2031, 3, 14, 9, 0, tzinfo=MANILA),
        check_appointment_date=BOOKING_DATE,
        check_appointment_time=time(13, 0),
    )

    assert await availability.booked_times("2031-03-14") == ["08:00", "13:00"]
    assert await availability.booked_times("2031-03-14", order.order_id) == ["08:00"]
