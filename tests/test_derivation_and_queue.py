from datetime import date, datetime, time
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from src.modules.appointments.models import Appointment
from src.modules.orders.derivation import NO_SLOT, DateTimeDeriver, DerivedSlot
from src.modules.orders.models import Order
from src.modules.orders.queue import NO_QUEUE_MESSAGE, QueueManager
from src.modules.orders.repository import OrderRepository
from src.shared.enums import AppointmentStatus, OrderStatus

MANILA = ZoneInfo("Asia/Manila")
QUEUE_DAY = date(2024, 6, 1)


def _order(appointment_status: str = "accepted", status: OrderStatus = OrderStatus.PENDING, **fields) -> Order:
    appointment = Appointment(
        status=appointment_status,
        appointment_date=date(2024, 6, 1),
        appointment_time=time(9, 0),
    )
    return Order(appointment=appointment, status=status, **fields)


@pytest.mark.parametrize("status", list(OrderStatus))
def test_pending_appointment_has_no_slot_whatever_the_order_says(status):
    order = _order(
        " Pending ",
        status,
        check_appointment_date=date(2024, 6, 3),
        check_appointment_time=time(10, 0),
        pickup_appointment_date=date(2024, 6, 5),
        pickup_appointment_time=time(11, 0),
    )
    assert DateTimeDeriver().derive(order) == NO_SLOT


def test_pending_order_uses_appointment_slot():
    assert DateTimeDeriver().derive(_order()) == DerivedSlot("2024-06-01", "09:00:00")


def test_ready_to_check_prefers_check_slot():
    order = _order(
        status=OrderStatus.READY_TO_CHECK,
        check_appointment_date=date(2024, 6, 3),
        check_appointment_time=time(14, 15),
    )
    assert DateTimeDeriver().derive(order) == DerivedSlot("2024-06-03", "14:15:00")


def test_ready_to_check_without_full_check_slot_falls_back():
    order = _order(status=OrderStatus.READY_TO_CHECK, check_appointment_date=date(2024, 6, 3))
    assert DateTimeDeriver().derive(order) == DerivedSlot("2024-06-01", "09:00:00")


def test_completed_prefers_pickup_slot():
    order = _order(
        status=OrderStatus.COMPLETED,
        pickup_appointment_date=date(2024, 6, 8),
        pickup_appointment_time=time(16, 0),
    )
    assert DateTimeDeriver().derive(order) == DerivedSlot("2024-06-08", "16:00:00")
    assert DateTimeDeriver().derive(_order(status=OrderStatus.COMPLETED)) == DerivedSlot("2024-06-01", "09:00:00")


@pytest.mark.parametrize("status", [OrderStatus.FINISHED, OrderStatus.CANCELLED])
def test_terminal_orders_have_no_slot(status):
    assert DateTimeDeriver().derive(_order(status=status)) == NO_SLOT


def test_order_without_appointment_has_no_slot():
    assert DateTimeDeriver().derive(SimpleNamespace(order_id="o1", appointment=None)) == NO_SLOT


def test_unknown_status_falls_back_to_appointment_slot():
    appointment = SimpleNamespace(
        normalized_status="accepted",
        appointment_date="2024-06-01 00:00:00",
        appointment_time="09:30",
    )
    order = SimpleNamespace(order_id="o1", status="On Hold", appointment=appointment)
    assert DateTimeDeriver().derive(order) == DerivedSlot("2024-06-01", "09:30:00")


def test_unreadable_component_is_reported_as_none(caplog):
    appointment = SimpleNamespace(
        normalized_status="accepted",
        appointment_date="2024-06-01",
        appointment_time="half past nine",
    )
    order = SimpleNamespace(order_id="o1", status=OrderStatus.PENDING, appointment=appointment)

    with caplog.at_level("WARNING", logger="src.modules.orders.derivation"):
        slot = DateTimeDeriver().derive(order)

    assert slot == DerivedSlot("2024-06-01", None)
    assert "Unreadable time" in caplog.text


@pytest.fixture
def queue(db_session):
    return QueueManager(OrderRepository(db_session))


@pytest.fixture
def accepted_on(make_appointment, make_order):
    async def _make(slot_time: time, slot_date: date = QUEUE_DAY, **order_fields) -> Order:
        appointment = await make_appointment(
            appointment_date=slot_date,
            appointment_time=slot_time,
            status=AppointmentStatus.ACCEPTED.value,
        )
        return await make_order(appointment, **order_fields)

    return _make


@pytest.mark.asyncio
async def test_recalculation_is_dense_per_day_and_idempotent(queue, accepted_on, make_appointment, make_order):
    late = await accepted_on(time(15, 0), queue_number=1)
    early = await accepted_on(time(9, 0), queue_number=7)
    middle = await accepted_on(time(11, 0))
    other_day = await accepted_on(time(13, 0), slot_date=date(2024, 6, 2), queue_number=4)
    moved = await accepted_on(
        time(8, 0),
        status=OrderStatus.READY_TO_CHECK,
        check_appointment_date=date(2024, 6, 2),
        check_appointment_time=time(10, 0),
    )
    finished = await accepted_on(time(8, 30), status=OrderStatus.FINISHED, queue_number=9)
    pending_appointment = await make_appointment(appointment_date=QUEUE_DAY, appointment_time=time(12, 0))
    unreviewed = await make_order(pending_appointment, queue_number=5)

    assert await queue.recalculate_queue_numbers() > 0

    assert [early.queue_number, middle.queue_number, late.queue_number] == [1, 2, 3]
    assert [moved.queue_number, other_day.queue_number] == [1, 2]
    assert finished.queue_number == 9
    assert unreviewed.queue_number == 5

    assert await QueueManager(queue.orders).recalculate_queue_numbers() == 0


@pytest.mark.asyncio
async def test_same_time_orders_are_ordered_by_id(queue, accepted_on):
    first = await accepted_on(time(10, 0))
    second = await accepted_on(time(10, 0))

    await queue.recalculate_queue_numbers()

    by_id = sorted([first, second], key=lambda order: order.order_id)
    assert [order.queue_number for order in by_id] == [1, 2]


@pytest.mark.asyncio
async def test_today_queue_picks_first_order_not_yet_past(queue, accepted_on):
    a = await accepted_on(time(9, 0))
    b = await accepted_on(time(10, 0))
    c = await accepted_on(time(11, 0))

    view = await queue.get_today_queue(datetime(2024, 6, 1, 9, 30, tzinfo=MANILA))

    assert view.has_queue is True
    assert view.current_date == "2024-06-01"
    assert view.current_time == "09:30:00"
    assert view.current_customer.order_id == b.order_id
    assert view.next_customer.order_id == c.order_id
    assert [entry.order_id for entry in view.all_orders] == [a.order_id, b.order_id, c.order_id]
    assert [entry.queue_number for entry in view.all_orders] == [1, 2, 3]
    assert view.current_customer.name == "Maria Santos"
    assert view.current_customer.appointment_time == "10:00:00"


@pytest.mark.asyncio
async def test_today_queue_after_last_slot_keeps_last_customer(queue, accepted_on):
    await accepted_on(time(9, 0))
    last = await accepted_on(time(10, 0))

    view = await queue.get_today_queue(datetime(2024, 6, 1, 18, 0, tzinfo=MANILA))

    assert view.current_customer.order_id == last.order_id
    assert view.next_customer is None


@pytest.mark.asyncio
async def test_today_queue_exact_slot_time_is_current(queue, accepted_on):
    await accepted_on(time(9, 0))
    on_time = await accepted_on(time(10, 0))

    view = await queue.get_today_queue(datetime(2024, 6, 1, 10, 0, tzinfo=MANILA))

    assert view.current_customer.order_id == on_time.order_id


@pytest.mark.asyncio
async def test_empty_day_reports_no_queue(queue, accepted_on):
    await accepted_on(time(9, 0))

    view = await queue.get_today_queue(datetime(2024, 6, 2, 9, 0, tzinfo=MANILA))

    assert view.has_queue is False
    assert view.message == NO_QUEUE_MESSAGE
    assert view.current_customer is None
    assert view.all_orders == []


@pytest.mark.asyncio
async def test_today_count_uses_derived_date(queue, accepted_on):
    await accepted_on(time(9, 0))
    await accepted_on(
        time(10, 0),
        status=OrderStatus.COMPLETED,
        pickup_appointment_date=date(2024, 6, 4),
        pickup_appointment_time=time(15, 0),
    )
    await accepted_on(time(11, 0), status=OrderStatus.CANCELLED)

    assert await queue.today_count(QUEUE_DAY) == 1
    assert await queue.today_count(date(2024, 6, 4)) == 1


@pytest.mark.asyncio
async def test_ready_to_check_orders_queue_on_their_check_day(queue, accepted_on):
    a = await accepted_on(
        time(8, 0),
        slot_date=date(2024, 5, 28),
        status=OrderStatus.READY_TO_CHECK,
        check_appointment_date=QUEUE_DAY,
        check_appointment_time=time(9, 0),
    )
    b = await accepted_on(
        time(8, 30),
        slot_date=date(2024, 5, 28),
        status=OrderStatus.READY_TO_CHECK,
        check_appointment_date=QUEUE_DAY,
        check_appointment_time=time(10, 0),
    )

    view = await queue.get_today_queue(datetime(2024, 6, 1, 9, 30, tzinfo=MANILA))

    assert [(entry.order_id, entry.queue_number) for entry in view.all_orders] == [(a.order_id, 1), (b.order_id, 2)]
    # 09:00 has already passed at 09:30, so B is being served.
    assert view.current_customer.order_id == b.order_id
    assert view.next_customer is None
