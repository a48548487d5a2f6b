from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import text

from src.core.exceptions import DomainValidationError
from src.modules.appointments.schemas import AppointmentCreate
from src.modules.appointments.sizes import decode_sizes, encode_sizes
from src.shared.enums import SizeLabel
from src.shared.schemas import validate_form
from src.shared.timeutils import normalize_date, normalize_time, to_shop_time


def test_normalize_time_accepts_every_representation():
    assert normalize_time("09:00") == "09:00"
    assert normalize_time("09:00:00") == "09:00"
    assert normalize_time("2031-03-14 09:00:00") == "09:00"
    assert normalize_time("2031-03-14T09:00:00+08:00") == "09:00"
    assert normalize_time(time(9, 0, 30)) == "09:00"
    assert normalize_time("09:00", seconds=True) == "09:00:00"
    assert normalize_time(None) is None


def test_normalize_date_strips_time_of_day():
    assert normalize_date("2031-03-14 10:30:00") == "2031-03-14"
    assert normalize_date(datetime(2031, 3, 14, 23, 59)) == "2031-03-14"
    assert normalize_date(date(2031, 3, 14)) == "2031-03-14"
    with pytest.raises(ValueError):
        normalize_date("14/03/2031")


def test_to_shop_time_converts_aware_values():
    utc_value = datetime(2031, 3, 14, 1, 0, tzinfo=ZoneInfo("UTC"))
    assert to_shop_time(utc_value).hour == 9
    naive = datetime(2031, 3, 14, 9, 0)
    assert to_shop_time(naive) is naive


def test_decode_sizes_accepts_json_text_and_mappings():
    assert decode_sizes('{"Small": 2, "Extra Large": "1"}') == {SizeLabel.SMALL: 2, SizeLabel.EXTRA_LARGE: 1}
    assert decode_sizes({"Medium": 4}) == {SizeLabel.MEDIUM: 4}
    assert decode_sizes(None) == {}


@pytest.mark.parametrize(
    "raw",
    ['{"Huge": 1}', '{"Small": -1}', '{"Small": true}', '{"Small": 1.5}', "[1, 2]", "not json"],
)
def test_decode_sizes_rejects_bad_input(raw):
    with pytest.raises(ValueError):
        decode_sizes(raw)


def test_encode_sizes_writes_labels():
    assert encode_sizes({SizeLabel.LARGE: 3}) == '{"Large": 3}'


@pytest.mark.asyncio
async def test_sizes_column_stores_json_text(db_session, make_appointment):
    appointment = await make_appointment()
    raw = await db_session.scalar(
        text("SELECT sizes FROM appointments WHERE appointment_id = :id"),
        {"id": appointment.appointment_id},
    )
    assert decode_sizes(raw) == {SizeLabel.SMALL: 2, SizeLabel.MEDIUM: 1}


def test_booking_form_requires_matching_total():
    with pytest.raises(DomainValidationError) as exc_info:
        validate_form(
            AppointmentCreate,
            {
                "service_type": "Uniform",
                "sizes": '{"Small": 2, "Medium": 2}',
                "total_quantity": "3",
                "preferred_due_date": "2031-04-01",
                "appointment_date": "2031-03-14",
                "appointment_time": "09:00",
            },
        )
    assert exc_info.value.errors == {"total_quantity": ["Total quantity does not match the sum of sizes"]}


def test_booking_form_reports_missing_fields():
    with pytest.raises(DomainValidationError) as exc_info:
        validate_form(AppointmentCreate, {"service_type": "Uniform"})
    errors = exc_info.value.errors
    assert exc_info.value.status_code == 422
    assert {"sizes", "appointment_date", "appointment_time"} <= set(errors)
