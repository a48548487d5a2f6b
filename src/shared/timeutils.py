"""Date/time normalisation helpers.

Schedule values reach the core as ``date``/``time``/``datetime`` objects or as
strings in several shapes (``HH:MM``, ``HH:MM:SS``, ``YYYY-MM-DD HH:MM:SS``,
ISO 8601). Everything is compared through these helpers so that
``09:00`` and ``09:00:00`` name the same slot.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from src.core.config import settings

DateLike = date | datetime | str
TimeLike = time | datetime | str


def parse_date(value: DateLike) -> date:
    """Return the calendar date of ``value``, dropping any time-of-day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        raise ValueError("empty date")
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return datetime.fromisoformat(text).date()


def parse_time(value: TimeLike) -> time:
    """Return the time-of-day of ``value`` without tzinfo or microseconds."""
    if isinstance(value, datetime):
        parsed = value.time()
    elif isinstance(value, time):
        parsed = value
    else:
        text = value.strip()
        if not text:
            raise ValueError("empty time")
        # datetime strings carry the time after the separator
        for separator in ("T", " "):
            if separator in text:
                text = text.rsplit(separator, 1)[-1]
                break
        parsed = time.fromisoformat(text)
    return parsed.replace(microsecond=0, tzinfo=None)


def normalize_date(value: DateLike | None) -> str | None:
    """``YYYY-MM-DD`` or ``None``."""
    if value is None or value == "":
        return None
    return parse_date(value).isoformat()


def normalize_time(value: TimeLike | None, *, seconds: bool = False) -> str | None:
    """``HH:MM`` (or ``HH:MM:SS`` with ``seconds=True``) or ``None``."""
    if value is None or value == "":
        return None
    parsed = parse_time(value)
    return parsed.strftime("%H:%M:%S" if seconds else "%H:%M")


def shop_zone() -> ZoneInfo:
    return ZoneInfo(settings.shop_timezone)


def shop_now() -> datetime:
    """Current wall-clock time in the shop's timezone."""
    return datetime.now(shop_zone())


def to_shop_time(value: datetime) -> datetime:
    """Express an aware timestamp in shop time; naive values are taken as shop-local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(shop_zone())


def shop_day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, shop_zone())
    return start, start + timedelta(days=1)
