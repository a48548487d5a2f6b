"""The fixed universe of bookable time slots."""

from __future__ import annotations

from functools import lru_cache

FIRST_HOUR = 8
LAST_HOUR = 20
SLOT_MINUTES = (0, 30)
LUNCH_BREAK = frozenset({"12:00", "12:30"})


@lru_cache(1)
def generate_slots() -> tuple[str, ...]:
    """``HH:MM`` half-hour slots for every hour 08..20 (last slot 20:30), lunch excluded."""
    return tuple(
        label
        for hour in range(FIRST_HOUR, LAST_HOUR + 1)
        for minute in SLOT_MINUTES
        if (label := f"{hour:02d}:{minute:02d}") not in LUNCH_BREAK
    )


def is_bookable(slot: str) -> bool:
    return slot in generate_slots()
