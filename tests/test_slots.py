from src.modules.schedule.slots import generate_slots


def test_catalog_has_24_slots_without_lunch():
    slots = generate_slots()
    assert len(slots) == 24
    assert "12:00" not in slots
    assert "12:30" not in slots


def test_catalog_is_strictly_ascending_and_bounded():
    slots = list(generate_slots())
    assert slots == sorted(set(slots))
    assert slots[0] == "08:00"
    assert slots[-1] == "20:30"
    assert "20:00" in slots
    assert "11:30" in slots and "13:00" in slots
