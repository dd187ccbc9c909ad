from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest

from contentdeck.videos.windows import next_free_slot, normalize_slot, parse_daily_slots_utc, slot_key


def test_normalize_slot_drops_seconds_and_treats_naive_as_utc() -> None:
    naive = datetime(2024, 6, 1, 9, 0, 42, 123)
    offset = datetime(2024, 6, 1, 11, 0, 5, tzinfo=timezone(timedelta(hours=2)))

    assert normalize_slot(naive) == datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
    assert normalize_slot(offset) == datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
    assert slot_key(offset) == "20240601-0900"


def test_parse_daily_slots_sorts_and_deduplicates() -> None:
    slots = parse_daily_slots_utc("18:30, 09:00,09:00")

    assert slots == (
        time(9, 0, tzinfo=timezone.utc),
        time(18, 30, tzinfo=timezone.utc),
    )


def test_parse_daily_slots_defaults_to_hourly_grid() -> None:
    slots = parse_daily_slots_utc(None)

    assert slots[0] == time(9, 0, tzinfo=timezone.utc)
    assert slots[-1] == time(20, 0, tzinfo=timezone.utc)
    assert len(slots) == 12


@pytest.mark.parametrize("raw", ["25:00", "9", "ab:cd", " , "])
def test_parse_daily_slots_rejects_invalid_values(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_daily_slots_utc(raw)


def test_next_free_slot_skips_past_and_taken_slots() -> None:
    now = datetime(2024, 6, 1, 9, 15, tzinfo=timezone.utc)
    taken = [datetime(2024, 6, 1, 10, 0, 30, tzinfo=timezone.utc)]

    slot = next_free_slot(now, taken, slots_utc=parse_daily_slots_utc("09:00,10:00,11:00"))

    assert slot.scheduled_for == datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc)
    assert slot.slot_key == "20240601-1100"


def test_next_free_slot_rolls_to_next_day() -> None:
    now = datetime(2024, 6, 1, 21, 0, tzinfo=timezone.utc)

    slot = next_free_slot(now, [], slots_utc=parse_daily_slots_utc("09:00"))

    assert slot.scheduled_for == datetime(2024, 6, 2, 9, 0, tzinfo=timezone.utc)
