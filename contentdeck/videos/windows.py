"""Deterministic schedule slot helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Collection, Iterable, Sequence


DEFAULT_DAILY_SLOTS_UTC = tuple(f"{hour:02d}:00" for hour in range(9, 21))

# Upper bound on days scanned when every slot is taken.
MAX_SEARCH_DAYS = 366


@dataclass(frozen=True)
class ScheduleSlot:
    scheduled_for: datetime
    slot_key: str


def normalize_slot(value: datetime) -> datetime:
    """Return ``value`` in UTC with seconds and microseconds dropped.

    Naive datetimes are taken to be UTC already.
    """

    aware = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    return aware.astimezone(timezone.utc).replace(second=0, microsecond=0)


def slot_key(value: datetime) -> str:
    return normalize_slot(value).strftime("%Y%m%d-%H%M")


def parse_daily_slots_utc(raw: str | Sequence[str] | None) -> tuple[time, ...]:
    values: Iterable[str]
    if raw is None:
        values = DEFAULT_DAILY_SLOTS_UTC
    elif isinstance(raw, str):
        values = [token.strip() for token in raw.split(",")]
    else:
        values = [str(token).strip() for token in raw]

    parsed: set[tuple[int, int]] = set()
    for token in values:
        if not token:
            continue
        pieces = token.split(":")
        if len(pieces) != 2 or not pieces[0].isdigit() or not pieces[1].isdigit():
            raise ValueError(f"Invalid UTC slot format: {token}")
        hour = int(pieces[0])
        minute = int(pieces[1])
        if hour > 23 or minute > 59:
            raise ValueError(f"Invalid UTC slot value: {token}")
        parsed.add((hour, minute))

    if not parsed:
        raise ValueError("At least one DAILY_SCHEDULE_SLOTS_UTC value is required.")
    return tuple(time(hour=hour, minute=minute, tzinfo=timezone.utc) for hour, minute in sorted(parsed))


def next_free_slot(
    now_utc: datetime,
    taken: Collection[datetime],
    *,
    slots_utc: Sequence[time] | None = None,
) -> ScheduleSlot:
    """Pick the earliest grid slot strictly after ``now_utc`` not in ``taken``."""

    now = now_utc if now_utc.tzinfo is not None else now_utc.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    slots = tuple(slots_utc or parse_daily_slots_utc(None))
    taken_keys = {slot_key(value) for value in taken}

    for day_offset in range(MAX_SEARCH_DAYS):
        day = now + timedelta(days=day_offset)
        for slot in slots:
            candidate = datetime(
                year=day.year,
                month=day.month,
                day=day.day,
                hour=slot.hour,
                minute=slot.minute,
                tzinfo=timezone.utc,
            )
            if candidate <= now:
                continue
            key = slot_key(candidate)
            if key not in taken_keys:
                return ScheduleSlot(scheduled_for=candidate, slot_key=key)

    raise ValueError(f"No free schedule slot within {MAX_SEARCH_DAYS} days")
