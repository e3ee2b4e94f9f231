"""
Half-hour grid arithmetic.

Pure functions only: converting "HH:MM" strings, laying out the slot
start times between opening and closing, and turning a slot into the
aware instants it covers on a given day.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from courtbook.config import DEFAULT_TIMEZONE, SLOT_STEP_MINUTES
from courtbook.errors import ValidationError


def parse_time(value: str) -> time:
    """Parse an "HH:MM" string, raising ValidationError when malformed."""
    try:
        hours, minutes = value.split(":")
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time of day {value!r}, expected HH:MM") from None


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def slots(
    opening_time: str,
    closing_time: str,
    step_minutes: int = SLOT_STEP_MINUTES,
) -> list[str]:
    """
    Slot start times covering [opening_time, closing_time).

    The closing time itself is never a slot start, and a slot is emitted
    whenever it starts before closing. Empty when opening >= closing.
    """
    start = _minutes(parse_time(opening_time))
    end = _minutes(parse_time(closing_time))
    return [
        f"{minute // 60:02d}:{minute % 60:02d}"
        for minute in range(start, end, step_minutes)
    ]


def is_contiguous(times: Iterable[str], step_minutes: int = SLOT_STEP_MINUTES) -> bool:
    """True when the sorted times form an unbroken chain at the grid step."""
    ordered = sorted(_minutes(parse_time(t)) for t in times)
    return all(b - a == step_minutes for a, b in zip(ordered, ordered[1:]))


def club_zone(name: str | None) -> ZoneInfo:
    """Resolve a club's timezone, falling back to the configured default."""
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except ZoneInfoNotFoundError:
        raise ValidationError(f"Unknown timezone {name!r}") from None


def slot_start(day: date, time_of_day: str, zone: ZoneInfo) -> datetime:
    """The UTC instant at which a slot starts on the given local day."""
    local = datetime.combine(day, parse_time(time_of_day), tzinfo=zone)
    return local.astimezone(timezone.utc)


def slot_interval(
    day: date,
    time_of_day: str,
    zone: ZoneInfo,
    step_minutes: int = SLOT_STEP_MINUTES,
) -> tuple[datetime, datetime]:
    start = slot_start(day, time_of_day, zone)
    return start, start + timedelta(minutes=step_minutes)


def local_date(instant: datetime, zone: ZoneInfo) -> date:
    """Calendar day of an instant as seen from the club."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(zone).date()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
