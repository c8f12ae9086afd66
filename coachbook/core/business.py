# coachbook/core/business.py
from __future__ import annotations
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable
from zoneinfo import ZoneInfo

from coachbook.core.config import settings

LOCAL_TZ = ZoneInfo(settings.TIMEZONE)
UTC = timezone.utc

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
NOT_AVAILABLE = "Not Available"


def now_utc() -> datetime:
    return datetime.now(UTC)


def today_local() -> date:
    return now_utc().astimezone(LOCAL_TZ).date()


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to naive values (SQLite drops tzinfo on the way back)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def slot_start_on(day: date, start: time) -> datetime:
    """The UTC instant a slot starting at `start` begins on `day` in the business calendar."""
    return datetime.combine(day, start, tzinfo=LOCAL_TZ).astimezone(UTC)


def add_minutes(t: time, minutes: int) -> time | None:
    """Shift a time of day; None when the result would cross midnight."""
    anchor = datetime.combine(date.min, t)
    shifted = anchor + timedelta(minutes=minutes)
    if shifted.date() != anchor.date():
        return None
    return shifted.time()


def format_time_ampm(t: time | datetime) -> str:
    """10:00 -> "10:00 AM", 0:05 -> "12:05 AM"."""
    hour = t.hour % 12 or 12
    suffix = "PM" if t.hour >= 12 else "AM"
    return f"{hour}:{t.minute:02d} {suffix}"


def weekly_schedule(windows: Iterable[tuple[date, time, time]]) -> dict[str, str]:
    """
    Summarise availability windows as one "start - end" string per weekday.
    Later windows for the same weekday overwrite earlier ones; days without a
    window read "Not Available". Keys are ordered Monday first.
    """
    schedule = {day: NOT_AVAILABLE for day in WEEKDAYS}
    for slot_date, start, end in windows:
        schedule[WEEKDAYS[slot_date.weekday()]] = f"{format_time_ampm(start)} - {format_time_ampm(end)}"
    return schedule
