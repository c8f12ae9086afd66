# coachbook/services/schedule.py
"""
Coach availability and time slots.

A coach declares one working window per calendar date. The window is cut into
fixed-length slots; single slots can be added next to them as long as they don't
overlap a sibling, and each slot can be switched between ACTIVE and INACTIVE.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Iterable, Optional, Protocol, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.core.business import add_minutes, today_local
from coachbook.core.config import settings
from coachbook.core.errors import (
    Conflict,
    Forbidden,
    InvalidOperation,
    NotFound,
    ValidationError,
    messages,
)
from coachbook.core.logging import get_logger
from coachbook.crud import schedule as schedule_crud
from coachbook.crud.booking import slots_with_bookings
from coachbook.db.models.coach import Coach
from coachbook.db.models.schedule import CoachAvailability, SlotStatus, TimeSlot
from coachbook.db.session import atomic

logger = get_logger(__name__)


class TimeRange(Protocol):
    start_time: time
    end_time: time


@dataclass
class GeneratedSchedule:
    availability: CoachAvailability
    slots: list[TimeSlot] = field(default_factory=list)


@dataclass
class DaySlots:
    availability: Optional[CoachAvailability]
    slots: Sequence[TimeSlot] = ()


# ---------- Pure helpers ----------

def plan_slots(window_start: time, window_end: time, interval_minutes: int) -> list[tuple[time, time]]:
    """
    Cut [window_start, window_end) into consecutive interval-sized slots.
    A trailing piece shorter than the interval is dropped, not truncated.
    """
    if interval_minutes <= 0:
        raise ValidationError(messages.INVALID_INTERVAL)
    if window_end <= window_start:
        raise ValidationError(messages.END_BEFORE_START)

    ranges: list[tuple[time, time]] = []
    current = window_start
    while current < window_end:
        slot_end = add_minutes(current, interval_minutes)
        if slot_end is None or slot_end <= current or slot_end > window_end:
            break
        ranges.append((current, slot_end))
        current = slot_end
    return ranges


def overlaps(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open overlap: touching boundaries do not conflict."""
    return start_a < end_b and end_a > start_b


def has_conflict(
    candidate_start: time,
    candidate_end: time,
    existing_slots: Iterable[TimeRange],
) -> tuple[bool, Optional[TimeRange]]:
    """Return (True, first overlapping slot) or (False, None)."""
    for slot in existing_slots:
        if overlaps(candidate_start, candidate_end, slot.start_time, slot.end_time):
            return True, slot
    return False, None


def _validate_window(slot_date: date, start_time: time, end_time: time) -> None:
    if end_time <= start_time:
        raise ValidationError(messages.END_BEFORE_START)
    if slot_date < today_local():
        raise ValidationError(messages.AVAILABILITY_IN_PAST)


async def _require_coach(db: AsyncSession, coach_id: int) -> Coach:
    coach = await db.get(Coach, coach_id)
    if coach is None:
        raise NotFound(messages.COACH_NOT_FOUND)
    return coach


# ---------- Operations ----------

async def generate_slots(
    db: AsyncSession,
    *,
    coach_id: int,
    slot_date: date,
    start_time: time,
    end_time: time,
    interval_minutes: Optional[int] = None,
) -> GeneratedSchedule:
    """
    Set the coach's window for `slot_date` and rebuild its slots from scratch.

    Regeneration is refused while any slot of that date is referenced by a booking,
    so bookings never lose the slot they point at.
    """
    interval = settings.SLOT_INTERVAL_MINUTES if interval_minutes is None else interval_minutes
    _validate_window(slot_date, start_time, end_time)
    ranges = plan_slots(start_time, end_time, interval)

    try:
        async with atomic(db):
            await _require_coach(db, coach_id)

            existing = await schedule_crud.get_availability(db, coach_id=coach_id, slot_date=slot_date)
            if existing is not None:
                current = await schedule_crud.list_slots(db, existing.id, lock=True)
                booked = sorted(
                    {s.id for s in current if s.is_booked}
                    | await slots_with_bookings(db, [s.id for s in current])
                )
                if booked:
                    raise Conflict(messages.REGENERATE_BOOKED, details={"booked_slot_ids": booked})

            availability = await schedule_crud.upsert_availability(
                db,
                coach_id=coach_id,
                slot_date=slot_date,
                start_time=start_time,
                end_time=end_time,
            )
            removed = await schedule_crud.delete_slots(db, availability.id)
            slots = await schedule_crud.insert_slots(db, availability, ranges)
    except IntegrityError:
        # Another request created this (coach, date) window first
        logger.info("availability_conflict", coach_id=coach_id, slot_date=slot_date.isoformat())
        raise Conflict(messages.AVAILABILITY_RACE)

    logger.info(
        "slots_generated",
        coach_id=coach_id,
        slot_date=slot_date.isoformat(),
        created=len(slots),
        removed=removed,
        interval=interval,
    )
    return GeneratedSchedule(availability=availability, slots=slots)


async def add_single_slot(
    db: AsyncSession,
    *,
    coach_id: int,
    slot_date: date,
    start_time: time,
    end_time: time,
) -> TimeSlot:
    """
    Add one slot to the coach's day. Fails with Conflict, writing nothing, when it
    overlaps any existing slot of that day; the first overlapping slot is reported.
    The day's window is widened to cover the new slot.
    """
    _validate_window(slot_date, start_time, end_time)

    try:
        async with atomic(db):
            await _require_coach(db, coach_id)

            availability = await schedule_crud.get_availability(db, coach_id=coach_id, slot_date=slot_date)
            if availability is None:
                availability = await schedule_crud.upsert_availability(
                    db,
                    coach_id=coach_id,
                    slot_date=slot_date,
                    start_time=start_time,
                    end_time=end_time,
                )
            else:
                siblings = await schedule_crud.list_slots(db, availability.id, lock=True)
                conflict, clash = has_conflict(start_time, end_time, siblings)
                if conflict:
                    raise Conflict(
                        messages.SLOT_OVERLAP,
                        details={
                            "conflicting_slot": {
                                "id": clash.id,
                                "start_time": clash.start_time.isoformat(timespec="minutes"),
                                "end_time": clash.end_time.isoformat(timespec="minutes"),
                            }
                        },
                    )
                availability.start_time = min(availability.start_time, start_time)
                availability.end_time = max(availability.end_time, end_time)
                availability.is_active = True

            (slot,) = await schedule_crud.insert_slots(db, availability, [(start_time, end_time)])
    except IntegrityError:
        logger.info("availability_conflict", coach_id=coach_id, slot_date=slot_date.isoformat())
        raise Conflict(messages.AVAILABILITY_RACE)

    logger.info("slot_added", coach_id=coach_id, slot_id=slot.id, slot_date=slot_date.isoformat())
    return slot


async def toggle_slot_status(db: AsyncSession, *, slot_id: int, coach_id: int) -> TimeSlot:
    """Flip ACTIVE <-> INACTIVE. A booked active slot cannot be switched off."""
    async with atomic(db):
        slot = await schedule_crud.get_slot(db, slot_id, lock=True)
        if slot is None:
            raise NotFound(messages.SLOT_NOT_FOUND)
        if slot.availability.coach_id != coach_id:
            raise Forbidden(messages.NOT_ALLOWED_TO_MODIFY_SLOT)
        if slot.status == SlotStatus.ACTIVE and slot.is_booked:
            raise InvalidOperation(messages.DEACTIVATE_BOOKED)

        slot.status = SlotStatus.INACTIVE if slot.status == SlotStatus.ACTIVE else SlotStatus.ACTIVE

    logger.info("slot_toggled", slot_id=slot_id, status=slot.status.value)
    return slot


async def slots_for_date(db: AsyncSession, *, coach_id: int, slot_date: date) -> DaySlots:
    """The coach's window and active slots for one day; empty when nothing is set."""
    await _require_coach(db, coach_id)
    availability = await schedule_crud.get_availability(db, coach_id=coach_id, slot_date=slot_date)
    if availability is None:
        return DaySlots(availability=None)
    slots = await schedule_crud.list_slots(db, availability.id, active_only=True)
    return DaySlots(availability=availability, slots=slots)
