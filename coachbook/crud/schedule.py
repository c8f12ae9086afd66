# coachbook/crud/schedule.py

from __future__ import annotations
from datetime import date, time
from typing import Iterable, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.db.models.schedule import CoachAvailability, SlotStatus, TimeSlot


async def get_availability(
    db: AsyncSession, *, coach_id: int, slot_date: date
) -> Optional[CoachAvailability]:
    res = await db.execute(
        sa.select(CoachAvailability).where(
            CoachAvailability.coach_id == coach_id,
            CoachAvailability.slot_date == slot_date,
        )
    )
    return res.scalar_one_or_none()


async def upsert_availability(
    db: AsyncSession,
    *,
    coach_id: int,
    slot_date: date,
    start_time: time,
    end_time: time,
) -> CoachAvailability:
    """Create or overwrite the (coach, date) window. Flushes, does not commit."""
    availability = await get_availability(db, coach_id=coach_id, slot_date=slot_date)
    if availability is None:
        availability = CoachAvailability(
            coach_id=coach_id,
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
            is_active=True,
        )
        db.add(availability)
    else:
        availability.start_time = start_time
        availability.end_time = end_time
        availability.is_active = True
    await db.flush()
    return availability


async def get_slot(db: AsyncSession, slot_id: int, *, lock: bool = False) -> Optional[TimeSlot]:
    q = sa.select(TimeSlot).where(TimeSlot.id == slot_id)
    if lock:
        q = q.with_for_update(of=TimeSlot)
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def list_slots(
    db: AsyncSession,
    availability_id: int,
    *,
    active_only: bool = False,
    lock: bool = False,
) -> Sequence[TimeSlot]:
    q = sa.select(TimeSlot).where(TimeSlot.availability_id == availability_id)
    if active_only:
        q = q.where(TimeSlot.status == SlotStatus.ACTIVE)
    if lock:
        q = q.with_for_update(of=TimeSlot)
    q = q.order_by(TimeSlot.start_time.asc())
    res = await db.execute(q)
    return res.scalars().all()


async def delete_slots(db: AsyncSession, availability_id: int) -> int:
    res = await db.execute(
        sa.delete(TimeSlot).where(TimeSlot.availability_id == availability_id)
    )
    return res.rowcount or 0


async def insert_slots(
    db: AsyncSession,
    availability: CoachAvailability,
    ranges: Iterable[tuple[time, time]],
) -> list[TimeSlot]:
    slots = [
        TimeSlot(
            availability=availability,
            start_time=start,
            end_time=end,
            status=SlotStatus.ACTIVE,
            is_booked=False,
        )
        for start, end in ranges
    ]
    db.add_all(slots)
    await db.flush()
    return slots


async def list_availabilities(
    db: AsyncSession,
    *,
    coach_id: int,
    from_date: Optional[date] = None,
    active_only: bool = True,
    limit: Optional[int] = None,
) -> Sequence[CoachAvailability]:
    q = sa.select(CoachAvailability).where(CoachAvailability.coach_id == coach_id)
    if from_date is not None:
        q = q.where(CoachAvailability.slot_date >= from_date)
    if active_only:
        q = q.where(CoachAvailability.is_active.is_(True))
    q = q.order_by(CoachAvailability.slot_date.asc())
    if limit is not None:
        q = q.limit(limit)
    res = await db.execute(q)
    return res.scalars().all()
