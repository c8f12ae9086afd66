# coachbook/crud/booking.py

from __future__ import annotations
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.db.models.booking import ACTIVE_STATUSES, Booking, BookingStatus

SORTABLE_COLUMNS = {
    "bookingDate": Booking.booking_date,
    "booking_date": Booking.booking_date,
    "createdAt": Booking.created_at,
    "created_at": Booking.created_at,
    "status": Booking.status,
}


async def get_booking(db: AsyncSession, booking_id: int, *, lock: bool = False) -> Optional[Booking]:
    q = sa.select(Booking).where(Booking.id == booking_id)
    if lock:
        q = q.with_for_update(of=Booking)
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def find_active_booking(
    db: AsyncSession,
    *,
    time_slot_id: int,
    booking_day: date,
) -> Optional[Booking]:
    res = await db.execute(
        sa.select(Booking).where(
            Booking.time_slot_id == time_slot_id,
            Booking.booking_day == booking_day,
            Booking.status.in_(ACTIVE_STATUSES),
        ).limit(1)
    )
    return res.scalar_one_or_none()


async def find_pending_reschedules(
    db: AsyncSession, original_id: int, *, lock: bool = False
) -> Sequence[Booking]:
    q = sa.select(Booking).where(
        Booking.reschedule_from_id == original_id,
        Booking.status == BookingStatus.RESCHEDULE_REQUEST,
    )
    if lock:
        q = q.with_for_update(of=Booking)
    res = await db.execute(q)
    return res.scalars().all()


async def list_bookings(
    db: AsyncSession,
    *,
    athlete_id: Optional[int] = None,
    coach_id: Optional[int] = None,
    statuses: Optional[Iterable[BookingStatus]] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    sort_by: str = "bookingDate",
    sort_order: str = "asc",
    offset: int = 0,
    limit: Optional[int] = None,
) -> tuple[Sequence[Booking], int]:
    """Filtered, ordered, paginated bookings plus the unpaginated total."""
    conditions = []
    if athlete_id is not None:
        conditions.append(Booking.athlete_id == athlete_id)
    if coach_id is not None:
        conditions.append(Booking.coach_id == coach_id)
    if statuses is not None:
        conditions.append(Booking.status.in_(list(statuses)))
    if from_date is not None:
        conditions.append(Booking.booking_date >= from_date)
    if to_date is not None:
        conditions.append(Booking.booking_date <= to_date)

    column = SORTABLE_COLUMNS.get(sort_by, Booking.booking_date)
    order = column.desc() if sort_order.lower() == "desc" else column.asc()

    q = sa.select(Booking).where(*conditions).order_by(order, Booking.id.asc()).offset(offset)
    if limit is not None:
        q = q.limit(limit)
    res = await db.execute(q)
    items = res.scalars().all()

    total = await db.scalar(sa.select(sa.func.count(Booking.id)).where(*conditions))
    return items, int(total or 0)


async def slots_with_bookings(db: AsyncSession, slot_ids: Iterable[int]) -> set[int]:
    """Ids among `slot_ids` that any booking, in any status, refers to."""
    slot_ids = list(slot_ids)
    if not slot_ids:
        return set()
    res = await db.execute(
        sa.select(Booking.time_slot_id).where(Booking.time_slot_id.in_(slot_ids)).distinct()
    )
    return set(res.scalars().all())
