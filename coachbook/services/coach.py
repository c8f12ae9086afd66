# coachbook/services/coach.py
"""Coach discovery, profile pages and "my coaches / my athletes"."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.core.business import today_local, weekly_schedule
from coachbook.core.config import settings
from coachbook.core.errors import Forbidden, NotFound, messages
from coachbook.core.identity import Actor, AdminActor, AthleteActor, CoachActor
from coachbook.crud import booking as booking_crud
from coachbook.crud import coach as coach_crud
from coachbook.crud import engagement as engagement_crud
from coachbook.crud import schedule as schedule_crud
from coachbook.crud.coach import CoachFilters
from coachbook.db.models.booking import BookingStatus
from coachbook.db.models.coach import Coach
from coachbook.db.models.engagement import Review
from coachbook.db.models.schedule import CoachAvailability
from coachbook.db.models.user import Athlete

RECENT_COUNTERPART_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.RESCHEDULED_ACCEPTED,
    BookingStatus.FINISHED,
)
MY_COACHES_LIMIT = 3
MY_ATHLETES_LIMIT = 5
DETAIL_REVIEWS_LIMIT = 10


@dataclass
class CoachCard:
    coach: Coach
    avg_rating: float
    total_reviews: int


@dataclass
class CoachDetail:
    coach: Coach
    avg_rating: float
    total_reviews: int
    availabilities: Sequence[CoachAvailability] = ()
    weekly_schedule: dict[str, str] = field(default_factory=dict)
    reviews: Sequence[Review] = ()


async def list_coaches(
    db: AsyncSession,
    filters: CoachFilters,
    *,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[CoachCard], int]:
    page = max(page, 1)
    rows, total = await coach_crud.search_coaches(db, filters, offset=(page - 1) * limit, limit=limit)
    return [CoachCard(coach=c, avg_rating=round(avg, 2), total_reviews=n) for c, avg, n in rows], total


async def get_coach_detail(db: AsyncSession, coach_id: int) -> CoachDetail:
    coach = await db.get(Coach, coach_id)
    if coach is None:
        raise NotFound(messages.COACH_NOT_FOUND)

    today = today_local()
    avg, total = await coach_crud.coach_rating(db, coach_id)
    upcoming = await schedule_crud.list_availabilities(
        db, coach_id=coach_id, from_date=today, limit=settings.UPCOMING_AVAILABILITY_LIMIT
    )
    week_end = today + timedelta(days=7)
    this_week = [
        (a.slot_date, a.start_time, a.end_time)
        for a in await schedule_crud.list_availabilities(db, coach_id=coach_id, from_date=today)
        if a.slot_date < week_end
    ]
    reviews, _ = await engagement_crud.list_reviews(db, coach_id=coach_id, limit=DETAIL_REVIEWS_LIMIT)

    return CoachDetail(
        coach=coach,
        avg_rating=round(avg, 2),
        total_reviews=total,
        availabilities=upcoming,
        weekly_schedule=weekly_schedule(this_week),
        reviews=reviews,
    )


async def my_counterparts(db: AsyncSession, *, actor: Actor) -> list[Coach] | list[Athlete]:
    """Coaches an athlete recently trained with, or athletes a coach recently trained."""
    match actor:
        case AthleteActor(id=athlete_id):
            bookings, _ = await booking_crud.list_bookings(
                db, athlete_id=athlete_id, statuses=RECENT_COUNTERPART_STATUSES,
                sort_by="createdAt", sort_order="desc",
            )
            people, limit = [b.coach for b in bookings], MY_COACHES_LIMIT
        case CoachActor(id=coach_id):
            bookings, _ = await booking_crud.list_bookings(
                db, coach_id=coach_id, statuses=RECENT_COUNTERPART_STATUSES,
                sort_by="createdAt", sort_order="desc",
            )
            people, limit = [b.athlete for b in bookings], MY_ATHLETES_LIMIT
        case AdminActor():
            raise Forbidden(messages.ROLE_REQUIRED)

    unique: dict[int, Coach | Athlete] = {}
    for person in people:
        unique.setdefault(person.id, person)
    return list(unique.values())[:limit]
