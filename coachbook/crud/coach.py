# coachbook/crud/coach.py

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.db.models.coach import Coach, Specialty
from coachbook.db.models.engagement import Review
from coachbook.db.models.user import User


@dataclass
class CoachFilters:
    search_term: Optional[str] = None
    min_rating: Optional[float] = None
    experience: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    gender: Optional[str] = None
    location: Optional[str] = None


def rating_subquery():
    """Per-coach average rating and review count."""
    return (
        sa.select(
            Review.coach_id.label("coach_id"),
            sa.func.avg(Review.rating).label("avg_rating"),
            sa.func.count(Review.id).label("total_reviews"),
        )
        .group_by(Review.coach_id)
        .subquery("ratings")
    )


async def search_coaches(
    db: AsyncSession,
    filters: CoachFilters,
    *,
    offset: int = 0,
    limit: int = 10,
) -> tuple[Sequence[tuple[Coach, float, int]], int]:
    """
    Coaches matching `filters`, ranked recommended -> subscribed -> regular and by
    average rating inside each group. Returns (coach, avg_rating, total_reviews) rows
    and the unpaginated total.
    """
    ratings = rating_subquery()
    avg_rating = sa.func.coalesce(ratings.c.avg_rating, 0)
    total_reviews = sa.func.coalesce(ratings.c.total_reviews, 0)

    conditions = [Coach.specialty_id.is_not(None)]
    if filters.search_term:
        term = f"%{filters.search_term}%"
        conditions.append(
            sa.or_(
                User.full_name.ilike(term),
                User.email.ilike(term),
                Coach.address.ilike(term),
                Specialty.title.ilike(term),
            )
        )
    if filters.experience is not None:
        conditions.append(Coach.experience == filters.experience)
    if filters.min_price is not None:
        conditions.append(Coach.price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(Coach.price <= filters.max_price)
    if filters.gender:
        conditions.append(Coach.gender == filters.gender)
    if filters.location:
        conditions.append(Coach.location.ilike(f"%{filters.location}%"))
    if filters.min_rating is not None:
        conditions.append(avg_rating >= filters.min_rating)

    tier = sa.case(
        (Coach.is_recommended.is_(True), 0),
        (Coach.is_subscribed.is_(True), 1),
        else_=2,
    )

    base = (
        sa.select(Coach.id)
        .join(User, User.id == Coach.id)
        .outerjoin(Specialty, Specialty.id == Coach.specialty_id)
        .outerjoin(ratings, ratings.c.coach_id == Coach.id)
        .where(*conditions)
    )
    total = await db.scalar(sa.select(sa.func.count()).select_from(base.subquery()))

    page_q = (
        base.add_columns(avg_rating.label("avg_rating"), total_reviews.label("total_reviews"))
        .order_by(tier.asc(), avg_rating.desc(), Coach.id.asc())
        .offset(offset)
        .limit(limit)
    )
    rows = (await db.execute(page_q)).all()
    if not rows:
        return [], int(total or 0)

    coaches = {
        c.id: c
        for c in (await db.execute(sa.select(Coach).where(Coach.id.in_([r.id for r in rows])))).scalars()
    }
    return [
        (coaches[r.id], float(r.avg_rating or 0), int(r.total_reviews or 0)) for r in rows
    ], int(total or 0)


async def coach_rating(db: AsyncSession, coach_id: int) -> tuple[float, int]:
    row = (
        await db.execute(
            sa.select(
                sa.func.coalesce(sa.func.avg(Review.rating), 0),
                sa.func.count(Review.id),
            ).where(Review.coach_id == coach_id)
        )
    ).one()
    return float(row[0] or 0), int(row[1] or 0)
