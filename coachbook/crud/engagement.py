# coachbook/crud/engagement.py

from __future__ import annotations
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from coachbook.db.models.engagement import Favorite, Review


async def get_review_for_booking(db: AsyncSession, booking_id: int) -> Optional[Review]:
    res = await db.execute(sa.select(Review).where(Review.booking_id == booking_id))
    return res.scalar_one_or_none()


async def create_review(
    db: AsyncSession,
    *,
    booking_id: int,
    athlete_id: int,
    coach_id: int,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    review = Review(
        booking_id=booking_id,
        athlete_id=athlete_id,
        coach_id=coach_id,
        rating=rating,
        comment=comment,
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise
    # athlete relationship is needed by the response
    await db.refresh(review, attribute_names=["athlete"])
    return review


async def list_reviews(
    db: AsyncSession, *, coach_id: int, offset: int = 0, limit: int = 10
) -> tuple[Sequence[Review], int]:
    q = (
        sa.select(Review)
        .where(Review.coach_id == coach_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(offset)
        .limit(limit)
    )
    items = (await db.execute(q)).scalars().all()
    total = await db.scalar(sa.select(sa.func.count(Review.id)).where(Review.coach_id == coach_id))
    return items, int(total or 0)


async def get_favorite(db: AsyncSession, *, athlete_id: int, coach_id: int) -> Optional[Favorite]:
    res = await db.execute(
        sa.select(Favorite).where(Favorite.athlete_id == athlete_id, Favorite.coach_id == coach_id)
    )
    return res.scalar_one_or_none()


async def list_favorites(db: AsyncSession, *, athlete_id: int) -> Sequence[Favorite]:
    res = await db.execute(
        sa.select(Favorite)
        .where(Favorite.athlete_id == athlete_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
    )
    return res.scalars().all()
