# coachbook/services/reviews.py
"""Athlete reviews of finished sessions."""
from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.core.errors import Conflict, Forbidden, InvalidOperation, NotFound, ValidationError, messages
from coachbook.core.logging import get_logger
from coachbook.crud import booking as booking_crud
from coachbook.crud import engagement as engagement_crud
from coachbook.db.models.booking import BookingStatus
from coachbook.db.models.coach import Coach
from coachbook.db.models.engagement import Review

logger = get_logger(__name__)


async def create_review(
    db: AsyncSession,
    *,
    athlete_id: int,
    booking_id: int,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    if not 1 <= rating <= 5:
        raise ValidationError(messages.INVALID_RATING)

    booking = await booking_crud.get_booking(db, booking_id)
    if booking is None:
        raise NotFound(messages.BOOKING_NOT_FOUND)
    if booking.athlete_id != athlete_id:
        raise Forbidden(messages.NOT_ALLOWED_TO_REVIEW)
    if booking.status != BookingStatus.FINISHED:
        raise InvalidOperation(messages.REVIEW_NOT_FINISHED)
    if await engagement_crud.get_review_for_booking(db, booking_id) is not None:
        raise Conflict(messages.REVIEW_EXISTS)

    try:
        review = await engagement_crud.create_review(
            db,
            booking_id=booking_id,
            athlete_id=athlete_id,
            coach_id=booking.coach_id,
            rating=rating,
            comment=comment,
        )
    except IntegrityError:
        raise Conflict(messages.REVIEW_EXISTS)

    logger.info("review_created", review_id=review.id, booking_id=booking_id, rating=rating)
    return review


async def reviews_for_coach(
    db: AsyncSession, *, coach_id: int, page: int = 1, limit: int = 10
) -> tuple[Sequence[Review], int]:
    if await db.get(Coach, coach_id) is None:
        raise NotFound(messages.COACH_NOT_FOUND)
    page = max(page, 1)
    return await engagement_crud.list_reviews(db, coach_id=coach_id, offset=(page - 1) * limit, limit=limit)
