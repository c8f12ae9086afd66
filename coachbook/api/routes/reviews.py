# coachbook/api/routes/reviews.py

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.api.auth import require_athlete
from coachbook.api.deps import Pagination, get_pagination
from coachbook.core.identity import AthleteActor
from coachbook.db.session import get_session
from coachbook.schemas.common import Page, PageMeta
from coachbook.schemas.review import ReviewCreate, ReviewOut
from coachbook.services import reviews as review_service

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewOut, status_code=201)
async def create_review(
    payload: ReviewCreate,
    athlete: AthleteActor = Depends(require_athlete),
    db: AsyncSession = Depends(get_session),
):
    return await review_service.create_review(
        db,
        athlete_id=athlete.id,
        booking_id=payload.booking_id,
        rating=payload.rating,
        comment=payload.comment,
    )


@router.get("/coach/{coach_id}", response_model=Page[ReviewOut])
async def coach_reviews(
    coach_id: int,
    db: AsyncSession = Depends(get_session),
    paging: Pagination = Depends(get_pagination),
):
    items, total = await review_service.reviews_for_coach(
        db, coach_id=coach_id, page=paging.page, limit=paging.limit
    )
    return {
        "items": [ReviewOut.model_validate(r) for r in items],
        "meta": PageMeta.build(total=total, page=paging.page, limit=paging.limit),
    }
