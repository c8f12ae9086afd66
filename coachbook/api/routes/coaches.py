# coachbook/api/routes/coaches.py

from __future__ import annotations
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.api.auth import get_actor
from coachbook.api.deps import Pagination, get_pagination
from coachbook.core.identity import Actor
from coachbook.crud.coach import CoachFilters
from coachbook.db.session import get_session
from coachbook.schemas.coach import CoachCardOut, CoachDetailOut, ProfileOut
from coachbook.schemas.common import Page, PageMeta
from coachbook.services import coach as coach_service

router = APIRouter(prefix="/coaches", tags=["coaches"])


@router.get("", response_model=Page[CoachCardOut])
async def list_coaches(
    db: AsyncSession = Depends(get_session),
    paging: Pagination = Depends(get_pagination),
    search: Optional[str] = Query(None, max_length=100),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    experience: Optional[int] = Query(None, ge=0),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    gender: Optional[str] = None,
    location: Optional[str] = None,
):
    filters = CoachFilters(
        search_term=search.strip() if search else None,
        min_rating=min_rating,
        experience=experience,
        min_price=min_price,
        max_price=max_price,
        gender=gender,
        location=location,
    )
    cards, total = await coach_service.list_coaches(db, filters, page=paging.page, limit=paging.limit)
    return {
        "items": [CoachCardOut.from_card(c) for c in cards],
        "meta": PageMeta.build(total=total, page=paging.page, limit=paging.limit),
    }


@router.get("/my", response_model=List[ProfileOut])
async def my_counterparts(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_session)):
    """Recent coaches for an athlete, recent athletes for a coach."""
    return await coach_service.my_counterparts(db, actor=actor)


@router.get("/{coach_id}", response_model=CoachDetailOut)
async def coach_detail(coach_id: int, db: AsyncSession = Depends(get_session)):
    detail = await coach_service.get_coach_detail(db, coach_id)
    return CoachDetailOut.from_detail(detail)
