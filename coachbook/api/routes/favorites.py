# coachbook/api/routes/favorites.py

from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.api.auth import require_athlete
from coachbook.core.identity import AthleteActor
from coachbook.db.session import get_session
from coachbook.schemas.engagement import FavoriteOut, FavoriteToggleIn, FavoriteToggleOut
from coachbook.services import favorites as favorite_service

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.post("", response_model=FavoriteToggleOut)
async def toggle_favorite(
    payload: FavoriteToggleIn,
    athlete: AthleteActor = Depends(require_athlete),
    db: AsyncSession = Depends(get_session),
):
    is_favorite = await favorite_service.toggle_favorite(db, athlete_id=athlete.id, coach_id=payload.coach_id)
    return FavoriteToggleOut(coach_id=payload.coach_id, is_favorite=is_favorite)


@router.get("", response_model=List[FavoriteOut])
async def list_favorites(
    athlete: AthleteActor = Depends(require_athlete),
    db: AsyncSession = Depends(get_session),
):
    return await favorite_service.list_favorites(db, athlete_id=athlete.id)
