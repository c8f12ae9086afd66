# coachbook/services/favorites.py
from __future__ import annotations

from typing import Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.core.errors import NotFound, messages
from coachbook.core.logging import get_logger
from coachbook.crud import engagement as engagement_crud
from coachbook.db.models.coach import Coach
from coachbook.db.models.engagement import Favorite
from coachbook.db.models.user import Athlete

logger = get_logger(__name__)


async def toggle_favorite(db: AsyncSession, *, athlete_id: int, coach_id: int) -> bool:
    """Add the coach to the athlete's favorites, or remove it. Returns the new state."""
    if await db.get(Athlete, athlete_id) is None:
        raise NotFound(messages.ATHLETE_NOT_FOUND)
    if await db.get(Coach, coach_id) is None:
        raise NotFound(messages.COACH_NOT_FOUND)

    existing = await engagement_crud.get_favorite(db, athlete_id=athlete_id, coach_id=coach_id)
    if existing is not None:
        await db.delete(existing)
        await db.commit()
        logger.info("favorite_removed", athlete_id=athlete_id, coach_id=coach_id)
        return False

    db.add(Favorite(athlete_id=athlete_id, coach_id=coach_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        # only a concurrent toggle that already stored the pair counts as added
        if await engagement_crud.get_favorite(db, athlete_id=athlete_id, coach_id=coach_id) is None:
            raise
    logger.info("favorite_added", athlete_id=athlete_id, coach_id=coach_id)
    return True


async def list_favorites(db: AsyncSession, *, athlete_id: int) -> Sequence[Favorite]:
    return await engagement_crud.list_favorites(db, athlete_id=athlete_id)
