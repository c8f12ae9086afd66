# coachbook/api/routes/notifications.py

from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.api.auth import get_actor
from coachbook.core.identity import Actor
from coachbook.db.session import get_session
from coachbook.schemas.engagement import NotificationOut
from coachbook.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationOut])
async def my_notifications(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
):
    return await notification_service.list_notifications(
        db, receiver_id=actor.id, unread_only=unread_only, limit=limit
    )


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: int,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
):
    return await notification_service.mark_read(db, receiver_id=actor.id, notification_id=notification_id)
