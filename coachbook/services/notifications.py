# coachbook/services/notifications.py
"""
In-app notifications.

Booking operations announce themselves through a Notifier after their transaction
has committed. Notification is best effort: a failing notifier is logged and never
undoes the booking change.
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coachbook.core.errors import NotFound, messages
from coachbook.core.logging import get_logger
from coachbook.db.models.engagement import Notification

logger = get_logger(__name__)


class Notifier(Protocol):
    async def notify(
        self, receiver_id: int, sender_id: Optional[int], title: str, body: str
    ) -> None: ...


class StoredNotifier:
    """Persists notifications in their own session so they never join a booking transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def notify(
        self, receiver_id: int, sender_id: Optional[int], title: str, body: str
    ) -> None:
        async with self.session_factory() as session:
            session.add(
                Notification(
                    receiver_id=receiver_id,
                    sender_id=sender_id,
                    title=title,
                    body=body,
                )
            )
            await session.commit()
        logger.info("notification_stored", receiver_id=receiver_id, title=title)


async def notify_safely(
    notifier: Optional[Notifier],
    *,
    receiver_id: int,
    sender_id: Optional[int],
    title: str,
    body: str,
) -> None:
    if notifier is None:
        return
    try:
        await notifier.notify(receiver_id, sender_id, title, body)
    except Exception as e:
        # Don't fail the booking if notification fails
        logger.warning(
            "notification_failed",
            receiver_id=receiver_id,
            title=title,
            error=str(e),
            error_type=type(e).__name__,
        )


async def list_notifications(
    db: AsyncSession, *, receiver_id: int, unread_only: bool = False, limit: int = 50
) -> Sequence[Notification]:
    q = sa.select(Notification).where(Notification.receiver_id == receiver_id)
    if unread_only:
        q = q.where(Notification.is_read.is_(False))
    q = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    res = await db.execute(q)
    return res.scalars().all()


async def mark_read(db: AsyncSession, *, receiver_id: int, notification_id: int) -> Notification:
    obj = await db.get(Notification, notification_id)
    if obj is None or obj.receiver_id != receiver_id:
        raise NotFound(messages.NOTIFICATION_NOT_FOUND)
    obj.is_read = True
    await db.commit()
    return obj
