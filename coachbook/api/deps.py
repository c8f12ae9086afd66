# coachbook/api/deps.py

from dataclasses import dataclass

from fastapi import Query

from coachbook.core.config import settings
from coachbook.db.session import AsyncSessionLocal
from coachbook.services.notifications import Notifier, StoredNotifier


def get_notifier() -> Notifier:
    return StoredNotifier(AsyncSessionLocal)


@dataclass
class Pagination:
    page: int
    limit: int


def get_pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> Pagination:
    return Pagination(page=page, limit=limit)
