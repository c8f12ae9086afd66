# coachbook/schemas/engagement.py
"""Favorites and notifications."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator
from pydantic.config import ConfigDict

from coachbook.core.business import as_utc
from coachbook.schemas.coach import CoachOut


class FavoriteToggleIn(BaseModel):
    coach_id: int


class FavoriteToggleOut(BaseModel):
    coach_id: int
    is_favorite: bool


class FavoriteOut(BaseModel):
    id: int
    coach_id: int
    created_at: datetime
    coach: CoachOut
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class NotificationOut(BaseModel):
    id: int
    receiver_id: int
    sender_id: Optional[int] = None
    title: str
    body: str
    is_read: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return as_utc(v)
