# coachbook/schemas/review.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from coachbook.core.business import as_utc
from coachbook.schemas.booking import PartyOut


class ReviewCreate(BaseModel):
    booking_id: int
    rating: int = Field(..., examples=[5], description="1 to 5")
    comment: Optional[str] = Field(None, max_length=2000)

    @field_validator("comment")
    @classmethod
    def _clean_comment(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class ReviewOut(BaseModel):
    id: int
    booking_id: int
    coach_id: int
    athlete_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    athlete: PartyOut
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return as_utc(v)
