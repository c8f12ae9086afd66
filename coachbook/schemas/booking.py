# coachbook/schemas/booking.py

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from coachbook.core.business import as_utc
from coachbook.db.models.booking import BookingStatus
from coachbook.schemas.schedule import TimeSlotOut
from coachbook.services.booking import RescheduleDecision

# Clients may answer with the resulting status instead of the verb
_DECISION_ALIASES = {
    BookingStatus.RESCHEDULED_ACCEPTED.value: RescheduleDecision.ACCEPT,
    BookingStatus.RESCHEDULED_CANCELED.value: RescheduleDecision.REJECT,
}


class BookingCreate(BaseModel):
    coach_id: int
    time_slot_id: int
    booking_date: date = Field(..., description="Calendar day of the session, in the business timezone")
    notes: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=255)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class RescheduleRequestIn(BaseModel):
    booking_id: int
    new_time_slot_id: int
    new_booking_date: date
    notes: Optional[str] = Field(None, max_length=2000)


class RescheduleRespondIn(BaseModel):
    reschedule_booking_id: int
    decision: RescheduleDecision = Field(..., examples=["accept", "reject"])

    @field_validator("decision", mode="before")
    @classmethod
    def _normalize_decision(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return _DECISION_ALIASES.get(v.upper(), v.lower())
        return v


class PartyOut(BaseModel):
    id: int
    full_name: str
    email: str
    model_config = ConfigDict(from_attributes=True)


class BookingOut(BaseModel):
    id: int
    athlete_id: int
    coach_id: int
    time_slot_id: int
    booking_date: datetime
    booking_day: date
    status: BookingStatus
    reschedule_from_id: Optional[int] = None
    requested_by: Optional[str] = None
    notes: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime

    athlete: PartyOut
    coach: PartyOut
    time_slot: TimeSlotOut
    model_config = ConfigDict(from_attributes=True)

    @field_validator("booking_date", "created_at")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return as_utc(v)
