# coachbook/schemas/coach.py

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from coachbook.schemas.review import ReviewOut
from coachbook.schemas.schedule import AvailabilityOut
from coachbook.services.coach import CoachCard, CoachDetail


class SpecialtyOut(BaseModel):
    id: int
    title: str
    icon: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class CoachOut(BaseModel):
    id: int
    full_name: str
    email: str
    profile_image: Optional[str] = None
    specialty: Optional[SpecialtyOut] = None
    price: Decimal
    experience: int
    gender: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    is_recommended: bool = False
    is_subscribed: bool = False
    model_config = ConfigDict(from_attributes=True)


class CoachCardOut(CoachOut):
    avg_rating: float = 0.0
    total_reviews: int = 0

    @classmethod
    def from_card(cls, card: CoachCard) -> "CoachCardOut":
        base = CoachOut.model_validate(card.coach).model_dump()
        return cls(**base, avg_rating=card.avg_rating, total_reviews=card.total_reviews)


class CoachDetailOut(CoachCardOut):
    expertise: Optional[str] = None
    certification: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    availabilities: List[AvailabilityOut] = Field(default_factory=list)
    weekly_schedule: Dict[str, str] = Field(default_factory=dict)
    reviews: List[ReviewOut] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: CoachDetail) -> "CoachDetailOut":
        coach = detail.coach
        base = CoachOut.model_validate(coach).model_dump()
        return cls(
            **base,
            avg_rating=detail.avg_rating,
            total_reviews=detail.total_reviews,
            expertise=coach.expertise,
            certification=coach.certification,
            latitude=coach.latitude,
            longitude=coach.longitude,
            availabilities=[AvailabilityOut.model_validate(a) for a in detail.availabilities],
            weekly_schedule=detail.weekly_schedule,
            reviews=[ReviewOut.model_validate(r) for r in detail.reviews],
        )


class ProfileOut(BaseModel):
    """Name card shared by coaches and athletes."""
    id: int
    full_name: str
    email: str
    profile_image: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
