# coachbook/schemas/schedule.py

from datetime import date, time
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field
from pydantic.config import ConfigDict

from coachbook.core.business import format_time_ampm
from coachbook.db.models.schedule import SlotStatus


class _Window(BaseModel):
    slot_date: date = Field(..., examples=["2026-11-02"])
    start_time: time = Field(..., examples=["09:00"])
    end_time: time = Field(..., examples=["12:00"])


class GenerateSlotsIn(_Window):
    interval_minutes: Optional[int] = Field(None, gt=0, le=24 * 60)


class AddSlotIn(_Window):
    pass


class TimeSlotOut(BaseModel):
    id: int
    availability_id: int
    start_time: time
    end_time: time
    status: SlotStatus
    is_booked: bool
    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def start_time_display(self) -> str:
        return format_time_ampm(self.start_time)

    @computed_field
    @property
    def end_time_display(self) -> str:
        return format_time_ampm(self.end_time)


class AvailabilityOut(BaseModel):
    id: int
    coach_id: int
    slot_date: date
    start_time: time
    end_time: time
    is_active: bool
    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def window_display(self) -> str:
        return f"{format_time_ampm(self.start_time)} - {format_time_ampm(self.end_time)}"


class ScheduleOut(BaseModel):
    """An availability window with its slots."""
    availability: Optional[AvailabilityOut] = None
    slots: List[TimeSlotOut] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)
