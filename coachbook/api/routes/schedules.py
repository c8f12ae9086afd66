# coachbook/api/routes/schedules.py

from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.api.auth import require_coach
from coachbook.core.identity import CoachActor
from coachbook.db.session import get_session
from coachbook.schemas.schedule import AddSlotIn, GenerateSlotsIn, ScheduleOut, TimeSlotOut
from coachbook.services import schedule as schedule_service

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.post("", response_model=ScheduleOut, status_code=201)
async def generate_slots(
    payload: GenerateSlotsIn,
    coach: CoachActor = Depends(require_coach),
    db: AsyncSession = Depends(get_session),
):
    """Set the day's window and rebuild its slots."""
    result = await schedule_service.generate_slots(
        db,
        coach_id=coach.id,
        slot_date=payload.slot_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        interval_minutes=payload.interval_minutes,
    )
    return ScheduleOut.model_validate(result)


@router.post("/slots", response_model=TimeSlotOut, status_code=201)
async def add_slot(
    payload: AddSlotIn,
    coach: CoachActor = Depends(require_coach),
    db: AsyncSession = Depends(get_session),
):
    return await schedule_service.add_single_slot(
        db,
        coach_id=coach.id,
        slot_date=payload.slot_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
    )


@router.patch("/slots/{slot_id}", response_model=TimeSlotOut)
async def toggle_slot(
    slot_id: int,
    coach: CoachActor = Depends(require_coach),
    db: AsyncSession = Depends(get_session),
):
    return await schedule_service.toggle_slot_status(db, slot_id=slot_id, coach_id=coach.id)


# Public: athletes browse a coach's day before booking
@router.get("/slots", response_model=ScheduleOut)
async def slots_by_date(
    coach_id: int = Query(...),
    slot_date: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_session),
):
    day = await schedule_service.slots_for_date(db, coach_id=coach_id, slot_date=slot_date)
    return ScheduleOut.model_validate(day)
