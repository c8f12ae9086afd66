# coachbook/api/routes/bookings.py

from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.api.auth import get_actor, require_admin, require_athlete, require_coach
from coachbook.api.deps import Pagination, get_notifier, get_pagination
from coachbook.core.identity import Actor, AdminActor, AthleteActor, CoachActor
from coachbook.db.models.booking import BookingStatus
from coachbook.db.session import get_session
from coachbook.schemas.booking import BookingCreate, BookingOut, RescheduleRequestIn, RescheduleRespondIn
from coachbook.schemas.common import Page, PageMeta
from coachbook.services import booking as booking_service
from coachbook.services.notifications import Notifier

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingOut, status_code=201)
async def create_booking(
    payload: BookingCreate,
    athlete: AthleteActor = Depends(require_athlete),
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    return await booking_service.create_booking(
        db,
        athlete_id=athlete.id,
        coach_id=payload.coach_id,
        time_slot_id=payload.time_slot_id,
        booking_date=payload.booking_date,
        notes=payload.notes,
        location=payload.location,
        latitude=payload.latitude,
        longitude=payload.longitude,
        notifier=notifier,
    )


@router.get("", response_model=Page[BookingOut])
async def list_bookings(
    admin: AdminActor = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    paging: Pagination = Depends(get_pagination),
    status: Optional[BookingStatus] = None,
    coach_id: Optional[int] = None,
    athlete_id: Optional[int] = None,
    start_date: Optional[datetime] = Query(None, description="ISO8601; lower bound on booking_date"),
    end_date: Optional[datetime] = Query(None, description="ISO8601; upper bound on booking_date"),
    sort_by: Literal["bookingDate", "createdAt", "status"] = "bookingDate",
    sort_order: Literal["asc", "desc"] = "asc",
):
    items, total = await booking_service.list_all_bookings(
        db,
        page=paging.page,
        limit=paging.limit,
        status=status,
        coach_id=coach_id,
        athlete_id=athlete_id,
        from_date=start_date,
        to_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {
        "items": [BookingOut.model_validate(b) for b in items],
        "meta": PageMeta.build(total=total, page=paging.page, limit=paging.limit),
    }


@router.get("/my", response_model=List[BookingOut])
async def my_bookings(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_session)):
    return await booking_service.list_my_bookings(db, actor=actor)


@router.get("/finished", response_model=List[BookingOut])
async def finished_bookings(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_session)):
    return await booking_service.list_finished_bookings(db, actor=actor)


@router.get("/reschedule/pending", response_model=List[BookingOut])
async def pending_reschedules(actor: Actor = Depends(get_actor), db: AsyncSession = Depends(get_session)):
    return await booking_service.list_pending_reschedules(db, actor=actor)


@router.post("/reschedule/request", response_model=BookingOut, status_code=201)
async def request_reschedule(
    payload: RescheduleRequestIn,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    return await booking_service.request_reschedule(
        db,
        actor=actor,
        booking_id=payload.booking_id,
        new_time_slot_id=payload.new_time_slot_id,
        new_booking_date=payload.new_booking_date,
        notes=payload.notes,
        notifier=notifier,
    )


@router.post("/reschedule/respond", response_model=BookingOut)
async def respond_to_reschedule(
    payload: RescheduleRespondIn,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    return await booking_service.respond_to_reschedule(
        db,
        actor=actor,
        reschedule_booking_id=payload.reschedule_booking_id,
        decision=payload.decision,
        notifier=notifier,
    )


@router.patch("/{booking_id}/cancel", response_model=BookingOut)
async def cancel_booking(
    booking_id: int,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    return await booking_service.cancel_booking(db, actor=actor, booking_id=booking_id, notifier=notifier)


@router.patch("/{booking_id}/finish", response_model=BookingOut)
async def finish_booking(
    booking_id: int,
    coach: CoachActor = Depends(require_coach),
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    return await booking_service.finish_booking(db, actor=coach, booking_id=booking_id, notifier=notifier)
