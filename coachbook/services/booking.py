# coachbook/services/booking.py
"""
Booking lifecycle.

    CONFIRMED ──cancel──▶ CANCELLED
        │  └────finish──▶ FINISHED
        └─request_reschedule──▶ (new row) RESCHEDULE_REQUEST
                                   ├─accept──▶ RESCHEDULED_ACCEPTED  (original ▶ CANCELLED)
                                   └─reject──▶ RESCHEDULED_CANCELED  (original untouched)

A reschedule never edits the original booking's slot or date; it is a new booking
pointing back through `reschedule_from_id`. Every operation runs as one transaction
that updates bookings and their slots' `is_booked` flag together. Notifications go
out after commit.
"""
from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coachbook.core.business import as_utc, format_time_ampm, now_utc, slot_start_on, today_local
from coachbook.core.errors import (
    Conflict,
    Forbidden,
    InvalidOperation,
    NotFound,
    ValidationError,
    messages,
)
from coachbook.core.identity import Actor, AdminActor, AthleteActor, CoachActor, is_party
from coachbook.core.logging import get_logger
from coachbook.crud import booking as booking_crud
from coachbook.crud import schedule as schedule_crud
from coachbook.db.models.booking import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
)
from coachbook.db.models.coach import Coach
from coachbook.db.models.schedule import SlotStatus, TimeSlot
from coachbook.db.models.user import Athlete
from coachbook.db.session import atomic
from coachbook.services.notifications import Notifier, notify_safely

logger = get_logger(__name__)

MY_BOOKING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.RESCHEDULED_ACCEPTED,
    BookingStatus.FINISHED,
    BookingStatus.RESCHEDULE_REQUEST,
)
FINISHABLE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.RESCHEDULED_ACCEPTED)


class RescheduleDecision(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


# ---------- Internal helpers ----------

def _when(booking: Booking) -> str:
    slot = booking.time_slot
    return f"{booking.booking_day.isoformat()} at {format_time_ampm(slot.start_time)}"


def _counterparty_id(actor: Actor, booking: Booking) -> int:
    match actor:
        case AthleteActor():
            return booking.coach_id
        case _:
            return booking.athlete_id


def _party_filter(actor: Actor) -> dict:
    match actor:
        case AthleteActor(id=athlete_id):
            return {"athlete_id": athlete_id}
        case CoachActor(id=coach_id):
            return {"coach_id": coach_id}
        case AdminActor():
            raise Forbidden(messages.ROLE_REQUIRED)


async def _load_bookable_slot(
    db: AsyncSession,
    *,
    time_slot_id: int,
    coach_id: int,
    day: date,
    not_found: str,
    wrong_coach: str,
    date_mismatch: str,
    in_past: str,
) -> TimeSlot:
    """Lock the slot and check it can take a new active booking on `day`."""
    slot = await schedule_crud.get_slot(db, time_slot_id, lock=True)
    if slot is None:
        raise NotFound(not_found)
    if slot.availability.coach_id != coach_id:
        raise ValidationError(wrong_coach)
    if slot.status != SlotStatus.ACTIVE:
        raise InvalidOperation(messages.SLOT_NOT_ACTIVE)
    if day != slot.availability.slot_date:
        raise ValidationError(date_mismatch)
    if day < today_local():
        raise ValidationError(in_past)

    existing = await booking_crud.find_active_booking(db, time_slot_id=slot.id, booking_day=day)
    if existing is not None:
        raise Conflict(messages.SLOT_ALREADY_BOOKED, details={"booking_id": existing.id})
    return slot


def _release(booking: Booking) -> None:
    booking.time_slot.is_booked = False


async def _withdraw_pending(db: AsyncSession, original: Booking) -> list[int]:
    """Decline any open proposal against `original` and free its slot."""
    withdrawn = []
    for proposal in await booking_crud.find_pending_reschedules(db, original.id, lock=True):
        proposal.status = BookingStatus.RESCHEDULED_CANCELED
        _release(proposal)
        withdrawn.append(proposal.id)
    return withdrawn


# ---------- Lifecycle operations ----------

async def create_booking(
    db: AsyncSession,
    *,
    athlete_id: int,
    coach_id: int,
    time_slot_id: int,
    booking_date: date,
    notes: Optional[str] = None,
    location: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    notifier: Optional[Notifier] = None,
) -> Booking:
    """Book `time_slot_id` on `booking_date` for the athlete. Starts CONFIRMED."""
    try:
        async with atomic(db):
            athlete = await db.get(Athlete, athlete_id)
            if athlete is None:
                raise NotFound(messages.ATHLETE_NOT_FOUND)
            coach = await db.get(Coach, coach_id)
            if coach is None:
                raise NotFound(messages.COACH_NOT_FOUND)

            slot = await _load_bookable_slot(
                db,
                time_slot_id=time_slot_id,
                coach_id=coach_id,
                day=booking_date,
                not_found=messages.SLOT_NOT_FOUND,
                wrong_coach=messages.SLOT_WRONG_COACH,
                date_mismatch=messages.DATE_MISMATCH,
                in_past=messages.DATE_IN_PAST,
            )

            booking = Booking(
                athlete=athlete,
                coach=coach,
                time_slot=slot,
                booking_date=slot_start_on(booking_date, slot.start_time),
                booking_day=booking_date,
                status=BookingStatus.CONFIRMED,
                notes=notes,
                location=location,
                latitude=latitude,
                longitude=longitude,
            )
            db.add(booking)
            slot.is_booked = True
            await db.flush()
    except IntegrityError:
        # Lost the race for this (slot, day) to a concurrent booking
        logger.info("booking_conflict", time_slot_id=time_slot_id, booking_day=booking_date.isoformat())
        raise Conflict(messages.SLOT_ALREADY_BOOKED)

    logger.info(
        "booking_created",
        booking_id=booking.id,
        athlete_id=athlete_id,
        coach_id=coach_id,
        time_slot_id=time_slot_id,
    )
    await notify_safely(
        notifier,
        receiver_id=coach_id,
        sender_id=athlete_id,
        title="New booking",
        body=f"{athlete.full_name} booked a session on {_when(booking)}.",
    )
    return booking


async def cancel_booking(
    db: AsyncSession,
    *,
    actor: Actor,
    booking_id: int,
    notifier: Optional[Notifier] = None,
) -> Booking:
    """
    Cancel a booking the actor is party to and free its slot. Open reschedule
    proposals against it are declined in the same transaction.
    """
    async with atomic(db):
        booking = await booking_crud.get_booking(db, booking_id, lock=True)
        if booking is None:
            raise NotFound(messages.BOOKING_NOT_FOUND)
        if not is_party(actor, athlete_id=booking.athlete_id, coach_id=booking.coach_id):
            raise Forbidden(messages.NOT_ALLOWED_TO_CANCEL)

        match booking.status:
            case BookingStatus.CANCELLED:
                raise InvalidOperation(messages.ALREADY_CANCELLED)
            case BookingStatus.FINISHED:
                raise InvalidOperation(messages.CANCEL_FINISHED)
            case BookingStatus.RESCHEDULED_CANCELED:
                raise InvalidOperation(messages.CANCEL_DECLINED)

        withdrawn = await _withdraw_pending(db, booking)
        booking.status = BookingStatus.CANCELLED
        _release(booking)

    logger.info("booking_cancelled", booking_id=booking.id, by=actor.role, withdrawn=withdrawn)
    await notify_safely(
        notifier,
        receiver_id=_counterparty_id(actor, booking),
        sender_id=actor.id,
        title="Booking cancelled",
        body=f"The session on {_when(booking)} was cancelled.",
    )
    return booking


async def finish_booking(
    db: AsyncSession,
    *,
    actor: Actor,
    booking_id: int,
    notifier: Optional[Notifier] = None,
) -> Booking:
    """Mark a past session as held. Only the booking's coach may do this."""
    match actor:
        case CoachActor():
            pass
        case _:
            raise Forbidden(messages.ONLY_COACH_FINISHES)

    async with atomic(db):
        booking = await booking_crud.get_booking(db, booking_id, lock=True)
        if booking is None:
            raise NotFound(messages.BOOKING_NOT_FOUND)
        if booking.coach_id != actor.id:
            raise Forbidden(messages.NOT_ALLOWED_TO_FINISH)

        if booking.status == BookingStatus.FINISHED:
            raise InvalidOperation(messages.ALREADY_FINISHED)
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidOperation(messages.FINISH_CANCELLED)
        if booking.status not in FINISHABLE_STATUSES:
            raise InvalidOperation(messages.FINISH_NOT_CONFIRMED)
        if as_utc(booking.booking_date) > now_utc():
            raise InvalidOperation(messages.FINISH_IN_FUTURE)

        withdrawn = await _withdraw_pending(db, booking)
        booking.status = BookingStatus.FINISHED

    logger.info("booking_finished", booking_id=booking.id, coach_id=actor.id, withdrawn=withdrawn)
    await notify_safely(
        notifier,
        receiver_id=booking.athlete_id,
        sender_id=actor.id,
        title="Session completed",
        body=f"Your session on {_when(booking)} is complete. Leave a review!",
    )
    return booking


async def request_reschedule(
    db: AsyncSession,
    *,
    actor: Actor,
    booking_id: int,
    new_time_slot_id: int,
    new_booking_date: date,
    notes: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> Booking:
    """
    Propose moving a live booking to another slot of the same coach. Creates a
    RESCHEDULE_REQUEST booking holding the new slot; the original is unchanged
    until the other party responds. One open proposal per booking.
    """
    try:
        async with atomic(db):
            original = await booking_crud.get_booking(db, booking_id, lock=True)
            if original is None:
                raise NotFound(messages.ORIGINAL_BOOKING_NOT_FOUND)
            if not is_party(actor, athlete_id=original.athlete_id, coach_id=original.coach_id):
                raise Forbidden(messages.NOT_ALLOWED_TO_RESCHEDULE)

            if original.status == BookingStatus.RESCHEDULE_REQUEST:
                raise InvalidOperation(messages.RESCHEDULE_OF_PROPOSAL)
            if original.status in TERMINAL_STATUSES:
                raise InvalidOperation(messages.RESCHEDULE_CLOSED)
            pending = await booking_crud.find_pending_reschedules(db, original.id)
            if pending:
                raise Conflict(messages.RESCHEDULE_PENDING, details={"booking_id": pending[0].id})

            new_slot = await _load_bookable_slot(
                db,
                time_slot_id=new_time_slot_id,
                coach_id=original.coach_id,
                day=new_booking_date,
                not_found=messages.NEW_SLOT_NOT_FOUND,
                wrong_coach=messages.RESCHEDULE_OTHER_COACH,
                date_mismatch=messages.RESCHEDULE_DATE_MISMATCH,
                in_past=messages.RESCHEDULE_INTO_PAST,
            )

            proposal = Booking(
                athlete=original.athlete,
                coach=original.coach,
                time_slot=new_slot,
                booking_date=slot_start_on(new_booking_date, new_slot.start_time),
                booking_day=new_booking_date,
                status=BookingStatus.RESCHEDULE_REQUEST,
                reschedule_from_id=original.id,
                requested_by=actor.role,
                notes=notes or f"Reschedule requested by {actor.role.lower()}",
                location=original.location,
                latitude=original.latitude,
                longitude=original.longitude,
            )
            db.add(proposal)
            new_slot.is_booked = True
            await db.flush()
    except IntegrityError:
        logger.info("reschedule_conflict", booking_id=booking_id, time_slot_id=new_time_slot_id)
        raise Conflict(messages.SLOT_ALREADY_BOOKED)

    logger.info(
        "reschedule_requested",
        booking_id=booking_id,
        proposal_id=proposal.id,
        by=actor.role,
        time_slot_id=new_time_slot_id,
    )
    await notify_safely(
        notifier,
        receiver_id=_counterparty_id(actor, original),
        sender_id=actor.id,
        title="Reschedule requested",
        body=f"A move of the session on {_when(original)} to {_when(proposal)} was requested.",
    )
    return proposal


async def respond_to_reschedule(
    db: AsyncSession,
    *,
    actor: Actor,
    reschedule_booking_id: int,
    decision: RescheduleDecision,
    notifier: Optional[Notifier] = None,
) -> Booking:
    """
    Accept or reject a pending proposal. Only the party who did not request it may
    answer. Accepting cancels the original booking and frees its slot; rejecting
    frees the proposed slot and leaves the original as it was.
    """
    async with atomic(db):
        proposal = await booking_crud.get_booking(db, reschedule_booking_id, lock=True)
        if proposal is None:
            raise NotFound(messages.RESCHEDULE_NOT_FOUND)
        if not is_party(actor, athlete_id=proposal.athlete_id, coach_id=proposal.coach_id):
            raise Forbidden(messages.NOT_ALLOWED_TO_RESPOND)
        if proposal.status != BookingStatus.RESCHEDULE_REQUEST:
            raise InvalidOperation(messages.NOT_PENDING_RESCHEDULE)
        if proposal.requested_by == actor.role:
            raise Forbidden(messages.RESPOND_OWN_REQUEST)

        original = None
        if proposal.reschedule_from_id is not None:
            original = await booking_crud.get_booking(db, proposal.reschedule_from_id, lock=True)
        if original is None:
            raise NotFound(messages.ORIGINAL_BOOKING_NOT_FOUND)

        match RescheduleDecision(decision):
            case RescheduleDecision.ACCEPT:
                if original.status not in ACTIVE_STATUSES:
                    raise InvalidOperation(messages.ORIGINAL_NOT_ACTIVE)
                proposal.status = BookingStatus.RESCHEDULED_ACCEPTED
                original.status = BookingStatus.CANCELLED
                _release(original)
            case RescheduleDecision.REJECT:
                proposal.status = BookingStatus.RESCHEDULED_CANCELED
                _release(proposal)

    logger.info(
        "reschedule_answered",
        proposal_id=proposal.id,
        original_id=original.id,
        decision=RescheduleDecision(decision).value,
        by=actor.role,
    )
    accepted = proposal.status == BookingStatus.RESCHEDULED_ACCEPTED
    await notify_safely(
        notifier,
        receiver_id=_counterparty_id(actor, proposal),
        sender_id=actor.id,
        title="Reschedule accepted" if accepted else "Reschedule declined",
        body=(
            f"Your session now takes place on {_when(proposal)}."
            if accepted
            else f"Your session stays on {_when(original)}."
        ),
    )
    return proposal


# ---------- Queries ----------

async def list_my_bookings(db: AsyncSession, *, actor: Actor) -> Sequence[Booking]:
    """Live and finished bookings of the actor, newest first."""
    items, _ = await booking_crud.list_bookings(
        db, statuses=MY_BOOKING_STATUSES, sort_by="bookingDate", sort_order="desc", **_party_filter(actor)
    )
    return items


async def list_finished_bookings(db: AsyncSession, *, actor: Actor) -> Sequence[Booking]:
    items, _ = await booking_crud.list_bookings(
        db,
        statuses=(BookingStatus.FINISHED,),
        sort_by="bookingDate",
        sort_order="desc",
        **_party_filter(actor),
    )
    return items


async def list_pending_reschedules(db: AsyncSession, *, actor: Actor) -> Sequence[Booking]:
    items, _ = await booking_crud.list_bookings(
        db,
        statuses=(BookingStatus.RESCHEDULE_REQUEST,),
        sort_by="createdAt",
        sort_order="desc",
        **_party_filter(actor),
    )
    return items


async def list_all_bookings(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = 10,
    status: Optional[BookingStatus] = None,
    coach_id: Optional[int] = None,
    athlete_id: Optional[int] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    sort_by: str = "bookingDate",
    sort_order: str = "asc",
) -> tuple[Sequence[Booking], int]:
    """Admin listing with filters and pagination."""
    page = max(page, 1)
    return await booking_crud.list_bookings(
        db,
        athlete_id=athlete_id,
        coach_id=coach_id,
        statuses=(status,) if status else None,
        from_date=from_date,
        to_date=to_date,
        sort_by=sort_by,
        sort_order=sort_order,
        offset=(page - 1) * limit,
        limit=limit,
    )
