#!/usr/bin/env python3
"""
Tests for the booking lifecycle: create, cancel, finish and reschedule.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from coachbook.core.business import today_local
from coachbook.core.errors import (
    Conflict,
    Forbidden,
    InvalidOperation,
    NotFound,
    ValidationError,
    messages,
)
from coachbook.core.identity import AdminActor, AthleteActor, CoachActor
from coachbook.crud import booking as booking_crud
from coachbook.db.models.booking import Booking, BookingStatus
from coachbook.db.models.schedule import TimeSlot
from coachbook.services import booking as booking_service
from coachbook.services import schedule as schedule_service
from coachbook.services.booking import RescheduleDecision


@pytest.fixture
async def booked(db, seed, tomorrow, notifier):
    """An athlete, a coach with three slots tomorrow, and a CONFIRMED booking on the first one."""
    athlete = await seed.athlete()
    coach = await seed.coach()
    sched = await seed.schedule(coach.id, tomorrow)
    booking = await booking_service.create_booking(
        db,
        athlete_id=athlete.id,
        coach_id=coach.id,
        time_slot_id=sched.slots[0].id,
        booking_date=tomorrow,
        notes="first session",
        notifier=notifier,
    )
    return {
        "athlete_id": athlete.id,
        "coach_id": coach.id,
        "slot_ids": [s.id for s in sched.slots],
        "booking_id": booking.id,
        "booking": booking,
    }


async def _slot(db, slot_id) -> TimeSlot:
    return await db.get(TimeSlot, slot_id)


async def _booking(db, booking_id) -> Booking:
    return await db.get(Booking, booking_id)


@pytest.mark.essential
class TestCreateBooking:

    @pytest.mark.asyncio
    async def test_create_confirms_and_marks_slot(self, db, booked, tomorrow, notifier):
        booking = booked["booking"]

        assert booking.status == BookingStatus.CONFIRMED
        assert booking.booking_day == tomorrow
        assert booking.time_slot_id == booked["slot_ids"][0]
        assert booking.notes == "first session"
        assert (await _slot(db, booked["slot_ids"][0])).is_booked is True
        assert notifier.sent[0]["receiver_id"] == booked["coach_id"]
        assert notifier.sent[0]["title"] == "New booking"
        assert "9:00 AM" in notifier.sent[0]["body"]

    @pytest.mark.asyncio
    async def test_double_booking_same_slot_and_day(self, db, seed, booked, tomorrow):
        other = await seed.athlete("Ben Athlete")

        with pytest.raises(Conflict) as exc:
            await booking_service.create_booking(
                db, athlete_id=other.id, coach_id=booked["coach_id"],
                time_slot_id=booked["slot_ids"][0], booking_date=tomorrow,
            )

        assert exc.value.message == "This time slot is already booked for the selected date"
        assert exc.value.status_code == 409
        original = await _booking(db, booked["booking_id"])
        assert original.status == BookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_other_slots_remain_bookable(self, db, seed, booked, tomorrow):
        other = await seed.athlete("Ben Athlete")

        second = await booking_service.create_booking(
            db, athlete_id=other.id, coach_id=booked["coach_id"],
            time_slot_id=booked["slot_ids"][1], booking_date=tomorrow,
        )

        assert second.status == BookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_inactive_slot_rejected(self, db, seed, tomorrow):
        athlete = await seed.athlete()
        coach = await seed.coach()
        sched = await seed.schedule(coach.id, tomorrow)
        slot_id = sched.slots[2].id
        await schedule_service.toggle_slot_status(db, slot_id=slot_id, coach_id=coach.id)

        with pytest.raises(InvalidOperation) as exc:
            await booking_service.create_booking(
                db, athlete_id=athlete.id, coach_id=coach.id, time_slot_id=slot_id, booking_date=tomorrow,
            )
        assert exc.value.message == messages.SLOT_NOT_ACTIVE

    @pytest.mark.asyncio
    async def test_slot_of_another_coach_rejected(self, db, seed, tomorrow):
        athlete = await seed.athlete()
        coach = await seed.coach()
        other = await seed.coach("Other Coach")
        sched = await seed.schedule(other.id, tomorrow)

        with pytest.raises(ValidationError) as exc:
            await booking_service.create_booking(
                db, athlete_id=athlete.id, coach_id=coach.id,
                time_slot_id=sched.slots[0].id, booking_date=tomorrow,
            )
        assert exc.value.message == messages.SLOT_WRONG_COACH

    @pytest.mark.asyncio
    async def test_date_must_match_availability(self, db, seed, tomorrow):
        athlete = await seed.athlete()
        coach = await seed.coach()
        sched = await seed.schedule(coach.id, tomorrow)

        with pytest.raises(ValidationError) as exc:
            await booking_service.create_booking(
                db, athlete_id=athlete.id, coach_id=coach.id,
                time_slot_id=sched.slots[0].id, booking_date=tomorrow + timedelta(days=1),
            )
        assert exc.value.message == messages.DATE_MISMATCH

    @pytest.mark.asyncio
    async def test_past_day_rejected(self, db, seed):
        athlete = await seed.athlete()
        coach = await seed.coach()
        _, slot = await seed.past_booking(athlete.id, coach.id, status=BookingStatus.CANCELLED)

        with pytest.raises(ValidationError) as exc:
            await booking_service.create_booking(
                db, athlete_id=athlete.id, coach_id=coach.id,
                time_slot_id=slot.id, booking_date=today_local() - timedelta(days=1),
            )
        assert exc.value.message == messages.DATE_IN_PAST

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["athlete", "coach", "slot"])
    async def test_missing_references(self, db, seed, tomorrow, missing):
        athlete = await seed.athlete()
        coach = await seed.coach()
        sched = await seed.schedule(coach.id, tomorrow)
        kwargs = dict(athlete_id=athlete.id, coach_id=coach.id, time_slot_id=sched.slots[0].id)
        kwargs[{"athlete": "athlete_id", "coach": "coach_id", "slot": "time_slot_id"}[missing]] = 99999

        with pytest.raises(NotFound):
            await booking_service.create_booking(db, booking_date=tomorrow, **kwargs)

    @pytest.mark.asyncio
    async def test_failing_notifier_does_not_undo_booking(self, db, seed, tomorrow):
        athlete = await seed.athlete()
        coach = await seed.coach()
        sched = await seed.schedule(coach.id, tomorrow)
        broken = AsyncMock()
        broken.notify.side_effect = RuntimeError("push gateway down")

        booking = await booking_service.create_booking(
            db, athlete_id=athlete.id, coach_id=coach.id,
            time_slot_id=sched.slots[0].id, booking_date=tomorrow, notifier=broken,
        )

        broken.notify.assert_awaited_once()
        assert (await _booking(db, booking.id)).status == BookingStatus.CONFIRMED


@pytest.mark.essential
class TestCancelBooking:

    @pytest.mark.asyncio
    async def test_cancel_releases_slot_and_allows_rebooking(self, db, seed, booked, tomorrow, notifier):
        cancelled = await booking_service.cancel_booking(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"], notifier=notifier,
        )

        assert cancelled.status == BookingStatus.CANCELLED
        assert (await _slot(db, booked["slot_ids"][0])).is_booked is False
        assert notifier.sent[-1]["receiver_id"] == booked["coach_id"]

        other = await seed.athlete("Ben Athlete")
        rebooked = await booking_service.create_booking(
            db, athlete_id=other.id, coach_id=booked["coach_id"],
            time_slot_id=booked["slot_ids"][0], booking_date=tomorrow,
        )
        assert rebooked.status == BookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_cancel_only_releases_its_own_slot(self, db, seed, booked, tomorrow):
        other = await seed.athlete("Ben Athlete")
        await booking_service.create_booking(
            db, athlete_id=other.id, coach_id=booked["coach_id"],
            time_slot_id=booked["slot_ids"][1], booking_date=tomorrow,
        )

        await booking_service.cancel_booking(
            db, actor=CoachActor(id=booked["coach_id"]), booking_id=booked["booking_id"],
        )

        assert (await _slot(db, booked["slot_ids"][0])).is_booked is False
        assert (await _slot(db, booked["slot_ids"][1])).is_booked is True

    @pytest.mark.asyncio
    async def test_coach_cancel_notifies_athlete(self, db, booked, notifier):
        await booking_service.cancel_booking(
            db, actor=CoachActor(id=booked["coach_id"]), booking_id=booked["booking_id"], notifier=notifier,
        )
        assert notifier.sent[-1]["receiver_id"] == booked["athlete_id"]
        assert notifier.sent[-1]["title"] == "Booking cancelled"

    @pytest.mark.asyncio
    async def test_stranger_forbidden(self, db, seed, booked):
        stranger = await seed.athlete("Stranger")

        with pytest.raises(Forbidden):
            await booking_service.cancel_booking(
                db, actor=AthleteActor(id=stranger.id), booking_id=booked["booking_id"],
            )

    @pytest.mark.asyncio
    async def test_admin_is_not_a_party(self, db, booked):
        with pytest.raises(Forbidden):
            await booking_service.cancel_booking(db, actor=AdminActor(id=1), booking_id=booked["booking_id"])

    @pytest.mark.asyncio
    async def test_cancel_twice(self, db, booked):
        actor = AthleteActor(id=booked["athlete_id"])
        await booking_service.cancel_booking(db, actor=actor, booking_id=booked["booking_id"])

        with pytest.raises(InvalidOperation) as exc:
            await booking_service.cancel_booking(db, actor=actor, booking_id=booked["booking_id"])
        assert exc.value.message == messages.ALREADY_CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_finished_rejected(self, db, seed):
        athlete = await seed.athlete()
        coach = await seed.coach()
        booking, _ = await seed.past_booking(athlete.id, coach.id, status=BookingStatus.FINISHED)

        with pytest.raises(InvalidOperation) as exc:
            await booking_service.cancel_booking(db, actor=AthleteActor(id=athlete.id), booking_id=booking.id)
        assert exc.value.message == messages.CANCEL_FINISHED

    @pytest.mark.asyncio
    async def test_missing_booking(self, db):
        with pytest.raises(NotFound):
            await booking_service.cancel_booking(db, actor=AthleteActor(id=1), booking_id=424242)


@pytest.mark.essential
class TestFinishBooking:

    @pytest.mark.asyncio
    async def test_future_booking_cannot_be_finished(self, db, booked):
        with pytest.raises(InvalidOperation) as exc:
            await booking_service.finish_booking(
                db, actor=CoachActor(id=booked["coach_id"]), booking_id=booked["booking_id"],
            )

        assert exc.value.message == "Cannot finish a booking that has not occurred yet"
        assert (await _booking(db, booked["booking_id"])).status == BookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_past_booking_finished_by_its_coach(self, db, seed, notifier):
        athlete = await seed.athlete()
        coach = await seed.coach()
        booking, _ = await seed.past_booking(athlete.id, coach.id)

        finished = await booking_service.finish_booking(
            db, actor=CoachActor(id=coach.id), booking_id=booking.id, notifier=notifier,
        )

        assert finished.status == BookingStatus.FINISHED
        assert notifier.sent[-1]["receiver_id"] == athlete.id
        assert notifier.sent[-1]["title"] == "Session completed"

    @pytest.mark.asyncio
    async def test_athlete_cannot_finish(self, db, seed):
        athlete = await seed.athlete()
        coach = await seed.coach()
        booking, _ = await seed.past_booking(athlete.id, coach.id)

        with pytest.raises(Forbidden) as exc:
            await booking_service.finish_booking(db, actor=AthleteActor(id=athlete.id), booking_id=booking.id)
        assert exc.value.message == messages.ONLY_COACH_FINISHES

    @pytest.mark.asyncio
    async def test_other_coach_cannot_finish(self, db, seed):
        athlete = await seed.athlete()
        coach = await seed.coach()
        other = await seed.coach("Other Coach")
        booking, _ = await seed.past_booking(athlete.id, coach.id)

        with pytest.raises(Forbidden):
            await booking_service.finish_booking(db, actor=CoachActor(id=other.id), booking_id=booking.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, message", [
        (BookingStatus.FINISHED, messages.ALREADY_FINISHED),
        (BookingStatus.CANCELLED, messages.FINISH_CANCELLED),
        (BookingStatus.RESCHEDULE_REQUEST, messages.FINISH_NOT_CONFIRMED),
        (BookingStatus.RESCHEDULED_CANCELED, messages.FINISH_NOT_CONFIRMED),
    ])
    async def test_only_live_bookings_can_be_finished(self, db, seed, status, message):
        athlete = await seed.athlete()
        coach = await seed.coach()
        booking, _ = await seed.past_booking(athlete.id, coach.id, status=status)

        with pytest.raises(InvalidOperation) as exc:
            await booking_service.finish_booking(db, actor=CoachActor(id=coach.id), booking_id=booking.id)
        assert exc.value.message == message

    @pytest.mark.asyncio
    async def test_finish_withdraws_pending_proposal(self, db, seed, tomorrow):
        athlete = await seed.athlete()
        coach = await seed.coach()
        booking, _ = await seed.past_booking(athlete.id, coach.id)
        sched = await seed.schedule(coach.id, tomorrow)
        target_slot_id = sched.slots[0].id

        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=athlete.id), booking_id=booking.id,
            new_time_slot_id=target_slot_id, new_booking_date=tomorrow,
        )
        proposal_id = proposal.id
        assert (await _slot(db, target_slot_id)).is_booked is True

        finished = await booking_service.finish_booking(db, actor=CoachActor(id=coach.id), booking_id=booking.id)

        assert finished.status == BookingStatus.FINISHED
        assert (await _booking(db, proposal_id)).status == BookingStatus.RESCHEDULED_CANCELED
        assert (await _slot(db, target_slot_id)).is_booked is False


@pytest.mark.essential
class TestReschedule:

    @pytest.mark.asyncio
    async def test_request_creates_pending_proposal(self, db, booked, tomorrow, notifier):
        proposal = await booking_service.request_reschedule(
            db,
            actor=AthleteActor(id=booked["athlete_id"]),
            booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1],
            new_booking_date=tomorrow,
            notifier=notifier,
        )

        assert proposal.status == BookingStatus.RESCHEDULE_REQUEST
        assert proposal.reschedule_from_id == booked["booking_id"]
        assert proposal.requested_by == "ATHLETE"
        assert proposal.notes == "Reschedule requested by athlete"
        assert (await _slot(db, booked["slot_ids"][1])).is_booked is True
        assert (await _booking(db, booked["booking_id"])).status == BookingStatus.CONFIRMED
        assert notifier.sent[-1]["receiver_id"] == booked["coach_id"]

    @pytest.mark.asyncio
    async def test_accept_moves_the_session(self, db, booked, tomorrow):
        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )

        answered = await booking_service.respond_to_reschedule(
            db, actor=CoachActor(id=booked["coach_id"]),
            reschedule_booking_id=proposal.id, decision=RescheduleDecision.ACCEPT,
        )

        assert answered.status == BookingStatus.RESCHEDULED_ACCEPTED
        assert (await _booking(db, booked["booking_id"])).status == BookingStatus.CANCELLED
        assert (await _slot(db, booked["slot_ids"][0])).is_booked is False
        assert (await _slot(db, booked["slot_ids"][1])).is_booked is True

    @pytest.mark.asyncio
    async def test_reject_keeps_the_original(self, db, booked, tomorrow, notifier):
        proposal = await booking_service.request_reschedule(
            db, actor=CoachActor(id=booked["coach_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][2], new_booking_date=tomorrow,
        )

        answered = await booking_service.respond_to_reschedule(
            db, actor=AthleteActor(id=booked["athlete_id"]),
            reschedule_booking_id=proposal.id, decision=RescheduleDecision.REJECT, notifier=notifier,
        )

        assert answered.status == BookingStatus.RESCHEDULED_CANCELED
        assert (await _booking(db, booked["booking_id"])).status == BookingStatus.CONFIRMED
        assert (await _slot(db, booked["slot_ids"][0])).is_booked is True
        assert (await _slot(db, booked["slot_ids"][2])).is_booked is False
        assert notifier.sent[-1]["title"] == "Reschedule declined"

    @pytest.mark.asyncio
    async def test_accepted_proposal_can_be_rescheduled_again(self, db, booked, tomorrow):
        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )
        await booking_service.respond_to_reschedule(
            db, actor=CoachActor(id=booked["coach_id"]),
            reschedule_booking_id=proposal.id, decision=RescheduleDecision.ACCEPT,
        )

        # The accepted proposal is itself live and can be rescheduled again
        again = await booking_service.request_reschedule(
            db, actor=CoachActor(id=booked["coach_id"]), booking_id=proposal.id,
            new_time_slot_id=booked["slot_ids"][2], new_booking_date=tomorrow,
        )
        assert again.reschedule_from_id == proposal.id

    @pytest.mark.asyncio
    async def test_requester_cannot_answer_own_request(self, db, booked, tomorrow):
        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )
        proposal_id = proposal.id

        with pytest.raises(Forbidden) as exc:
            await booking_service.respond_to_reschedule(
                db, actor=AthleteActor(id=booked["athlete_id"]),
                reschedule_booking_id=proposal_id, decision=RescheduleDecision.ACCEPT,
            )
        assert exc.value.message == messages.RESPOND_OWN_REQUEST

    @pytest.mark.asyncio
    async def test_one_pending_proposal_at_a_time(self, db, booked, tomorrow):
        actor = AthleteActor(id=booked["athlete_id"])
        await booking_service.request_reschedule(
            db, actor=actor, booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )

        with pytest.raises(Conflict) as exc:
            await booking_service.request_reschedule(
                db, actor=actor, booking_id=booked["booking_id"],
                new_time_slot_id=booked["slot_ids"][2], new_booking_date=tomorrow,
            )
        assert exc.value.message == messages.RESCHEDULE_PENDING
        assert (await _slot(db, booked["slot_ids"][2])).is_booked is False

    @pytest.mark.asyncio
    async def test_target_slot_already_taken(self, db, seed, booked, tomorrow):
        other = await seed.athlete("Ben Athlete")
        await booking_service.create_booking(
            db, athlete_id=other.id, coach_id=booked["coach_id"],
            time_slot_id=booked["slot_ids"][1], booking_date=tomorrow,
        )

        with pytest.raises(Conflict) as exc:
            await booking_service.request_reschedule(
                db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
                new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
            )
        assert exc.value.message == messages.SLOT_ALREADY_BOOKED

    @pytest.mark.asyncio
    async def test_slot_of_another_coach_rejected(self, db, seed, booked, tomorrow):
        other = await seed.coach("Other Coach")
        sched = await seed.schedule(other.id, tomorrow)

        with pytest.raises(ValidationError) as exc:
            await booking_service.request_reschedule(
                db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
                new_time_slot_id=sched.slots[0].id, new_booking_date=tomorrow,
            )
        assert exc.value.message == messages.RESCHEDULE_OTHER_COACH

    @pytest.mark.asyncio
    async def test_closed_booking_cannot_be_rescheduled(self, db, booked, tomorrow):
        actor = AthleteActor(id=booked["athlete_id"])
        await booking_service.cancel_booking(db, actor=actor, booking_id=booked["booking_id"])

        with pytest.raises(InvalidOperation) as exc:
            await booking_service.request_reschedule(
                db, actor=actor, booking_id=booked["booking_id"],
                new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
            )
        assert exc.value.message == messages.RESCHEDULE_CLOSED

    @pytest.mark.asyncio
    async def test_cancel_withdraws_pending_proposal(self, db, booked, tomorrow):
        proposal = await booking_service.request_reschedule(
            db, actor=CoachActor(id=booked["coach_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )
        proposal_id = proposal.id

        await booking_service.cancel_booking(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
        )

        assert (await _booking(db, proposal_id)).status == BookingStatus.RESCHEDULED_CANCELED
        assert (await _slot(db, booked["slot_ids"][1])).is_booked is False
        with pytest.raises(InvalidOperation):
            await booking_service.respond_to_reschedule(
                db, actor=AthleteActor(id=booked["athlete_id"]),
                reschedule_booking_id=proposal_id, decision=RescheduleDecision.ACCEPT,
            )

    @pytest.mark.asyncio
    async def test_stranger_cannot_request(self, db, seed, booked, tomorrow):
        stranger = await seed.athlete("Stranger")
        with pytest.raises(Forbidden):
            await booking_service.request_reschedule(
                db, actor=AthleteActor(id=stranger.id), booking_id=booked["booking_id"],
                new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
            )

    @pytest.mark.asyncio
    async def test_stranger_cannot_respond(self, db, seed, booked, tomorrow):
        stranger = await seed.coach("Stranger Coach")
        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )
        proposal_id = proposal.id

        with pytest.raises(Forbidden) as exc:
            await booking_service.respond_to_reschedule(
                db, actor=CoachActor(id=stranger.id),
                reschedule_booking_id=proposal_id, decision=RescheduleDecision.ACCEPT,
            )

        assert exc.value.message == messages.NOT_ALLOWED_TO_RESPOND
        assert (await _booking(db, proposal_id)).status == BookingStatus.RESCHEDULE_REQUEST
        assert (await _booking(db, booked["booking_id"])).status == BookingStatus.CONFIRMED
        assert (await _slot(db, booked["slot_ids"][1])).is_booked is True

    @pytest.mark.asyncio
    async def test_new_date_must_match_slot_date(self, db, booked, tomorrow):
        with pytest.raises(ValidationError) as exc:
            await booking_service.request_reschedule(
                db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
                new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow + timedelta(days=1),
            )

        assert exc.value.message == messages.RESCHEDULE_DATE_MISMATCH
        assert (await _slot(db, booked["slot_ids"][1])).is_booked is False
        assert (await _booking(db, booked["booking_id"])).status == BookingStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_cannot_move_into_the_past(self, db, seed, booked):
        earlier = await seed.athlete("Earlier Athlete")
        _, past_slot = await seed.past_booking(earlier.id, booked["coach_id"], status=BookingStatus.CANCELLED)
        past_slot_id = past_slot.id
        past_day = today_local() - timedelta(days=1)

        with pytest.raises(ValidationError) as exc:
            await booking_service.request_reschedule(
                db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
                new_time_slot_id=past_slot_id, new_booking_date=past_day,
            )

        assert exc.value.message == messages.RESCHEDULE_INTO_PAST
        assert (await _booking(db, booked["booking_id"])).status == BookingStatus.CONFIRMED
        assert list(await booking_crud.find_pending_reschedules(db, booked["booking_id"])) == []

    @pytest.mark.asyncio
    async def test_pending_proposal_cannot_itself_be_rescheduled(self, db, booked, tomorrow):
        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )
        proposal_id = proposal.id

        with pytest.raises(InvalidOperation) as exc:
            await booking_service.request_reschedule(
                db, actor=CoachActor(id=booked["coach_id"]), booking_id=proposal_id,
                new_time_slot_id=booked["slot_ids"][2], new_booking_date=tomorrow,
            )

        assert exc.value.message == messages.RESCHEDULE_OF_PROPOSAL
        assert (await _booking(db, proposal_id)).status == BookingStatus.RESCHEDULE_REQUEST
        assert (await _slot(db, booked["slot_ids"][2])).is_booked is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("decision, settled", [
        (RescheduleDecision.ACCEPT, BookingStatus.RESCHEDULED_ACCEPTED),
        (RescheduleDecision.REJECT, BookingStatus.RESCHEDULED_CANCELED),
    ])
    async def test_answered_proposal_cannot_be_answered_again(self, db, booked, tomorrow, decision, settled):
        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=booked["athlete_id"]), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )
        proposal_id = proposal.id
        coach = CoachActor(id=booked["coach_id"])
        await booking_service.respond_to_reschedule(
            db, actor=coach, reschedule_booking_id=proposal_id, decision=decision,
        )

        with pytest.raises(InvalidOperation) as exc:
            await booking_service.respond_to_reschedule(
                db, actor=coach, reschedule_booking_id=proposal_id, decision=RescheduleDecision.ACCEPT,
            )

        assert exc.value.message == messages.NOT_PENDING_RESCHEDULE
        assert (await _booking(db, proposal_id)).status == settled


@pytest.mark.essential
class TestBookingQueries:

    @pytest.mark.asyncio
    async def test_my_bookings_excludes_cancelled(self, db, seed, booked, tomorrow):
        athlete = AthleteActor(id=booked["athlete_id"])
        second = await booking_service.create_booking(
            db, athlete_id=athlete.id, coach_id=booked["coach_id"],
            time_slot_id=booked["slot_ids"][1], booking_date=tomorrow,
        )
        await booking_service.cancel_booking(db, actor=athlete, booking_id=second.id)

        mine = await booking_service.list_my_bookings(db, actor=athlete)
        assert [b.id for b in mine] == [booked["booking_id"]]

        coach_view = await booking_service.list_my_bookings(db, actor=CoachActor(id=booked["coach_id"]))
        assert [b.id for b in coach_view] == [booked["booking_id"]]

    @pytest.mark.asyncio
    async def test_finished_and_pending_lists(self, db, seed, booked, tomorrow):
        athlete_id, coach_id = booked["athlete_id"], booked["coach_id"]
        past, _ = await seed.past_booking(athlete_id, coach_id, status=BookingStatus.FINISHED)
        proposal = await booking_service.request_reschedule(
            db, actor=AthleteActor(id=athlete_id), booking_id=booked["booking_id"],
            new_time_slot_id=booked["slot_ids"][1], new_booking_date=tomorrow,
        )

        finished = await booking_service.list_finished_bookings(db, actor=AthleteActor(id=athlete_id))
        assert [b.id for b in finished] == [past.id]
        pending = await booking_service.list_pending_reschedules(db, actor=CoachActor(id=coach_id))
        assert [b.id for b in pending] == [proposal.id]

    @pytest.mark.asyncio
    async def test_admin_listing_filters_and_paginates(self, db, seed, booked, tomorrow):
        other = await seed.athlete("Ben Athlete")
        for slot_id in booked["slot_ids"][1:]:
            await booking_service.create_booking(
                db, athlete_id=other.id, coach_id=booked["coach_id"],
                time_slot_id=slot_id, booking_date=tomorrow,
            )

        page, total = await booking_service.list_all_bookings(db, page=1, limit=2)
        assert total == 3 and len(page) == 2

        only_other, total = await booking_service.list_all_bookings(db, athlete_id=other.id)
        assert total == 2
        assert all(b.athlete_id == other.id for b in only_other)

        latest_first, _ = await booking_service.list_all_bookings(db, sort_by="bookingDate", sort_order="desc")
        assert latest_first[0].time_slot_id == booked["slot_ids"][2]

        cancelled, total = await booking_service.list_all_bookings(db, status=BookingStatus.CANCELLED)
        assert total == 0 and list(cancelled) == []

    @pytest.mark.asyncio
    async def test_admin_has_no_personal_lists(self, db):
        with pytest.raises(Forbidden):
            await booking_service.list_my_bookings(db, actor=AdminActor(id=1))
