# coachbook/db/models/booking.py

from __future__ import annotations
from datetime import date, datetime, timezone
import enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachbook.db.session import Base, BigIntPK
from coachbook.db.models.user import Athlete
from coachbook.db.models.coach import Coach
from coachbook.db.models.schedule import TimeSlot


class BookingStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    FINISHED = "FINISHED"
    RESCHEDULE_REQUEST = "RESCHEDULE_REQUEST"
    RESCHEDULED_ACCEPTED = "RESCHEDULED_ACCEPTED"
    RESCHEDULED_CANCELED = "RESCHEDULED_CANCELED"


# Statuses that still occupy their slot
ACTIVE_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.RESCHEDULE_REQUEST,
    BookingStatus.RESCHEDULED_ACCEPTED,
)
TERMINAL_STATUSES = (
    BookingStatus.CANCELLED,
    BookingStatus.FINISHED,
    BookingStatus.RESCHEDULED_CANCELED,
)

_ACTIVE_SQL = sa.text(
    "status IN (%s)" % ", ".join(f"'{s.value}'" for s in ACTIVE_STATUSES)
)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # Double-booking guard: one active booking per slot per calendar day
        sa.Index(
            "uq_bookings_active_slot_day",
            "time_slot_id",
            "booking_day",
            unique=True,
            postgresql_where=_ACTIVE_SQL,
            sqlite_where=_ACTIVE_SQL,
        ),
        sa.Index("ix_bookings_athlete_id", "athlete_id"),
        sa.Index("ix_bookings_coach_id", "coach_id"),
        sa.Index("ix_bookings_reschedule_from_id", "reschedule_from_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    athlete_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("athletes.id", ondelete="RESTRICT"), nullable=False
    )
    coach_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("coaches.id", ondelete="RESTRICT"), nullable=False
    )
    time_slot_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("time_slots.id", ondelete="RESTRICT"), nullable=False
    )

    # Slot start on the booked day, stored as UTC
    booking_date: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    booking_day: Mapped[date] = mapped_column(sa.Date, nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        sa.Enum(BookingStatus, native_enum=False, length=32),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    reschedule_from_id: Mapped[int | None] = mapped_column(
        sa.BigInteger, sa.ForeignKey("bookings.id", ondelete="RESTRICT")
    )
    # Role of the party that proposed a reschedule (ATHLETE / COACH)
    requested_by: Mapped[str | None] = mapped_column(sa.String(16))

    notes: Mapped[str | None] = mapped_column(sa.Text)
    location: Mapped[str | None] = mapped_column(sa.String(255))
    latitude: Mapped[float | None] = mapped_column(sa.Float)
    longitude: Mapped[float | None] = mapped_column(sa.Float)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relations
    athlete: Mapped[Athlete] = relationship(lazy="joined", innerjoin=True)
    coach: Mapped[Coach] = relationship(lazy="joined", innerjoin=True)
    time_slot: Mapped[TimeSlot] = relationship(lazy="joined", innerjoin=True)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
