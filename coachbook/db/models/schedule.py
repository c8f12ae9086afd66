# coachbook/db/models/schedule.py

from __future__ import annotations
from datetime import date, datetime, time, timezone
import enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachbook.db.session import Base, BigIntPK


class SlotStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class CoachAvailability(Base):
    """A coach's working window on one calendar date."""
    __tablename__ = "coach_availabilities"
    __table_args__ = (
        sa.UniqueConstraint("coach_id", "slot_date", name="uq_coach_availabilities_coach_id_slot_date"),
        sa.Index("ix_coach_availabilities_slot_date", "slot_date"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    coach_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False
    )
    slot_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

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


class TimeSlot(Base):
    """One bookable interval inside an availability window."""
    __tablename__ = "time_slots"
    __table_args__ = (
        sa.CheckConstraint("start_time < end_time", name="ck_time_slots_start_before_end"),
        sa.Index("ix_time_slots_availability_id", "availability_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    availability_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("coach_availabilities.id", ondelete="CASCADE"), nullable=False
    )
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    status: Mapped[SlotStatus] = mapped_column(
        sa.Enum(SlotStatus, native_enum=False, length=16),
        nullable=False,
        default=SlotStatus.ACTIVE,
    )
    # Cache of "an active booking holds this slot"
    is_booked: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    availability: Mapped[CoachAvailability] = relationship(lazy="joined", innerjoin=True)

    @property
    def coach_id(self) -> int:
        return self.availability.coach_id

    @property
    def slot_date(self) -> date:
        return self.availability.slot_date
