# coachbook/db/models/engagement.py
"""Reviews, favorites and stored notifications."""

from __future__ import annotations
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachbook.db.session import Base, BigIntPK
from coachbook.db.models.user import Athlete
from coachbook.db.models.coach import Coach


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        sa.UniqueConstraint("booking_id", name="uq_reviews_booking_id"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        sa.Index("ix_reviews_coach_id", "coach_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    athlete_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    coach_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False
    )
    rating: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    athlete: Mapped[Athlete] = relationship(lazy="joined", innerjoin=True)


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (
        sa.UniqueConstraint("athlete_id", "coach_id", name="uq_favorites_athlete_id_coach_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    athlete_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    coach_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    coach: Mapped[Coach] = relationship(lazy="joined", innerjoin=True)


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        sa.Index("ix_notifications_receiver_id", "receiver_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    receiver_id: Mapped[int] = mapped_column(
        sa.BigInteger, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[int | None] = mapped_column(
        sa.BigInteger, sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    body: Mapped[str] = mapped_column(sa.Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
