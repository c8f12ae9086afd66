# coachbook/db/models/coach.py

from __future__ import annotations
from decimal import Decimal

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachbook.db.session import Base, BigIntPK
from coachbook.db.models.user import User


class Specialty(Base):
    __tablename__ = "specialties"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(sa.String(120), nullable=False, unique=True)
    icon: Mapped[str | None] = mapped_column(sa.String(500))


class Coach(Base):
    """Bookable coach profile; shares the user's primary key."""
    __tablename__ = "coaches"
    __table_args__ = (
        sa.Index("ix_coaches_specialty_id", "specialty_id"),
        sa.Index("ix_coaches_price", "price"),
    )

    id: Mapped[int] = mapped_column(
        BigIntPK, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, autoincrement=False
    )
    specialty_id: Mapped[int | None] = mapped_column(
        sa.BigInteger, sa.ForeignKey("specialties.id", ondelete="SET NULL")
    )
    price: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False, default=Decimal("0"))
    experience: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    gender: Mapped[str | None] = mapped_column(sa.String(16))
    expertise: Mapped[str | None] = mapped_column(sa.Text)
    certification: Mapped[str | None] = mapped_column(sa.Text)
    location: Mapped[str | None] = mapped_column(sa.String(255))
    address: Mapped[str | None] = mapped_column(sa.String(255))
    latitude: Mapped[float | None] = mapped_column(sa.Float)
    longitude: Mapped[float | None] = mapped_column(sa.Float)

    # Maintained by the payment system
    is_recommended: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    is_subscribed: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    user: Mapped[User] = relationship(lazy="joined", innerjoin=True)
    specialty: Mapped[Specialty | None] = relationship(lazy="joined")

    @property
    def full_name(self) -> str:
        return self.user.full_name

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def profile_image(self) -> str | None:
        return self.user.profile_image
