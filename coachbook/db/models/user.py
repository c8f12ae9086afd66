# coachbook/db/models/user.py

from __future__ import annotations
from datetime import datetime, timezone
import enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachbook.db.session import Base, BigIntPK


class UserRole(str, enum.Enum):
    ATHLETE = "ATHLETE"
    COACH = "COACH"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, native_enum=False, length=16), nullable=False
    )
    phone_number: Mapped[str | None] = mapped_column(sa.String(20))
    profile_image: Mapped[str | None] = mapped_column(sa.String(500))
    # Push token registered by the mobile client; delivery itself happens elsewhere
    fcm_token: Mapped[str | None] = mapped_column(sa.String(255))

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class Athlete(Base):
    """Athlete profile; shares the user's primary key."""
    __tablename__ = "athletes"

    id: Mapped[int] = mapped_column(
        BigIntPK, sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, autoincrement=False
    )

    user: Mapped[User] = relationship(lazy="joined", innerjoin=True)

    @property
    def full_name(self) -> str:
        return self.user.full_name

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def profile_image(self) -> str | None:
        return self.user.profile_image
