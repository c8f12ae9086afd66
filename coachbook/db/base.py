# coachbook/db/base.py

"""
This file imports all the ORM models so Alembic can discover them.
Whenever you add a new model, import it here.
"""
from coachbook.db.models.user import User, Athlete
from coachbook.db.models.coach import Coach, Specialty
from coachbook.db.models.schedule import CoachAvailability, TimeSlot
from coachbook.db.models.booking import Booking
from coachbook.db.models.engagement import Review, Favorite, Notification
from coachbook.db.session import engine, Base

async def init_db():
    """Initialize database by creating all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)