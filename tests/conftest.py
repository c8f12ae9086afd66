#!/usr/bin/env python3
"""
Shared fixtures: an in-memory SQLite database per test, a seeder for users, coaches
and schedules, a recording notifier, PyJWT-minted tokens and an API client.
"""

import os
import sys

# Settings and the engine are built at import time; point them at SQLite first
os.environ.setdefault("APP_ENV", "testing")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("TIMEZONE", "UTC")

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import itertools
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, Tuple

import httpx
import jwt
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coachbook.core.business import slot_start_on, today_local
from coachbook.core.config import settings
from coachbook.db.models.booking import Booking, BookingStatus
from coachbook.db.models.coach import Coach, Specialty
from coachbook.db.models.engagement import Review
from coachbook.db.models.schedule import CoachAvailability, TimeSlot
from coachbook.db.models.user import Athlete, User, UserRole
from coachbook.db.session import Base
from coachbook.services.schedule import GeneratedSchedule, generate_slots

import coachbook.db.base  # noqa: F401  registers every model

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class RecordingNotifier:
    """Notifier double that keeps what it was asked to send."""

    def __init__(self):
        self.sent: List[dict] = []

    async def notify(self, receiver_id, sender_id, title, body):
        self.sent.append(
            {"receiver_id": receiver_id, "sender_id": sender_id, "title": title, "body": body}
        )

    def titles(self) -> List[str]:
        return [n["title"] for n in self.sent]


class Seeder:
    """Creates rows through its own session so test sessions never share its objects."""

    _seq = itertools.count(1)

    def __init__(self, session: AsyncSession):
        self.session = session
        self._specialties = {}

    def _user(self, name: str, role: UserRole, email: Optional[str]) -> User:
        n = next(self._seq)
        return User(
            email=email or f"{role.value.lower()}{n}@example.com",
            full_name=name,
            role=role,
        )

    async def specialty(self, title: str = "Running") -> Specialty:
        if title not in self._specialties:
            obj = Specialty(title=title)
            self.session.add(obj)
            await self.session.commit()
            self._specialties[title] = obj
        return self._specialties[title]

    async def athlete(self, name: str = "Ava Athlete", email: Optional[str] = None) -> Athlete:
        athlete = Athlete(user=self._user(name, UserRole.ATHLETE, email))
        self.session.add(athlete)
        await self.session.commit()
        return athlete

    async def coach(
        self,
        name: str = "Cole Coach",
        email: Optional[str] = None,
        *,
        specialty: Optional[str] = "Running",
        price: str = "50.00",
        experience: int = 5,
        gender: Optional[str] = None,
        location: Optional[str] = None,
        address: Optional[str] = None,
        recommended: bool = False,
        subscribed: bool = False,
    ) -> Coach:
        spec = await self.specialty(specialty) if specialty else None
        coach = Coach(
            user=self._user(name, UserRole.COACH, email),
            specialty_id=spec.id if spec else None,
            price=Decimal(price),
            experience=experience,
            gender=gender,
            location=location,
            address=address,
            is_recommended=recommended,
            is_subscribed=subscribed,
        )
        self.session.add(coach)
        await self.session.commit()
        return coach

    async def schedule(
        self,
        coach_id: int,
        day: Optional[date] = None,
        start: time = time(9, 0),
        end: time = time(12, 0),
        interval: int = 60,
    ) -> GeneratedSchedule:
        day = day or today_local() + timedelta(days=1)
        return await generate_slots(
            self.session,
            coach_id=coach_id,
            slot_date=day,
            start_time=start,
            end_time=end,
            interval_minutes=interval,
        )

    async def past_booking(
        self,
        athlete_id: int,
        coach_id: int,
        *,
        days_ago: int = 1,
        start: time = time(9, 0),
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> Tuple[Booking, TimeSlot]:
        """A booking on a day already gone; written directly since availability refuses past days."""
        day = today_local() - timedelta(days=days_ago)
        end = (datetime.combine(day, start) + timedelta(hours=1)).time()
        availability = CoachAvailability(coach_id=coach_id, slot_date=day, start_time=start, end_time=end)
        self.session.add(availability)
        await self.session.flush()
        slot = TimeSlot(availability_id=availability.id, start_time=start, end_time=end, is_booked=True)
        self.session.add(slot)
        await self.session.flush()
        booking = Booking(
            athlete_id=athlete_id,
            coach_id=coach_id,
            time_slot_id=slot.id,
            booking_date=slot_start_on(day, start),
            booking_day=day,
            status=status,
        )
        self.session.add(booking)
        await self.session.commit()
        return booking, slot

    async def review(self, booking_id: int, athlete_id: int, coach_id: int, rating: int) -> Review:
        review = Review(booking_id=booking_id, athlete_id=athlete_id, coach_id=coach_id, rating=rating)
        self.session.add(review)
        await self.session.commit()
        return review


def make_token(user_id: int, role: str, email: str = "", expires_in: int = 3600) -> str:
    claims = {
        "sub": str(user_id),
        "role": role,
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory):
    async with session_factory() as session:
        yield Seeder(session)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def tomorrow() -> date:
    return today_local() + timedelta(days=1)


@pytest.fixture
def auth_headers():
    def _headers(user_id: int, role: str, **kwargs) -> dict:
        return {"Authorization": f"Bearer {make_token(user_id, role, **kwargs)}"}
    return _headers


@pytest_asyncio.fixture
async def client(session_factory, notifier):
    """ASGI client running in the test's event loop, wired to the test database."""
    from coachbook.api.deps import get_notifier
    from coachbook.db.session import get_session
    from coachbook.main import app

    async def _session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# Pytest configuration hooks
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Pure unit tests with no database")
    config.addinivalue_line("markers", "essential: Core booking and scheduling behaviour")
    config.addinivalue_line("markers", "integration: HTTP-level tests through the FastAPI app")
    config.addinivalue_line("markers", "slow: Tests that use a file database and real concurrency")


def pytest_collection_modifyitems(config, items):
    """Run fast tests first"""
    def test_priority(item):
        if item.get_closest_marker("unit"):
            return 0
        elif item.get_closest_marker("essential"):
            return 1
        elif item.get_closest_marker("integration"):
            return 2
        elif item.get_closest_marker("slow"):
            return 3
        return 1

    items[:] = sorted(items, key=test_priority)
