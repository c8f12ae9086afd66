#!/usr/bin/env python3
"""
Database initialization script for local SQLite development.
Creates every table and seeds the specialty catalogue.
"""

import asyncio
import os
import sys

# Local default; a real DATABASE_URL in the environment wins
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./data/coachbook.db")

from pathlib import Path

import sqlalchemy as sa

DEFAULT_SPECIALTIES = (
    "Strength & Conditioning",
    "Running",
    "Swimming",
    "Yoga",
    "Boxing",
    "Tennis",
)


async def init_database() -> None:
    from coachbook.db.base import init_db

    Path("data").mkdir(exist_ok=True)
    await init_db()
    print("Database tables created")


async def seed_specialties() -> int:
    from coachbook.db.models.coach import Specialty
    from coachbook.db.session import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        existing = set((await session.execute(sa.select(Specialty.title))).scalars().all())
        missing = [t for t in DEFAULT_SPECIALTIES if t not in existing]
        session.add_all(Specialty(title=t) for t in missing)
        await session.commit()
    return len(missing)


async def main() -> int:
    await init_database()
    added = await seed_specialties()
    print(f"Seeded {added} specialties")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
