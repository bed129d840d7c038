"""Seed the database with demo users and store items.

Usage: python scripts/seed_data.py
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from app.config import settings
from app.database import init_db, async_session
from app.models.store_item import StoreItem
from app.models.user import User, UserRole


SEED_STAFF = [
    {"username": "admin", "email": "admin@example.com", "role": UserRole.ADMIN.value},
    {
        "username": "tutor",
        "email": "tutor@example.com",
        "first_name": "Tara",
        "last_name": "Tutor",
        "role": UserRole.TUTOR.value,
    },
]

SEED_STUDENTS = [
    {"username": "alice", "email": "alice@example.com", "first_name": "Alice", "points": 120},
    {"username": "bob", "email": "bob@example.com", "first_name": "Bob", "points": 60},
    {"username": "chen", "email": "chen@example.com", "first_name": "Chen", "points": 0},
]

SEED_ITEMS = [
    {
        "name": "Sticker pack",
        "description": "A set of five themed stickers",
        "points_required": 20,
        "available_quantity": 30,
    },
    {
        "name": "Homework pass",
        "description": "Skip one homework assignment",
        "points_required": 60,
        "available_quantity": 5,
    },
    {
        "name": "Book voucher",
        "description": "Voucher for the school book fair",
        "points_required": 150,
        "available_quantity": 2,
    },
]


async def _upsert_user(session, data: dict) -> User:
    result = await session.execute(select(User).where(User.username == data["username"]))
    existing = result.scalar_one_or_none()
    if existing:
        print(f"  Exists: {data['username']}")
        return existing
    user = User(**data)
    session.add(user)
    await session.flush()
    print(f"  Inserted: {data['username']} ({data.get('role', UserRole.STUDENT.value)})")
    return user


async def seed() -> None:
    # Ensure data directory exists
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)

    # Create tables
    await init_db()
    print("Database tables created.")

    async with async_session() as session:
        tutor = None
        for staff in SEED_STAFF:
            user = await _upsert_user(session, staff)
            if user.role == UserRole.TUTOR:
                tutor = user

        for student in SEED_STUDENTS:
            await _upsert_user(
                session,
                {**student, "role": UserRole.STUDENT.value, "tutor_id": tutor.id},
            )

        for item_data in SEED_ITEMS:
            result = await session.execute(
                select(StoreItem).where(StoreItem.name == item_data["name"])
            )
            if result.scalar_one_or_none():
                print(f"  Exists: {item_data['name']}")
                continue
            session.add(StoreItem(**item_data))
            print(f"  Inserted: {item_data['name']}")

        await session.commit()

    print("Seed data complete.")


if __name__ == "__main__":
    asyncio.run(seed())
