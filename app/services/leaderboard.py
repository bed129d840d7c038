"""Student leaderboard - rank students by point balance."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserRole


@dataclass
class LeaderboardEntry:
    id: int
    username: str
    first_name: str | None
    last_name: str | None
    points: int
    rank: int


@dataclass
class Leaderboard:
    entries: list[LeaderboardEntry]
    total: int
    user_rank: LeaderboardEntry | None = None


def rank_students(students: list[User]) -> list[LeaderboardEntry]:
    """Assign ranks 1..n, highest balance first, ties broken by id."""
    ordered = sorted(students, key=lambda s: (-(s.points or 0), s.id))
    return [
        LeaderboardEntry(
            id=s.id,
            username=s.username,
            first_name=s.first_name,
            last_name=s.last_name,
            points=s.points or 0,
            rank=position,
        )
        for position, s in enumerate(ordered, start=1)
    ]


async def build_leaderboard(
    db: AsyncSession, limit: int, viewer_id: int | None = None
) -> Leaderboard:
    """Top ``limit`` students plus the viewer's own rank if they are a student."""
    result = await db.execute(
        select(User).where(User.role == UserRole.STUDENT.value)
    )
    ranked = rank_students(list(result.scalars().all()))

    user_rank = None
    if viewer_id is not None:
        user_rank = next((e for e in ranked if e.id == viewer_id), None)

    return Leaderboard(entries=ranked[:limit], total=len(ranked), user_rank=user_rank)
