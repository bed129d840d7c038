"""Leaderboard API routes."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import get_principal
from app.services.access import Principal
from app.services.leaderboard import build_leaderboard

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


class LeaderboardRow(BaseModel):
    id: int
    username: str
    first_name: str | None
    last_name: str | None
    points: int
    rank: int


class UserRank(BaseModel):
    rank: int
    points: int


class LeaderboardOut(BaseModel):
    leaderboard: list[LeaderboardRow]
    user_rank: UserRank | None
    total: int


@router.get("", response_model=LeaderboardOut)
async def get_leaderboard(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Top students by points, plus the caller's rank when they are a student."""
    board = await build_leaderboard(
        db,
        limit=settings.LEADERBOARD_SIZE,
        viewer_id=principal.user_id if principal.is_student else None,
    )
    return LeaderboardOut(
        leaderboard=[LeaderboardRow(**vars(e)) for e in board.entries],
        user_rank=(
            UserRank(rank=board.user_rank.rank, points=board.user_rank.points)
            if board.user_rank
            else None
        ),
        total=board.total,
    )
