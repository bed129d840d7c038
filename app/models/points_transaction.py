"""PointsTransaction ORM model - append-only ledger entry."""

import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class TransactionType(str, enum.Enum):
    AWARD = "award"
    DEDUCT = "deduct"


class PointsTransaction(Base):
    __tablename__ = "points_transactions"
    __table_args__ = (
        CheckConstraint("points > 0", name="ck_points_transactions_points_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    student: Mapped["User"] = relationship(
        "User", back_populates="points_transactions", foreign_keys=[student_id]
    )
    actor: Mapped["User"] = relationship("User", foreign_keys=[created_by])

    @property
    def signed_points(self) -> int:
        return self.points if self.type == TransactionType.AWARD else -self.points
