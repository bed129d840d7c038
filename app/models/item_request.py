"""ItemRequest ORM model - a student's redemption request."""

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ItemRequest(Base):
    __tablename__ = "item_requests"
    __table_args__ = (
        # At most one pending request per student and item
        Index(
            "uq_item_requests_pending",
            "student_id",
            "item_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    tutor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("store_items.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=RequestStatus.PENDING.value
    )
    # Price snapshot, never recalculated
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    student: Mapped["User"] = relationship(
        "User", back_populates="item_requests", foreign_keys=[student_id]
    )
    tutor: Mapped["User"] = relationship("User", foreign_keys=[tutor_id])
    item: Mapped["StoreItem"] = relationship("StoreItem", back_populates="requests")
