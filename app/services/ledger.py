"""Ledger service - the only writer of student point balances.

Every balance change is a guarded single-statement UPDATE followed by an
append-only ``PointsTransaction`` row in the same transaction.  The
guard (``points >= amount`` for deductions) is evaluated by the database
against the current row, so concurrent deductions serialize on the row
and can never overdraw a balance.

Methods flush but never commit; the caller owns the transaction.
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.points_transaction import PointsTransaction, TransactionType
from app.models.user import User, UserRole
from app.services.errors import (
    InsufficientBalanceError,
    InvalidRequestError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class LedgerService:
    """Award, deduct and read student point balances."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_student(self, student_id: int) -> User:
        """Load a student row, refreshed from the database."""
        result = await self._db.execute(
            select(User)
            .where(User.id == student_id, User.role == UserRole.STUDENT.value)
            .execution_options(populate_existing=True)
        )
        student = result.scalar_one_or_none()
        if student is None:
            raise NotFoundError(f"Student {student_id} not found")
        return student

    async def get_balance(self, student_id: int) -> int:
        result = await self._db.execute(
            select(User.points).where(
                User.id == student_id, User.role == UserRole.STUDENT.value
            )
        )
        points = result.scalar_one_or_none()
        if points is None:
            raise NotFoundError(f"Student {student_id} not found")
        return points

    async def award(
        self, student_id: int, amount: int, reason: str | None, actor_id: int
    ) -> int:
        """Add ``amount`` points and record an award entry. Returns the new balance."""
        _check_amount(amount)
        result = await self._db.execute(
            update(User)
            .where(User.id == student_id, User.role == UserRole.STUDENT.value)
            .values(points=User.points + amount)
            .returning(User.points)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            raise NotFoundError(f"Student {student_id} not found")

        await self._append(student_id, TransactionType.AWARD, amount, reason, actor_id)
        logger.info(
            "Awarded %d points to student %d (actor %d), balance %d",
            amount, student_id, actor_id, new_balance,
        )
        return new_balance

    async def deduct(
        self, student_id: int, amount: int, reason: str | None, actor_id: int
    ) -> int:
        """Remove ``amount`` points and record a deduct entry. Returns the new balance.

        Raises ``InsufficientBalanceError`` without writing anything when
        the balance is lower than ``amount``.
        """
        _check_amount(amount)
        result = await self._db.execute(
            update(User)
            .where(
                User.id == student_id,
                User.role == UserRole.STUDENT.value,
                User.points >= amount,
            )
            .values(points=User.points - amount)
            .returning(User.points)
            .execution_options(synchronize_session=False)
        )
        new_balance = result.scalar_one_or_none()
        if new_balance is None:
            # Either the student is missing or the guard refused the update
            balance = await self.get_balance(student_id)
            logger.warning(
                "Refused deduct of %d from student %d: balance %d",
                amount, student_id, balance,
            )
            raise InsufficientBalanceError(
                f"Not enough points. Required: {amount}, Available: {balance}"
            )

        await self._append(student_id, TransactionType.DEDUCT, amount, reason, actor_id)
        logger.info(
            "Deducted %d points from student %d (actor %d), balance %d",
            amount, student_id, actor_id, new_balance,
        )
        return new_balance

    async def _append(
        self,
        student_id: int,
        kind: TransactionType,
        amount: int,
        reason: str | None,
        actor_id: int,
    ) -> PointsTransaction:
        txn = PointsTransaction(
            student_id=student_id,
            type=kind.value,
            points=amount,
            reason=reason,
            created_by=actor_id,
        )
        self._db.add(txn)
        await self._db.flush()
        return txn


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidRequestError("Points must be a positive integer")
