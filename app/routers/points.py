"""Points API routes - award, deduct, balance and ledger history."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_principal, require_staff
from app.models.points_transaction import PointsTransaction
from app.models.user import User
from app.services.access import Principal, ensure_manages_student
from app.services.ledger import LedgerService

router = APIRouter(prefix="/api/points", tags=["points"])


class PointsChangeRequest(BaseModel):
    student_id: int
    amount: int = Field(gt=0)
    reason: str | None = Field(default=None, max_length=500)


class PointsChangeResponse(BaseModel):
    student_id: int
    new_balance: int


class BalanceResponse(BaseModel):
    student_id: int
    points: int


class TransactionItem(BaseModel):
    id: int
    student_id: int
    type: str
    points: int
    reason: str | None
    created_by: int
    created_at: str


@router.post("/award", response_model=PointsChangeResponse)
async def award_points(
    body: PointsChangeRequest,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Add points to a student's balance."""
    ledger = LedgerService(db)
    student = await ledger.get_student(body.student_id)
    ensure_manages_student(principal, student)

    new_balance = await ledger.award(
        body.student_id,
        body.amount,
        reason=body.reason or "Points awarded",
        actor_id=principal.user_id,
    )
    await db.commit()
    return PointsChangeResponse(student_id=body.student_id, new_balance=new_balance)


@router.post("/deduct", response_model=PointsChangeResponse)
async def deduct_points(
    body: PointsChangeRequest,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Remove points from a student's balance; never below zero."""
    ledger = LedgerService(db)
    student = await ledger.get_student(body.student_id)
    ensure_manages_student(principal, student)

    new_balance = await ledger.deduct(
        body.student_id,
        body.amount,
        reason=body.reason or "Points deducted",
        actor_id=principal.user_id,
    )
    await db.commit()
    return PointsChangeResponse(student_id=body.student_id, new_balance=new_balance)


@router.get("/balance/{student_id}", response_model=BalanceResponse)
async def get_balance(
    student_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Return a student's current balance to any authenticated caller."""
    points = await LedgerService(db).get_balance(student_id)
    return BalanceResponse(student_id=student_id, points=points)


@router.get("/transactions", response_model=list[TransactionItem])
async def list_transactions(
    student_id: int | None = None,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Ledger history, newest first, scoped to what the caller may see."""
    query = select(PointsTransaction).order_by(
        PointsTransaction.created_at.desc(), PointsTransaction.id.desc()
    )

    if principal.is_admin:
        if student_id is not None:
            query = query.where(PointsTransaction.student_id == student_id)
    elif principal.is_tutor:
        if student_id is not None:
            owned = await db.execute(
                select(User.id).where(
                    User.id == student_id, User.tutor_id == principal.user_id
                )
            )
            if owned.scalar_one_or_none() is None:
                raise HTTPException(
                    status_code=404,
                    detail="Student not found or not assigned to this tutor",
                )
            query = query.where(PointsTransaction.student_id == student_id)
        else:
            own_students = select(User.id).where(User.tutor_id == principal.user_id)
            query = query.where(PointsTransaction.student_id.in_(own_students))
    else:
        query = query.where(PointsTransaction.student_id == principal.user_id)

    result = await db.execute(query)
    txns = result.scalars().all()

    return [
        TransactionItem(
            id=t.id,
            student_id=t.student_id,
            type=t.type,
            points=t.points,
            reason=t.reason,
            created_by=t.created_by,
            created_at=t.created_at.isoformat(),
        )
        for t in txns
    ]
