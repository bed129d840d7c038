"""FastAPI dependencies for route handlers."""

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User, UserRole
from app.services.access import Principal


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Require an authenticated and registered user."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=403, detail="Not registered")
    return user


async def get_principal(user: User = Depends(get_current_user)) -> Principal:
    return Principal.from_user(user)


async def require_staff(principal: Principal = Depends(get_principal)) -> Principal:
    """Require tutor or admin role."""
    if principal.role not in (UserRole.TUTOR, UserRole.ADMIN):
        raise HTTPException(status_code=403, detail="Tutor access required")
    return principal


async def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    """Require admin role."""
    if principal.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal


async def require_student(principal: Principal = Depends(get_principal)) -> Principal:
    """Require student role."""
    if principal.role != UserRole.STUDENT:
        raise HTTPException(status_code=403, detail="Only students can request items")
    return principal
