"""Redemption request routes - create, list, approve and reject."""

import math

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from app.config import settings
from app.database import get_db
from app.dependencies import get_principal, require_staff, require_student
from app.models.item_request import ItemRequest, RequestStatus
from app.models.store_item import StoreItem
from app.models.user import User
from app.services.access import Principal, ensure_can_process, ensure_can_view
from app.services.redemption import RedemptionWorkflow

router = APIRouter(prefix="/api/requests", tags=["requests"])


class CreateRequestBody(BaseModel):
    item_id: int


class RejectBody(BaseModel):
    note: str | None = Field(default=None, max_length=500)


class PersonOut(BaseModel):
    id: int
    username: str
    first_name: str | None
    last_name: str | None


class RequestItemOut(BaseModel):
    id: int
    name: str
    points_required: int
    available_quantity: int


class RequestOut(BaseModel):
    id: int
    status: str
    points_spent: int
    note: str | None
    student: PersonOut
    tutor: PersonOut
    item: RequestItemOut
    created_at: str
    updated_at: str


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int
    has_more: bool


class RequestListOut(BaseModel):
    requests: list[RequestOut]
    pagination: Pagination


def _escape_like(value: str) -> str:
    """Match ``%`` and ``_`` literally in a LIKE pattern."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _person(user: User) -> PersonOut:
    return PersonOut(
        id=user.id,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
    )


def _request_out(req: ItemRequest) -> RequestOut:
    return RequestOut(
        id=req.id,
        status=req.status,
        points_spent=req.points_spent,
        note=req.note,
        student=_person(req.student),
        tutor=_person(req.tutor),
        item=RequestItemOut(
            id=req.item.id,
            name=req.item.name,
            points_required=req.item.points_required,
            available_quantity=req.item.available_quantity,
        ),
        created_at=req.created_at.isoformat(),
        updated_at=req.updated_at.isoformat(),
    )


@router.post("", response_model=RequestOut, status_code=201)
async def create_request(
    body: CreateRequestBody,
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    """Spend points on a store item; the request starts as pending."""
    workflow = RedemptionWorkflow(db)
    req = await workflow.create_request(principal.user_id, body.item_id)
    await db.commit()
    return _request_out(req)


@router.get("", response_model=RequestListOut)
async def list_requests(
    status: RequestStatus | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    search: str = "",
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Paginated requests scoped to the caller, pending first then newest."""
    limit = min(limit, settings.REQUESTS_PAGE_MAX)

    conditions = []
    if status is not None:
        conditions.append(ItemRequest.status == status.value)

    if principal.is_tutor:
        conditions.append(ItemRequest.tutor_id == principal.user_id)
    elif principal.is_student:
        conditions.append(ItemRequest.student_id == principal.user_id)

    search = search.strip()
    if search:
        student = aliased(User)
        pattern = f"%{_escape_like(search.lower())}%"
        matching_students = select(student.id).where(
            or_(
                func.lower(student.username).like(pattern, escape="\\"),
                func.lower(student.first_name).like(pattern, escape="\\"),
                func.lower(student.last_name).like(pattern, escape="\\"),
            )
        )
        matching_items = select(StoreItem.id).where(
            func.lower(StoreItem.name).like(pattern, escape="\\")
        )
        conditions.append(
            or_(
                ItemRequest.student_id.in_(matching_students),
                ItemRequest.item_id.in_(matching_items),
            )
        )

    count_query = select(func.count(ItemRequest.id))
    if conditions:
        count_query = count_query.where(*conditions)
    total = (await db.execute(count_query)).scalar() or 0

    status_order = case(
        (ItemRequest.status == RequestStatus.PENDING.value, 0),
        (ItemRequest.status == RequestStatus.APPROVED.value, 1),
        else_=2,
    )
    offset = (page - 1) * limit
    query = select(ItemRequest)
    if conditions:
        query = query.where(*conditions)
    result = await db.execute(
        query.options(
            selectinload(ItemRequest.student),
            selectinload(ItemRequest.tutor),
            selectinload(ItemRequest.item),
        )
        .order_by(status_order, ItemRequest.created_at.desc(), ItemRequest.id.desc())
        .offset(offset)
        .limit(limit)
    )
    requests = result.scalars().all()

    return RequestListOut(
        requests=[_request_out(r) for r in requests],
        pagination=Pagination(
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
            has_more=offset + len(requests) < total,
        ),
    )


@router.get("/{request_id}", response_model=RequestOut)
async def get_request(
    request_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    req = await RedemptionWorkflow(db).get_request(request_id)
    ensure_can_view(principal, req)
    return _request_out(req)


@router.post("/{request_id}/approve", response_model=RequestOut)
async def approve_request(
    request_id: int,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Confirm a pending request; points and stock were taken at creation."""
    workflow = RedemptionWorkflow(db)
    ensure_can_process(principal, await workflow.get_request(request_id))

    req = await workflow.approve(request_id, actor_id=principal.user_id)
    await db.commit()
    return _request_out(req)


@router.post("/{request_id}/reject", response_model=RequestOut)
async def reject_request(
    request_id: int,
    body: RejectBody,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Reject a pending request, refunding points and restocking the item."""
    workflow = RedemptionWorkflow(db)
    ensure_can_process(principal, await workflow.get_request(request_id))

    req = await workflow.reject(request_id, actor_id=principal.user_id, note=body.note)
    await db.commit()
    return _request_out(req)
