"""Reward store catalogue routes."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_principal, require_admin
from app.models.store_item import StoreItem
from app.services.access import Principal
from app.services.inventory import InventoryGuard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/store", tags=["store"])

URL_PATTERN = r"^(https?|ftp)://[^\s/$.?#].[^\s]*$"


class StoreItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    points_required: int = Field(ge=1)
    available_quantity: int = Field(ge=0)
    image_url: str | None = Field(default=None, pattern=URL_PATTERN)


class StoreItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=500)
    points_required: int | None = Field(default=None, ge=1)
    available_quantity: int | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, pattern=URL_PATTERN)


class StoreItemOut(BaseModel):
    id: int
    name: str
    description: str
    points_required: int
    available_quantity: int
    image_url: str | None


def _item_out(item: StoreItem) -> StoreItemOut:
    return StoreItemOut(
        id=item.id,
        name=item.name,
        description=item.description,
        points_required=item.points_required,
        available_quantity=item.available_quantity,
        image_url=item.image_url,
    )


@router.get("/items", response_model=list[StoreItemOut])
async def list_items(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """All store items, cheapest first."""
    result = await db.execute(
        select(StoreItem).order_by(StoreItem.points_required, StoreItem.id)
    )
    return [_item_out(item) for item in result.scalars().all()]


@router.get("/items/{item_id}", response_model=StoreItemOut)
async def get_item(
    item_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return _item_out(await InventoryGuard(db).get_item(item_id))


@router.post("/items", response_model=StoreItemOut, status_code=201)
async def create_item(
    body: StoreItemCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Add a new item to the store."""
    item = StoreItem(
        name=body.name.strip(),
        description=body.description.strip(),
        points_required=body.points_required,
        available_quantity=body.available_quantity,
        image_url=body.image_url,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    logger.info("Admin %d created store item %d (%s)", principal.user_id, item.id, item.name)
    return _item_out(item)


@router.put("/items/{item_id}", response_model=StoreItemOut)
async def update_item(
    item_id: int,
    body: StoreItemUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Edit item details; stock changes go through the inventory guard."""
    inventory = InventoryGuard(db)
    item = await inventory.get_item(item_id)

    if body.name is not None:
        item.name = body.name.strip()
    if body.description is not None:
        item.description = body.description.strip()
    if body.points_required is not None:
        item.points_required = body.points_required
    if "image_url" in body.model_fields_set:
        item.image_url = body.image_url
    await db.flush()

    if body.available_quantity is not None:
        await inventory.set_quantity(item_id, body.available_quantity)

    await db.commit()
    item = await inventory.get_item(item_id)
    logger.info("Admin %d updated store item %d", principal.user_id, item_id)
    return _item_out(item)
