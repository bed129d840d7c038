"""Inventory guard - the only writer of store item stock."""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.store_item import StoreItem
from app.services.errors import InvalidRequestError, NotFoundError, OutOfStockError

logger = logging.getLogger(__name__)


class InventoryGuard:
    """Reserve and release store item stock without ever going negative."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_item(self, item_id: int) -> StoreItem:
        result = await self._db.execute(
            select(StoreItem)
            .where(StoreItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    async def get_quantity(self, item_id: int) -> int:
        result = await self._db.execute(
            select(StoreItem.available_quantity).where(StoreItem.id == item_id)
        )
        quantity = result.scalar_one_or_none()
        if quantity is None:
            raise NotFoundError(f"Item {item_id} not found")
        return quantity

    async def reserve(self, item_id: int, quantity: int = 1) -> int:
        """Take ``quantity`` units out of stock. Returns the remaining stock."""
        _check_quantity(quantity)
        result = await self._db.execute(
            update(StoreItem)
            .where(
                StoreItem.id == item_id,
                StoreItem.available_quantity >= quantity,
            )
            .values(available_quantity=StoreItem.available_quantity - quantity)
            .returning(StoreItem.available_quantity)
            .execution_options(synchronize_session=False)
        )
        remaining = result.scalar_one_or_none()
        if remaining is None:
            available = await self.get_quantity(item_id)
            logger.warning(
                "Refused reservation of %d x item %d: %d in stock",
                quantity, item_id, available,
            )
            raise OutOfStockError("Item is out of stock")

        logger.info("Reserved %d x item %d, %d left", quantity, item_id, remaining)
        return remaining

    async def release(self, item_id: int, quantity: int = 1) -> int:
        """Return ``quantity`` units to stock. Returns the new stock level."""
        _check_quantity(quantity)
        result = await self._db.execute(
            update(StoreItem)
            .where(StoreItem.id == item_id)
            .values(available_quantity=StoreItem.available_quantity + quantity)
            .returning(StoreItem.available_quantity)
            .execution_options(synchronize_session=False)
        )
        available = result.scalar_one_or_none()
        if available is None:
            raise NotFoundError(f"Item {item_id} not found")

        logger.info("Released %d x item %d, %d in stock", quantity, item_id, available)
        return available

    async def set_quantity(self, item_id: int, quantity: int) -> int:
        """Administrative restock: overwrite the stock level."""
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
            raise InvalidRequestError("Available quantity must be a non-negative integer")
        result = await self._db.execute(
            update(StoreItem)
            .where(StoreItem.id == item_id)
            .values(available_quantity=quantity)
            .returning(StoreItem.available_quantity)
            .execution_options(synchronize_session=False)
        )
        available = result.scalar_one_or_none()
        if available is None:
            raise NotFoundError(f"Item {item_id} not found")

        logger.info("Stock of item %d set to %d", item_id, available)
        return available


def _check_quantity(quantity: int) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise InvalidRequestError("Quantity must be a positive integer")
