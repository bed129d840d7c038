"""Inventory guard - stock reservations never oversell."""

import asyncio

import pytest

from app.models.store_item import StoreItem
from app.services.errors import InvalidRequestError, NotFoundError, OutOfStockError
from app.services.inventory import InventoryGuard


@pytest.fixture()
async def stocked_item(make_item) -> StoreItem:
    return await make_item(
        name="Sticker pack",
        description="Five themed stickers",
        points_required=20,
        available_quantity=3,
    )


async def test_reserve_decrements_stock(db_session, stocked_item):
    inventory = InventoryGuard(db_session)

    assert await inventory.reserve(stocked_item.id) == 2
    assert await inventory.reserve(stocked_item.id, quantity=2) == 0
    await db_session.commit()

    assert await inventory.get_quantity(stocked_item.id) == 0


async def test_reserve_more_than_available_fails(db_session, stocked_item):
    inventory = InventoryGuard(db_session)

    with pytest.raises(OutOfStockError):
        await inventory.reserve(stocked_item.id, quantity=4)
    await db_session.rollback()

    assert await inventory.get_quantity(stocked_item.id) == 3


async def test_release_returns_stock(db_session, stocked_item):
    inventory = InventoryGuard(db_session)

    await inventory.reserve(stocked_item.id)
    assert await inventory.release(stocked_item.id) == 3
    assert await inventory.release(stocked_item.id) == 4


async def test_unknown_item(db_session):
    inventory = InventoryGuard(db_session)
    with pytest.raises(NotFoundError):
        await inventory.reserve(404)
    with pytest.raises(NotFoundError):
        await inventory.release(404)
    with pytest.raises(NotFoundError):
        await inventory.get_item(404)


async def test_invalid_quantities(db_session, stocked_item):
    inventory = InventoryGuard(db_session)
    with pytest.raises(InvalidRequestError):
        await inventory.reserve(stocked_item.id, quantity=0)
    with pytest.raises(InvalidRequestError):
        await inventory.release(stocked_item.id, quantity=-1)
    with pytest.raises(InvalidRequestError):
        await inventory.set_quantity(stocked_item.id, -1)


@pytest.mark.parametrize("quantity", [True, 1.5, "1"])
async def test_non_integer_quantities_are_rejected(db_session, stocked_item, quantity):
    inventory = InventoryGuard(db_session)
    with pytest.raises(InvalidRequestError):
        await inventory.reserve(stocked_item.id, quantity=quantity)
    with pytest.raises(InvalidRequestError):
        await inventory.release(stocked_item.id, quantity=quantity)
    with pytest.raises(InvalidRequestError):
        await inventory.set_quantity(stocked_item.id, quantity)
    assert await inventory.get_quantity(stocked_item.id) == 3


async def test_set_quantity_restocks(db_session, stocked_item):
    inventory = InventoryGuard(db_session)
    assert await inventory.set_quantity(stocked_item.id, 10) == 10
    assert await inventory.reserve(stocked_item.id) == 9


async def test_stock_tracks_reserves_and_releases(db_session, stocked_item):
    inventory = InventoryGuard(db_session)
    operations = ["reserve", "reserve", "release", "reserve", "reserve", "reserve", "release"]

    reserves = releases = 0
    for op in operations:
        if op == "reserve":
            try:
                await inventory.reserve(stocked_item.id)
                reserves += 1
            except OutOfStockError:
                pass
        else:
            await inventory.release(stocked_item.id)
            releases += 1

        quantity = await inventory.get_quantity(stocked_item.id)
        assert quantity >= 0
        assert quantity == 3 + releases - reserves


async def test_concurrent_reservations_never_oversell(session_factory, db_session, stocked_item):
    async def attempt() -> bool:
        async with session_factory() as session:
            try:
                await InventoryGuard(session).reserve(stocked_item.id)
                await session.commit()
                return True
            except OutOfStockError:
                await session.rollback()
                return False

    outcomes = await asyncio.gather(*(attempt() for _ in range(6)))

    assert outcomes.count(True) == 3
    assert outcomes.count(False) == 3
    assert await InventoryGuard(db_session).get_quantity(stocked_item.id) == 0
