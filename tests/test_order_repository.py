import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from storefront.domain.models import Order, OrderLine, OrderStatus
from storefront.infrastructure.db_schema import order_items_tbl, orders_tbl, products_tbl


ADDRESS = {"address": "12 MG Road", "city": "Bengaluru", "postal_code": "560001", "country": "India"}


async def insert_order(uow, lines):
    order = Order(
        customer_name="Asha Rao",
        email="asha@example.com",
        shipping_address=ADDRESS,
        total_amount=sum((line.quantity * line.price_at_purchase for line in lines), Decimal("0")),
        status=OrderStatus.PENDING,
        created_at=datetime.now(timezone.utc),
    )
    async with uow() as tx:
        order_id = await tx.orders.insert(order, lines)
        await tx.commit()
    return order_id


async def read_view(uow, order_id):
    async with uow() as tx:
        return await tx.orders.get_view(order_id)


@pytest.mark.asyncio
async def test_view_joins_lines_with_current_product_data(uow, engine, add_product):
    await add_product(1, stock=5, name="Refurbished Dell XPS 15 Laptop")
    await add_product(2, stock=5, name="Refurbished LG OLED C1")
    order_id = await insert_order(uow, [
        OrderLine(product_id=1, quantity=1, price_at_purchase=Decimal("95900")),
        OrderLine(product_id=2, quantity=2, price_at_purchase=Decimal("76000")),
    ])

    async with engine.begin() as conn:
        await conn.execute(
            update(products_tbl).where(products_tbl.c.id == 1).values(name="Dell XPS 15 (2021)", price=Decimal("1"))
        )

    view = await read_view(uow, order_id)

    assert view.id == order_id
    assert view.status == OrderStatus.PENDING
    assert view.shipping_address == ADDRESS
    assert view.total_amount == Decimal("247900")
    assert [item.product_name for item in view.items] == ["Dell XPS 15 (2021)", "Refurbished LG OLED C1"]
    assert view.items[0].price_at_purchase == Decimal("95900")
    assert view.items[0].product_image_url == "/images/products/1.jpg"


@pytest.mark.asyncio
async def test_reading_twice_gives_same_view(uow, add_product):
    await add_product(7, stock=5)
    order_id = await insert_order(uow, [OrderLine(product_id=7, quantity=2, price_at_purchase=Decimal("500"))])

    assert await read_view(uow, order_id) == await read_view(uow, order_id)


@pytest.mark.asyncio
async def test_unknown_order_is_none(uow):
    assert await read_view(uow, 42) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("stored", ["{not json", "[1, 2]", ""])
async def test_corrupt_address_degrades_to_empty(uow, engine, add_product, caplog, stored):
    await add_product(7, stock=5)
    order_id = await insert_order(uow, [OrderLine(product_id=7, quantity=1, price_at_purchase=Decimal("500"))])
    async with engine.begin() as conn:
        await conn.execute(update(orders_tbl).where(orders_tbl.c.id == order_id).values(shipping_address=stored))

    with caplog.at_level(logging.WARNING):
        view = await read_view(uow, order_id)

    assert view.shipping_address == {}
    assert len(view.items) == 1
    if stored:
        assert f"order {order_id}" in caplog.text


@pytest.mark.asyncio
async def test_product_in_an_order_cannot_be_deleted(uow, engine, add_product):
    await add_product(7, stock=5)
    await insert_order(uow, [OrderLine(product_id=7, quantity=1, price_at_purchase=Decimal("500"))])

    with pytest.raises(IntegrityError):
        async with engine.begin() as conn:
            await conn.execute(delete(products_tbl).where(products_tbl.c.id == 7))


@pytest.mark.asyncio
async def test_deleting_order_removes_its_lines(uow, engine, add_product):
    await add_product(7, stock=5)
    order_id = await insert_order(uow, [OrderLine(product_id=7, quantity=1, price_at_purchase=Decimal("500"))])

    async with engine.begin() as conn:
        await conn.execute(delete(orders_tbl).where(orders_tbl.c.id == order_id))
        remaining = (await conn.execute(
            select(order_items_tbl.c.id).where(order_items_tbl.c.order_id == order_id)
        )).fetchall()

    assert remaining == []


@pytest.mark.asyncio
async def test_conditional_decrement(uow, add_product, stock_of):
    await add_product(7, stock=2)

    async with uow() as tx:
        assert await tx.products.decrement_if_available(7, 3) is False
        assert await tx.products.decrement_if_available(7, 2) is True
        assert await tx.products.decrement_if_available(7, 1) is False
        assert await tx.products.get_stock(7) == 0
        assert await tx.products.get_stock(999) is None
        await tx.commit()

    assert await stock_of(7) == 0


@pytest.mark.asyncio
async def test_uncommitted_work_is_discarded(uow, add_product, stock_of):
    await add_product(7, stock=2)

    async with uow() as tx:
        assert await tx.products.decrement_if_available(7, 2) is True

    assert await stock_of(7) == 2
