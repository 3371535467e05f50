import copy
from decimal import Decimal

import pytest
from sqlalchemy import func, insert, select

from storefront.application.inventory_guard import InventoryGuard
from storefront.application.place_order import TransactionCoordinator
from storefront.config import Settings
from storefront.database import create_engine, create_session_factory
from storefront.infrastructure.db_schema import order_items_tbl, orders_tbl, products_tbl
from storefront.infrastructure.seed import create_schema
from storefront.infrastructure.unit_of_work import UnitOfWork


VALID_PAYLOAD = {
    "customer_name": "Asha Rao",
    "email": "asha@example.com",
    "shipping_address": {
        "address": "12 MG Road",
        "city": "Bengaluru",
        "postal_code": "560001",
        "country": "India",
    },
    "items": [{"product_id": 7, "quantity": 2, "price_at_purchase": 500}],
    "total_amount": 1000,
}


@pytest.fixture
def payload():
    """A fresh copy of a valid checkout body for product 7"""
    return copy.deepcopy(VALID_PAYLOAD)


@pytest.fixture
def test_settings(tmp_path):
    settings = Settings()
    settings.DATABASE_CONNECTION_STRING = f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}"
    settings.CHECKOUT_TIMEOUT_SECONDS = 5
    return settings


@pytest.fixture
async def engine(test_settings):
    engine = create_engine(test_settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def uow(session_factory):
    return UnitOfWork(session_factory)


@pytest.fixture
def coordinator(uow):
    return TransactionCoordinator(uow, InventoryGuard(), timeout_seconds=5)


@pytest.fixture
def add_product(engine):
    async def _add(product_id: int, stock: int, price: str = "500", name: str = None):
        async with engine.begin() as conn:
            await conn.execute(
                insert(products_tbl).values(
                    id=product_id,
                    name=name or f"Product {product_id}",
                    price=Decimal(price),
                    condition="Good",
                    stock_quantity=stock,
                    image_url=f"/images/products/{product_id}.jpg",
                )
            )
    return _add


@pytest.fixture
def stock_of(engine):
    async def _stock(product_id: int) -> int:
        async with engine.connect() as conn:
            result = await conn.execute(
                select(products_tbl.c.stock_quantity).where(products_tbl.c.id == product_id)
            )
            return result.scalar_one()
    return _stock


@pytest.fixture
def row_counts(engine):
    """(orders, order_items) currently in the database"""
    async def _counts() -> tuple[int, int]:
        async with engine.connect() as conn:
            orders = (await conn.execute(select(func.count()).select_from(orders_tbl))).scalar_one()
            items = (await conn.execute(select(func.count()).select_from(order_items_tbl))).scalar_one()
            return orders, items
    return _counts
