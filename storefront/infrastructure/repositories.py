import json
import logging
from typing import Optional
from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.models import Order, OrderLine, OrderLineView, OrderStatus, OrderView
from storefront.infrastructure.db_schema import order_items_tbl, orders_tbl, products_tbl
from storefront.application.interfaces import OrderRepository, ProductRepository


logger = logging.getLogger(__name__)


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def decrement_if_available(self, product_id: int, quantity: int) -> bool:
        # Check and write in one statement: the row lock makes concurrent checkouts queue here
        stmt = (
            update(products_tbl)
            .where(
                products_tbl.c.id == product_id,
                products_tbl.c.stock_quantity >= quantity
            )
            .values(stock_quantity=products_tbl.c.stock_quantity - quantity)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def get_stock(self, product_id: int) -> Optional[int]:
        result = await self._session.execute(
            select(products_tbl.c.stock_quantity).where(products_tbl.c.id == product_id)
        )
        return result.scalar_one_or_none()


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def insert(self, order: Order, lines: list[OrderLine]) -> int:
        result = await self._session.execute(
            insert(orders_tbl).values(
                customer_name=order.customer_name,
                customer_email=order.email,
                shipping_address=json.dumps(order.shipping_address),
                total_amount=order.total_amount,
                status=order.status,
                user_id=order.user_id,
                created_at=order.created_at
            )
        )
        order_id = result.inserted_primary_key[0]

        await self._session.execute(
            insert(order_items_tbl),
            [
                {
                    "order_id": order_id,
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "price_at_purchase": line.price_at_purchase,
                }
                for line in lines
            ]
        )
        return order_id

    async def get_view(self, order_id: int) -> Optional[OrderView]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        if not row:
            return None

        result = await self._session.execute(
            select(
                order_items_tbl,
                products_tbl.c.name.label("product_name"),
                products_tbl.c.image_url.label("product_image_url")
            )
            .join(products_tbl, order_items_tbl.c.product_id == products_tbl.c.id)
            .where(order_items_tbl.c.order_id == order_id)
            .order_by(order_items_tbl.c.id.asc())
        )
        items = [
            OrderLineView(
                id=line.id,
                order_id=line.order_id,
                product_id=line.product_id,
                quantity=line.quantity,
                price_at_purchase=line.price_at_purchase,
                product_name=line.product_name,
                product_image_url=line.product_image_url
            )
            for line in result.fetchall()
        ]
        return self._to_view(row, items)

    def _to_view(self, row, items: list[OrderLineView]) -> OrderView:
        """DB → Domain"""
        return OrderView(
            id=row.id,
            customer_name=row.customer_name,
            email=row.customer_email,
            shipping_address=self._parse_address(row.id, row.shipping_address),
            total_amount=row.total_amount,
            status=OrderStatus(row.status),
            user_id=row.user_id,
            created_at=row.created_at,
            items=items
        )

    @staticmethod
    def _parse_address(order_id: int, raw: Optional[str]) -> dict:
        try:
            address = json.loads(raw or "{}")
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to parse shipping_address for order {order_id}: {e}")
            return {}
        if not isinstance(address, dict):
            logger.warning(f"shipping_address for order {order_id} is not an object")
            return {}
        return address
