from sqlalchemy import (
    CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, MetaData, Numeric, String, Table, Text
)
from sqlalchemy.sql import func

from storefront.domain.models import MONEY_DIGITS, MONEY_PLACES, OrderStatus

metadata = MetaData()

MONEY = Numeric(MONEY_DIGITS, MONEY_PLACES)


categories_tbl = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False, unique=True)
)


products_tbl = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("description", Text, nullable=True),
    Column("price", MONEY, nullable=False),
    Column("condition", String, nullable=False, default="Good"),
    Column("stock_quantity", Integer, nullable=False, default=0),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
    Column("seller_id", Integer, nullable=True),
    Column("image_url", String, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    CheckConstraint("condition IN ('Excellent', 'Good', 'Fair')", name="ck_products_condition"),
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_name", String, nullable=False),
    Column("customer_email", String, nullable=False),
    # JSON document kept as text so a damaged value can still be read back
    Column("shipping_address", Text, nullable=False),
    Column("total_amount", MONEY, nullable=False),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=OrderStatus.PENDING,
    ),
    Column("user_id", Integer, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price_at_purchase", MONEY, nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    CheckConstraint("price_at_purchase >= 0", name="ck_order_items_price_non_negative"),
)
