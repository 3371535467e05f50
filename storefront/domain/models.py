from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


# Integer columns are 32-bit on PostgreSQL; money columns are NUMERIC(12, 2)
MAX_DB_INT = 2**31 - 1
MONEY_DIGITS = 12
MONEY_PLACES = 2


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class ShippingAddress(BaseModel):
    """Value Object: where the order goes. Unknown keys are kept as-is."""
    model_config = ConfigDict(extra="allow", frozen=True)

    address: str
    city: str
    postal_code: str
    country: str


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int
    price_at_purchase: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price_at_purchase * self.quantity


class OrderDraft(BaseModel):
    """Validated checkout attempt, not yet persisted"""
    model_config = ConfigDict(frozen=True)

    customer_name: str
    email: str
    shipping_address: ShippingAddress
    items: tuple[CartLine, ...]
    total_amount: Decimal
    user_id: Optional[int] = None

    def demands(self) -> list[tuple[int, int]]:
        return [(line.product_id, line.quantity) for line in self.items]

    def line_total(self) -> Decimal:
        return sum((line.line_total for line in self.items), Decimal("0"))


class Order(BaseModel):
    """Domain Entity: order header"""
    id: Optional[int] = None
    customer_name: str
    email: str
    shipping_address: dict
    total_amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    user_id: Optional[int] = None
    created_at: datetime

    def can_transition_to(self, status: OrderStatus) -> bool:
        """Business rule: fulfillment moves orders forward only, cancel before shipping"""
        return status in ALLOWED_TRANSITIONS[self.status]

    def can_be_cancelled(self) -> bool:
        return self.can_transition_to(OrderStatus.CANCELLED)


class OrderLine(BaseModel):
    id: Optional[int] = None
    order_id: Optional[int] = None
    product_id: int
    quantity: int
    price_at_purchase: Decimal


class OrderLineView(OrderLine):
    product_name: Optional[str] = None
    product_image_url: Optional[str] = None


class OrderView(Order):
    """Order header with its lines, joined to the products' current display data"""
    items: list[OrderLineView]


class Reservation(BaseModel):
    """Stock taken for one checkout: product_id -> total quantity"""
    quantities: dict[int, int]
