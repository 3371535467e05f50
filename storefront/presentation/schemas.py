from pydantic import BaseModel, PlainSerializer
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from storefront.domain.models import OrderStatus, OrderView

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price_at_purchase: Money
    product_name: Optional[str] = None
    product_image_url: Optional[str] = None


class OrderResponse(BaseModel):
    id: int
    customer_name: str
    email: str
    shipping_address: dict
    total_amount: Money
    status: OrderStatus
    user_id: Optional[int] = None
    created_at: datetime
    items: list[OrderItemResponse]

    @classmethod
    def from_domain(cls, view: OrderView):
        return cls(
            id=view.id,
            customer_name=view.customer_name,
            email=view.email,
            shipping_address=view.shipping_address,
            total_amount=view.total_amount,
            status=view.status,
            user_id=view.user_id,
            created_at=view.created_at,
            items=[OrderItemResponse(**item.model_dump()) for item in view.items]
        )


class ErrorResponse(BaseModel):
    detail: str
    field: Optional[str] = None
    product_id: Optional[int] = None
    available: Optional[int] = None
    requested: Optional[int] = None
    retryable: Optional[bool] = None
