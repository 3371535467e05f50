"""Checkout failures, returned as values rather than raised.

Every use case returns ``Result | CheckoutError``; callers are expected to
``match`` on the concrete type.
"""
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class ValidationError:
    """Malformed or inconsistent input. Not retried."""
    field: str
    message: str
    status_code: int = field(default=400, init=False)

    def to_payload(self) -> dict:
        return {"detail": self.message, "field": self.field}


@dataclass(frozen=True, slots=True)
class NotFoundError:
    message: str
    product_id: Optional[int] = None
    order_id: Optional[int] = None
    status_code: int = field(default=404, init=False)

    @classmethod
    def product(cls, product_id: int) -> "NotFoundError":
        return cls(f"Product with ID {product_id} not found", product_id=product_id)

    @classmethod
    def order(cls, order_id: int) -> "NotFoundError":
        return cls(f"Order {order_id} not found", order_id=order_id)

    def to_payload(self) -> dict:
        payload = {"detail": self.message}
        if self.product_id is not None:
            payload["product_id"] = self.product_id
        return payload


@dataclass(frozen=True, slots=True)
class InsufficientStockError:
    """Demand exceeds stock. The client may retry with a smaller quantity."""
    product_id: int
    available: int
    requested: int
    status_code: int = field(default=409, init=False)

    @property
    def message(self) -> str:
        return (
            f"Not enough stock for product ID {self.product_id}. "
            f"Available: {self.available}, Requested: {self.requested}"
        )

    def to_payload(self) -> dict:
        return {
            "detail": self.message,
            "product_id": self.product_id,
            "available": self.available,
            "requested": self.requested,
        }


@dataclass(frozen=True, slots=True)
class InfrastructureError:
    """Storage failure. A failed attempt leaves nothing behind, so the whole checkout can be retried."""
    message: str
    retryable: bool = False
    status_code: int = field(default=500, init=False)

    def to_payload(self) -> dict:
        return {"detail": self.message, "retryable": self.retryable}


ReservationError = Union[NotFoundError, InsufficientStockError]
CheckoutError = Union[ValidationError, NotFoundError, InsufficientStockError, InfrastructureError]
