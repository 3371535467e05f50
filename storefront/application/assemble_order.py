import logging
from decimal import Decimal
from typing import Annotated, Any, Optional, Union
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError

from storefront.domain.errors import ValidationError
from storefront.domain.models import (
    MAX_DB_INT, MONEY_DIGITS, MONEY_PLACES, CartLine, OrderDraft, ShippingAddress
)


logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^\S+@\S+\.\S+$"


def _json_number(value: Any) -> Decimal:
    # bool is an int subclass; numeric strings are not numbers either
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValueError("must be a number")
    return value if isinstance(value, Decimal) else Decimal(str(value))


NonBlank = Annotated[StrictStr, Field(min_length=1)]
NonNegativeAmount = Annotated[
    Decimal,
    Field(ge=0, allow_inf_nan=False, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES),
    BeforeValidator(_json_number),
]
PositiveId = Annotated[StrictInt, Field(gt=0, le=MAX_DB_INT)]


class _ShippingAddressPayload(BaseModel):
    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    address: NonBlank
    city: NonBlank
    postal_code: NonBlank
    country: NonBlank


class _CartLinePayload(BaseModel):
    product_id: PositiveId
    quantity: PositiveId
    price_at_purchase: NonNegativeAmount


class _CheckoutPayload(BaseModel):
    """Shape of an untrusted POST /orders body. Field order is the order defects are reported in."""
    model_config = ConfigDict(str_strip_whitespace=True)

    customer_name: NonBlank
    email: Annotated[StrictStr, Field(pattern=EMAIL_PATTERN)]
    shipping_address: _ShippingAddressPayload
    items: Annotated[list[_CartLinePayload], Field(min_length=1)]
    total_amount: NonNegativeAmount
    user_id: Optional[PositiveId] = None


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


class OrderAssembler:
    """Turns a raw checkout payload into an OrderDraft. No I/O."""

    def assemble(self, raw_payload: Any) -> Union[OrderDraft, ValidationError]:
        if not isinstance(raw_payload, dict):
            return ValidationError("body", "Request body must be a JSON object")

        try:
            payload = _CheckoutPayload.model_validate(raw_payload)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = _field_name(first["loc"])
            logger.info(f"Checkout payload rejected at {field}: {first['msg']}")
            return ValidationError(field, f"{field}: {first['msg']}")

        return OrderDraft(
            customer_name=payload.customer_name,
            email=payload.email,
            shipping_address=ShippingAddress(**payload.shipping_address.model_dump()),
            items=tuple(
                CartLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    price_at_purchase=item.price_at_purchase,
                )
                for item in payload.items
            ),
            total_amount=payload.total_amount,
            user_id=payload.user_id,
        )
