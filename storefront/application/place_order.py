import asyncio
import logging
from datetime import datetime, timezone
from typing import Union

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from storefront.application.inventory_guard import InventoryGuard
from storefront.domain.errors import CheckoutError, InfrastructureError, ValidationError
from storefront.domain.models import Order, OrderDraft, OrderLine, OrderStatus, Reservation


logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """Owns the checkout transaction: reserve stock, write the order, commit, or undo all of it."""

    def __init__(self, unit_of_work, inventory_guard: InventoryGuard, timeout_seconds: float):
        self._uow = unit_of_work
        self._guard = inventory_guard
        self._timeout = timeout_seconds

    async def place_order(self, draft: OrderDraft) -> Union[Order, CheckoutError]:
        logger.info(f"Placing order: {len(draft.items)} line(s), total {draft.total_amount}")

        # 1. Totals must agree before anything is written
        line_total = draft.line_total()
        if draft.total_amount != line_total:
            logger.warning(f"Total mismatch: declared {draft.total_amount}, lines {line_total}")
            return ValidationError(
                "total_amount",
                f"Total amount {draft.total_amount} does not match the sum of the items {line_total}",
            )

        try:
            async with asyncio.timeout(self._timeout):
                return await self._place(draft)
        except TimeoutError:
            logger.error(f"Checkout exceeded {self._timeout}s, rolled back")
            return InfrastructureError("Checkout timed out", retryable=True)
        except PoolTimeoutError as e:
            logger.error(f"No database connection available: {e}")
            return InfrastructureError("Database is busy, try again", retryable=True)
        except (OperationalError, InterfaceError, DisconnectionError) as e:
            logger.exception(f"Database unavailable during checkout: {e}")
            return InfrastructureError("Database unavailable", retryable=True)
        except SQLAlchemyError as e:
            logger.exception(f"Checkout failed and was rolled back: {e}")
            return InfrastructureError("Error creating order")

    async def _place(self, draft: OrderDraft) -> Union[Order, CheckoutError]:
        async with self._uow() as uow:
            # 2. Reserve stock
            match await self._guard.reserve(uow.products, draft.demands()):
                case Reservation() as reservation:
                    logger.info(f"Reserved {reservation.quantities}")
                case error:
                    await uow.rollback()
                    return error

            # 3. Order header and lines, priced as submitted
            order = Order(
                customer_name=draft.customer_name,
                email=draft.email,
                shipping_address=draft.shipping_address.model_dump(),
                total_amount=draft.total_amount,
                status=OrderStatus.PENDING,
                user_id=draft.user_id,
                created_at=datetime.now(timezone.utc),
            )
            lines = [
                OrderLine(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    price_at_purchase=line.price_at_purchase,
                )
                for line in draft.items
            ]
            order_id = await uow.orders.insert(order, lines)

            # 4. Commit
            await uow.commit()

        logger.info(f"Order created: {order_id}")
        return order.model_copy(update={"id": order_id})
