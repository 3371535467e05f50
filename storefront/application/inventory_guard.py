import logging
from collections import Counter
from typing import Iterable, Union

from storefront.application.interfaces import ProductRepository
from storefront.domain.errors import InsufficientStockError, NotFoundError, ReservationError
from storefront.domain.models import MAX_DB_INT, Reservation


logger = logging.getLogger(__name__)


class InventoryGuard:
    """Checks and takes stock for a cart inside the caller's transaction.

    Never commits or rolls back: on failure the caller must discard the
    transaction, which also undoes the decrements already applied for
    earlier products of the same cart.
    """

    async def reserve(
        self,
        products: ProductRepository,
        demands: Iterable[tuple[int, int]],
    ) -> Union[Reservation, ReservationError]:
        # Two lines of the same product are one demand.
        totals = Counter()
        for product_id, quantity in demands:
            totals[product_id] += quantity

        # Ascending ids keep row locks in the same order across concurrent checkouts.
        for product_id in sorted(totals):
            requested = totals[product_id]
            # A summed demand past the column range can never be in stock
            if requested <= MAX_DB_INT and await products.decrement_if_available(product_id, requested):
                continue

            available = await products.get_stock(product_id)
            if available is None:
                logger.warning(f"Reservation failed: product {product_id} not found")
                return NotFoundError.product(product_id)
            logger.warning(
                f"Reservation failed: product {product_id} has {available}, requested {requested}"
            )
            return InsufficientStockError(product_id=product_id, available=available, requested=requested)

        return Reservation(quantities=dict(totals))
