import logging
from typing import Union

from sqlalchemy.exc import SQLAlchemyError

from storefront.domain.errors import InfrastructureError, NotFoundError
from storefront.domain.models import OrderView


logger = logging.getLogger(__name__)


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: int) -> Union[OrderView, NotFoundError, InfrastructureError]:
        try:
            async with self._uow() as uow:
                view = await uow.orders.get_view(order_id)
        except SQLAlchemyError as e:
            logger.exception(f"Error fetching order {order_id}: {e}")
            return InfrastructureError("Error fetching order", retryable=True)

        if not view:
            return NotFoundError.order(order_id)
        return view
