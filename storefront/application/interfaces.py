from abc import ABC, abstractmethod
from typing import Optional
from storefront.domain.models import Order, OrderLine, OrderView


class ProductRepository(ABC):
    @abstractmethod
    async def decrement_if_available(self, product_id: int, quantity: int) -> bool:
        """Take `quantity` units in one conditional write. False if the row did not qualify."""

    @abstractmethod
    async def get_stock(self, product_id: int) -> Optional[int]:
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def get_view(self, order_id: int) -> Optional[OrderView]:
        pass

    @abstractmethod
    async def insert(self, order: Order, lines: list[OrderLine]) -> int:
        pass

