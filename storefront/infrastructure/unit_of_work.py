from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.infrastructure.repositories import (
    SQLAlchemyOrderRepository,
    SQLAlchemyProductRepository
)


class UnitOfWork:
    """One session, one transaction. Anything not committed when the block exits is rolled back."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            uow_impl = _UnitOfWorkImpl(session)
            try:
                yield uow_impl
            finally:
                # No-op after commit; also runs on errors and cancellation
                await session.rollback()


class _UnitOfWorkImpl:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.products = SQLAlchemyProductRepository(session)
        self.orders = SQLAlchemyOrderRepository(session)

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
