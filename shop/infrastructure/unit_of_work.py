from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shop.domain.exceptions import TransactionFailureError
from shop.infrastructure.repositories import (
    SQLAlchemyAddressRepository,
    SQLAlchemyCartRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemyCustomerRepository,
    SQLAlchemyOrderRepository,
    SQLAlchemyPaymentRepository,
    SQLAlchemyProductRepository
)


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                uow_impl = _UnitOfWorkImpl(session)
                yield uow_impl
                # No commit, rollback
                await session.rollback()
            except SQLAlchemyError as e:
                await session.rollback()
                raise TransactionFailureError(f"Transaction failed: {e}") from e
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImpl:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.categories = SQLAlchemyCategoryRepository(session)
        self.products = SQLAlchemyProductRepository(session)
        self.customers = SQLAlchemyCustomerRepository(session)
        self.addresses = SQLAlchemyAddressRepository(session)
        self.orders = SQLAlchemyOrderRepository(session)
        self.payments = SQLAlchemyPaymentRepository(session)
        self.carts = SQLAlchemyCartRepository(session)

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
