"""Pytest fixtures for shop tests."""

import os

# Must be set before shop.config is imported
os.environ["POSTGRES_CONNECTION_STRING"] = "sqlite+aiosqlite:///:memory:"
os.environ["EXPIRATION_WORKER_ENABLED"] = "false"

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shop.database import get_session_factory
from shop.infrastructure.db_schema import metadata
from shop.infrastructure.unit_of_work import UnitOfWork
from shop.main import app


@pytest.fixture
async def session_factory(tmp_path):
    """Fresh SQLite database file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def uow(session_factory):
    return UnitOfWork(session_factory)


@pytest.fixture
async def client(session_factory):
    """HTTP client bound to the test database."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def customer(uow):
    async with uow() as tx:
        created = await tx.customers.create("Maria Souza", "maria@example.com", "11999990000")
        await tx.commit()
    return created


@pytest.fixture
async def address(uow, customer):
    async with uow() as tx:
        created = await tx.addresses.create({
            "customer_id": customer.id,
            "street": "Rua das Flores",
            "number": "100",
            "complement": None,
            "neighborhood": "Centro",
            "city": "São Paulo",
            "state": "SP",
            "zip_code": "01001-000",
            "main": True,
        })
        await tx.commit()
    return created


@pytest.fixture
async def category(uow):
    async with uow() as tx:
        created = await tx.categories.create("Eletrônicos", None)
        await tx.commit()
    return created


@pytest.fixture
def make_product(uow, category):
    """Factory: await make_product(stock=10, price="25.50")."""

    async def _make(stock=10, price="10.00", active=True, name="Produto"):
        async with uow() as tx:
            created = await tx.products.create({
                "name": name,
                "description": None,
                "price": Decimal(price),
                "stock": stock,
                "reserved": 0,
                "image": "placeholder.png",
                "active": active,
                "category_id": category.id,
            })
            await tx.commit()
        return created

    return _make


@pytest.fixture
def read_product(uow):
    """Current state of a product, read in its own transaction."""

    async def _read(product_id):
        async with uow() as tx:
            return await tx.products.get_by_id(product_id)

    return _read


@pytest.fixture
def read_order(uow):
    async def _read(order_id):
        async with uow() as tx:
            return await tx.orders.get_by_id(order_id)

    return _read


@pytest.fixture
def count_rows(session_factory):
    async def _count(table):
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(table))
            return result.scalar_one()

    return _count
