"""Shared fixtures: an in-memory SQLite database with the demo schema."""

import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.database import Base, enable_sqlite_foreign_keys
from src.entities import Category, Customer, Order, OrderLine, Product, Shipment


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool, echo=False)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def shop(session_factory):
    """Two customers, three orders, four lines, two shipments, a category tree."""
    async with session_factory() as db:
        db.add_all([
            Category(id=1, name="Hardware"),
            Category(id=2, name="Laptops", parent_id=1),
        ])
        await db.flush()
        db.add_all([
            Product(id=1, sku="LAP-13", name="13in Laptop", unit_price=1099.0, category_id=2),
            Product(id=2, sku="LAP-15", name="15in Laptop", unit_price=1499.0, category_id=2),
            Customer(id=1, name="Acme", email="ops@acme.example"),
            Customer(id=2, name="Globex", email="ops@globex.example"),
        ])
        await db.flush()
        db.add_all([
            Order(id=1, customer_id=1, status="shipped"),
            Order(id=2, customer_id=1, status="open"),
            Order(id=3, customer_id=2, status="closed"),
        ])
        await db.flush()
        db.add_all([
            OrderLine(id=1, order_id=1, product_id=1, quantity=1),
            OrderLine(id=2, order_id=1, product_id=2, quantity=2),
            OrderLine(id=3, order_id=2, product_id=1, quantity=1),
            OrderLine(id=4, order_id=3, product_id=2, quantity=3),
            Shipment(id=1, order_id=1, carrier="dhl"),
            Shipment(id=2, order_id=3, carrier="ups"),
        ])
        await db.commit()


async def count_rows(session_factory, model) -> int:
    async with session_factory() as db:
        result = await db.execute(select(func.count()).select_from(model))
        return int(result.scalar() or 0)


async def table_counts(session_factory) -> dict[str, int]:
    models = [Customer, Category, Product, Order, OrderLine, Shipment]
    return {m.__tablename__: await count_rows(session_factory, m) for m in models}
