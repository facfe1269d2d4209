"""Shared fixtures: a fresh in-memory SQLite database per test."""
from datetime import datetime
from decimal import Decimal

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from db.connection import configure_sqlite
from db.models import Base, Call
from db.repositories import products as products_repo
from db.repositories import users as users_repo

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db


@pytest_asyncio.fixture
async def agents(session):
    """Two active agents and one inactive one, in username order."""
    alice = await users_repo.create(session, username="alice", password_hash="x.y")
    bob = await users_repo.create(session, username="bob", password_hash="x.y")
    await users_repo.create(session, username="carol", password_hash="x.y", is_active=False)
    return [alice, bob]


@pytest_asyncio.fixture
async def products(session):
    basic = await products_repo.create(
        session, {"sku": "SKU-1", "name": "Single pack", "price": Decimal("100.00")}
    )
    bundle = await products_repo.create(
        session, {"sku": "SKU-3", "name": "Triple pack", "price": Decimal("250.00"), "units": 3}
    )
    return [basic, bundle]


def make_call_data(**overrides) -> dict:
    data = {
        "date": datetime.now().replace(hour=9, minute=0, second=0, microsecond=0),
        "customer_name": "Maria Santos",
        "phone": "09170000001",
        "order_sku": "SKU-1",
        "quantity": 1,
        "current_price": Decimal("100.00"),
    }
    data.update(overrides)
    return data


def make_call(**overrides) -> Call:
    """A transient Call built directly, for pure ledger/state tests."""
    data = make_call_data(**overrides)
    data.setdefault("status", "new")
    data.setdefault("is_upsell", False)
    data.setdefault("order_confirmed", False)
    return Call(**data)
