"""
Общие фикстуры: БД SQLite в памяти на каждый тест, сессия, HTTP-клиент
поверх приложения и базовые данные (секция, стол, две позиции меню).
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from restaurant_pos import models
from restaurant_pos.db.base import Base
from restaurant_pos.db.deps import get_async_session, get_session_factory
from restaurant_pos.main import app


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def section(db):
    section = models.TableSection(name="Main hall", order_index=0)
    db.add(section)
    await db.commit()
    return section


@pytest_asyncio.fixture
async def table(db, section):
    """Стол T1 на 4 места."""
    table = models.DiningTable(name="T1", capacity=4, section_id=section.id)
    db.add(table)
    await db.commit()
    return table


@pytest_asyncio.fixture
async def menu_items(db):
    """Позиции A (7.99) и B (5.99)."""
    item_a = models.MenuItem(name="A", price=Decimal("7.99"), is_available=True)
    item_b = models.MenuItem(name="B", price=Decimal("5.99"), is_available=True)
    db.add_all([item_a, item_b])
    await db.commit()
    return item_a, item_b


@pytest_asyncio.fixture
async def waiter(db):
    user = models.User(username="anna", role=models.RoleEnum.waiter)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def flour(db):
    item = models.InventoryItem(
        name="Flour", quantity=Decimal("10"), unit="kg", threshold=Decimal("2"), cost=Decimal("1.20")
    )
    db.add(item)
    await db.commit()
    return item
