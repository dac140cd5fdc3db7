"""Test fixtures for the cabin booking backend."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from cabin_booking.core.config import get_settings
from cabin_booking.db.base import Base
from cabin_booking.db.session import dispose_engine, get_sessionmaker
from cabin_booking.main import app
from cabin_booking.models import Cabin


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


async def seed_cabin(
    db_url: str,
    *,
    capacity: int = 4,
    base_price_irr: Decimal = Decimal("1000000"),
    base_price_usd: Decimal = Decimal("20.00"),
    is_available: bool = True,
) -> int:
    """Insert a cabin in its own committed transaction and return its id."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        cabin = Cabin(
            name_fa="کلبه جنگلی",
            name_en="Forest Cabin",
            slug=f"forest-{uuid.uuid4().hex[:8]}",
            capacity=capacity,
            base_price_irr=base_price_irr,
            base_price_usd=base_price_usd,
            is_available=is_available,
        )
        session.add(cabin)
        await session.commit()
        return cabin.id


@pytest.fixture()
def make_cabin(reset_database: None, db_url: str):
    """Factory inserting additional cabins."""

    async def _make(**kwargs) -> int:
        return await seed_cabin(db_url, **kwargs)

    return _make


@pytest_asyncio.fixture()
async def cabin_id(reset_database: None, db_url: str) -> int:
    """A bookable cabin sleeping four at 1,000,000 IRR / 20 USD a night."""
    return await seed_cabin(db_url)


@pytest_asyncio.fixture()
async def app_context(
    reset_database: None, db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client and a seeded cabin."""
    context: dict[str, object] = {"cabin_id": await seed_cabin(db_url)}

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
