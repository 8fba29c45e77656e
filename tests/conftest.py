import json
import os
import time
from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Keep tests off a real redis unless a test turns caching on itself
os.environ.setdefault("CACHE_ENABLED", "false")

from dynamic_pricing import app
from dynamic_pricing.db.main import get_session
from dynamic_pricing.db.models import (
    PricingRule,
    QuantityRange,
    RuleExclusion,
    RuleItem,
)


@pytest.fixture
def now():
    """Fixed reference time (a Monday) for schedule-sensitive tests."""
    return datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture
def local_timezone():
    """Switch the process's local time zone for the length of a test."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    original = os.environ.get("TZ")

    def _set(name):
        os.environ["TZ"] = name
        time.tzset()

    yield _set

    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()


@pytest_asyncio.fixture
async def engine():
    """In-memory database shared across sessions for one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Create database session for testing."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def client(session):
    """HTTP client bound to the app, sharing the test session."""
    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_rule(session):
    """Factory that stores a price rule together with its child rows."""
    async def _make_rule(quantity_ranges=(), items=(), exclusions=(), conditions=None, **fields):
        fields.setdefault("name", "Test rule")
        fields.setdefault("discount_type", "percentage")
        fields.setdefault("discount_value", 0)
        if conditions is not None:
            fields["conditions"] = conditions if isinstance(conditions, str) else json.dumps(conditions)

        rule = PricingRule(**fields)
        session.add(rule)
        await session.commit()

        for tier in quantity_ranges:
            session.add(QuantityRange(rule_id=rule.id, **tier))
        for item_type, item_id in items:
            session.add(RuleItem(rule_id=rule.id, item_type=item_type, item_id=item_id))
        for exclusion_type, exclusion_id in exclusions:
            session.add(RuleExclusion(rule_id=rule.id, exclusion_type=exclusion_type, exclusion_id=exclusion_id))
        await session.commit()

        return rule

    return _make_rule
