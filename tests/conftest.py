"""
Pytest configuration and fixtures.
Provides an in-memory database, a test HTTP client and record builders.
"""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from autobilling.main import app
from autobilling.db.base import Base
from autobilling.db import session as db_session
from autobilling.core.rate_limit import limiter
from autobilling.models import (
    Stakeholder,
    StakeholderService,
    StakeholderServiceLineItem,
)


# Test database URL (in-memory SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_session_maker(monkeypatch):
    """
    Create an in-memory database and point the application's session module at it.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    test_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    monkeypatch.setattr(db_session, "engine", test_engine)
    monkeypatch.setattr(db_session, "async_session_maker", test_session_maker)

    yield test_session_maker

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def test_client(test_session_maker):
    """
    Create a test HTTP client bound to the test database.
    """
    limiter.reset()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def create_service(test_session_maker):
    """
    Build a stakeholder and an incoming monthly service with line items.

    Returns an async function accepting column overrides plus
    ``line_items`` (list of (description, quantity, unit_price)) and
    ``stakeholder_name``.
    """
    async def _create(
        line_items=(("Office cleaning", Decimal("1"), Decimal("1000.00")),),
        stakeholder_name="Acme Facilities",
        **overrides,
    ) -> int:
        values = {
            "company_id": 1,
            "service_name": "Monthly cleaning",
            "currency": "USD",
            "tax_rate": Decimal("10"),
            "start_date": date(2024, 1, 1),
            "billing_cycle_type": "monthly",
            "billing_day_of_month": 1,
            "next_billing_date": date(2024, 2, 1),
        }
        values.update(overrides)

        async with test_session_maker() as session:
            stakeholder = Stakeholder(
                company_id=values["company_id"],
                name=stakeholder_name,
                address="12 Harbour Road",
                contact_persons=[{"name": "Dana", "email": "dana@acme.test"}],
            )
            session.add(stakeholder)
            await session.flush()

            service = StakeholderService(stakeholder_id=stakeholder.id, **values)
            service.line_items = [
                StakeholderServiceLineItem(
                    item_order=index,
                    description=description,
                    quantity=quantity,
                    unit_price=unit_price,
                    amount=quantity * unit_price,
                )
                for index, (description, quantity, unit_price) in enumerate(line_items)
            ]
            session.add(service)
            await session.commit()
            return service.id

    return _create
