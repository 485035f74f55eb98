"""Test configuration and fixtures."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from resort_engine.core.config import settings
from resort_engine.core.database import Base, get_db
from resort_engine.core.locks import ResourceLockRegistry
from resort_engine.models import *  # noqa: F403 - Import all models
from resort_engine.repositories.memory import InMemoryAllocationRepository, InMemoryRateRepository
from resort_engine.services.allocation_service import AllocationService
from resort_engine.services.availability_service import AvailabilityPricingFacade
from resort_engine.services.interval_conflicts import IntervalConflictDetector
from resort_engine.services.modifier_engine import ModifierEngine
from resort_engine.services.rate_resolver import RateResolver
from resort_engine.services.rate_service import RateService
from resort_engine.services.rule_catalog import RuleCatalog

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed "now" for services whose behaviour depends on the date
FROZEN_NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create a test FastAPI application."""
    from fastapi import FastAPI

    from resort_engine.core.middleware import setup_middleware
    from resort_engine.main import register_routes

    # Create a simplified test app without lifespan
    app = FastAPI(
        title="Resort Allocation & Pricing API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )
    app.state.resource_locks = ResourceLockRegistry()

    setup_middleware(app, enable_logging=True)
    register_routes(app)

    # Add inline health endpoint (like in main app)
    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "resort-engine",
            "version": "1.0.0",
            "environment": "test",
        }

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def make_token(*roles: str, sub: str = "user-1") -> str:
    """Sign a bearer token the way the identity provider would."""
    return jwt.encode({"sub": sub, "roles": list(roles)}, settings.bearer_token_secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Build Authorization headers for the given roles."""

    def _headers(*roles: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(*roles)}"}

    return _headers


@pytest.fixture
def admin_headers(auth_headers):
    return auth_headers("admin")


# In-memory engine wiring


@pytest.fixture
def allocation_repo():
    return InMemoryAllocationRepository()


@pytest.fixture
def rate_repo():
    return InMemoryRateRepository()


@pytest.fixture
def lock_registry():
    return ResourceLockRegistry()


@pytest.fixture
def catalog(rate_repo):
    return RuleCatalog(rate_repo)


@pytest.fixture
def facade(allocation_repo, catalog):
    return AvailabilityPricingFacade(
        detector=IntervalConflictDetector(allocation_repo, max_window_days=366),
        catalog=catalog,
        resolver=RateResolver(catalog),
        engine=ModifierEngine(),
        default_currency="USD",
    )


@pytest.fixture
def strict_facade(allocation_repo, catalog):
    return AvailabilityPricingFacade(
        detector=IntervalConflictDetector(allocation_repo),
        catalog=catalog,
        resolver=RateResolver(catalog),
        engine=ModifierEngine(),
        default_currency="USD",
        strict=True,
    )


@pytest.fixture
def allocation_service(allocation_repo, facade, lock_registry):
    return AllocationService(
        allocations=allocation_repo,
        facade=facade,
        locks=lock_registry,
        clock=lambda: FROZEN_NOW,
    )


@pytest.fixture
def rate_service(rate_repo):
    return RateService(rate_repo, supported_currencies=["USD", "EUR", "GBP"], default_currency="USD")


@pytest.fixture
def resource_id():
    return uuid4()


@pytest.fixture
def sample_rate_data():
    """Sample rate rule data for testing."""
    return {
        "name": "Chalet standard",
        "description": "Year-round nightly chalet rate",
        "rate_type": "standard",
        "base_price": Decimal("100.00"),
        "currency": "USD",
        "applicable_item_type": "chalet",
    }


@pytest.fixture
def sample_allocation_data(resource_id):
    """Sample allocation data for testing."""
    return {
        "resource_id": str(resource_id),
        "item_type": "chalet",
        "start": datetime(2025, 7, 10, 15, 0),
        "end": datetime(2025, 7, 13, 11, 0),
        "party_size": 4,
        "guest_name": "Dana Whitfield",
    }
