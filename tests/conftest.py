"""
Test Suite Configuration
"""
import pytest
from datetime import datetime
from typing import AsyncGenerator

import polars as pl
from httpx import ASGITransport, AsyncClient

from footfall.config.settings import FootfallSettings, RedisSettings, Settings
from footfall.database.connection import close_database, create_schema, init_database
from footfall.main import create_app
from footfall.services.footfall_service import FootfallService
from footfall.store.memory_store import InMemoryFootfallStore
from footfall.store.sql_store import SqlFootfallStore

from tests.factories import BASE_TIME, FixedClock


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def footfall_settings() -> FootfallSettings:
    """Footfall parameters with documented defaults"""
    return FootfallSettings(store_backend="memory")


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
        redis=RedisSettings(enabled=False),
        footfall=FootfallSettings(store_backend="memory"),
    )


@pytest.fixture
def memory_store() -> InMemoryFootfallStore:
    return InMemoryFootfallStore()


@pytest.fixture
async def test_engine(tmp_path, test_settings):
    """File-backed SQLite engine; concurrent sessions need a shared file"""
    engine = await init_database(
        test_settings.database,
        url=f"sqlite+aiosqlite:///{tmp_path / 'footfall.db'}",
    )
    await create_schema(engine)

    yield engine

    await close_database(engine)


@pytest.fixture
def sql_store(test_engine) -> SqlFootfallStore:
    return SqlFootfallStore(test_engine)


@pytest.fixture
def service(memory_store, footfall_settings, clock) -> FootfallService:
    return FootfallService(memory_store, footfall_settings, clock=clock)


@pytest.fixture
async def api_client(test_settings, service) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the ASGI app with an injected in-memory service"""
    app = create_app(test_settings, service=service)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_telecom_df() -> pl.DataFrame:
    """Flat telecom frame in the batch file layout"""
    return pl.DataFrame({
        "window_start": ["2024-05-01T10:00:00", "2024-05-01T11:00:00", "2024-05-01T10:00:00"],
        "window_end": ["2024-05-01T11:00:00", "2024-05-01T12:00:00", "2024-05-01T11:00:00"],
        "window_minutes": [60, 60, 60],
        "state": ["Rajasthan", "Rajasthan", "Rajasthan"],
        "district": ["Jaipur", "Jaipur", "Udaipur"],
        "city": ["Jaipur", "Jaipur", "Udaipur"],
        "tourist_place": ["Amber Fort", "Amber Fort", "Lake Pichola"],
        "location_id": ["LOC-1", "LOC-1", "LOC-2"],
        "total_devices": [12000, 14000, 5000],
        "domestic_devices": [10000, 12000, 4000],
        "international_devices": [2000, 2000, 1000],
        "international_breakdown": ['{"US": 1200, "UK": 800}', '{"US": 2000}', "{}"],
        "network_distribution": ['{"Jio": 6000, "Airtel": 4000}', "{}", '{"Vi": 4000}'],
        "confidence_score": [0.9, 0.85, 0.4],
        "data_source": ["TELCO", "TELCO", "SIMULATED"],
    })
