"""Integration test configuration.

Integration tests talk to the PostgreSQL database named by
``DATABASE__URL``. The schema is created if missing; the tests are skipped
when the database cannot be reached.
"""

import pytest
import pytest_asyncio
from sqlalchemy.exc import DBAPIError

from snapcal.config import Settings
from snapcal.persistence.database import create_engine
from snapcal.persistence.tables import metadata


@pytest_asyncio.fixture(autouse=True)
async def database_schema():
    """Ensure the tables exist, or skip when PostgreSQL is unavailable."""
    engine = create_engine(Settings())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
    except (OSError, DBAPIError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    yield

    await engine.dispose()
