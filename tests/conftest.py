import os
from datetime import datetime, timedelta
from decimal import Decimal

# The app builds its settings and engine on import, so give it something to read first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AZURE_OPENAI_ENDPOINT", "https://example.openai.azure.com")
os.environ.setdefault("AZURE_OPENAI_API_KEY", "test-key")
os.environ.setdefault("AZURE_OPENAI_DEPLOYMENT", "sql-test")

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from app.core import models
from app.core.config import settings
from app.core.database import Base
from app.core.seed import build_sample_orders
from app.nl2sql.service import build_pipeline


# Settings snapshot for tests (frozen, so copy instead of mutate)
@pytest.fixture
def test_settings():
    return settings.model_copy(
        update={"QUERY_TIMEOUT_SECONDS": 5.0, "MAX_REQUESTS_PER_CONNECTION": 100}
    )


# File backed SQLite store, seeded with the sample orders through the sync driver
@pytest.fixture
def store_path(tmp_path):
    path = tmp_path / "orders.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)

    # Anchor an hour back so the 7-day-old order is clearly outside a 7-day window
    anchor = datetime.now() - timedelta(hours=1)
    with Session(sync_engine) as session:
        session.add_all(build_sample_orders(now=anchor))
        session.add(
            models.Order(
                CustomerName="Walk-in Customer",
                OrderDate=anchor - timedelta(days=40),
                TotalAmount=Decimal("19.99"),
                Status="Pending",
                ShippingCity=None,
                ProductCategory=None,
            )
        )
        session.commit()
    sync_engine.dispose()
    return path


# Async engine over the seeded file; NullPool so every query opens its own connection
@pytest_asyncio.fixture(scope="function")
async def store_engine(store_path):
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{store_path}", poolclass=NullPool)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def make_pipeline(test_settings, store_path):
    """Pipeline against the seeded store with a fake generator."""

    def _make(generator, config=None, **overrides):
        config = config or test_settings
        db_engine = create_async_engine(
            f"sqlite+aiosqlite:///{store_path}", poolclass=NullPool
        )
        return build_pipeline(config, db_engine, generator=generator, **overrides)

    return _make


@pytest.fixture
def events():
    """Collects emitted session events in order."""
    return []


@pytest.fixture
def emit(events):
    async def _emit(event):
        events.append(event)

    return _emit
