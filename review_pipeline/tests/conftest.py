import sys
import os

import pytest
import pytest_asyncio

# Add project root to path so the review_pipeline package resolves without installation
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, project_root)

from dotenv import load_dotenv

# Load test environment variables from .env.test in the project root
dotenv_path = os.path.join(project_root, '.env.test')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path)

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from review_pipeline.core.rate_limiter import RateLimiter
from review_pipeline.models import Base
from review_pipeline.tests.helpers import InMemoryRedis, UpperCaseTranslator, create_review_row


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """SQLite database file per test, with every table created from the ORM metadata."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'review_pipeline_test.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the per-test database, configured like the application's."""
    return async_sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def rate_limiter(fake_redis) -> RateLimiter:
    return RateLimiter(fake_redis, timeout_seconds=1.0, enabled=True)


@pytest.fixture
def translator() -> UpperCaseTranslator:
    return UpperCaseTranslator()


@pytest_asyncio.fixture
async def published_review_id(session_factory) -> int:
    return await create_review_row(session_factory)
