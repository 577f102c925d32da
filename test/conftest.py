"""
Pytest configuration and fixtures for EdgeCMS tests
"""

import os
import sys
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

import edgecms.models  # noqa: E402, F401  (registers tables on Base.metadata)
from edgecms.config import Settings  # noqa: E402
from edgecms.context import AppContext, build_context  # noqa: E402
from edgecms.database import Base  # noqa: E402
from edgecms.workflows.engine import WorkflowEngine  # noqa: E402
from main import create_app  # noqa: E402
from utils.mocks import RecordingSleep  # noqa: E402


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file and artifact directory.

    A file database (not ``:memory:``) is used so that every session the
    workflows open sees the same data.
    """
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'edgecms_test.db'}",
        artifact_backend="local",
        artifact_local_path=str(tmp_path / "artifacts"),
        trusted_origins="*",
        resume_workflows_on_startup=False,
    )


@pytest.fixture
async def context(test_settings: Settings) -> AsyncGenerator[AppContext, None]:
    """Application context with all tables created."""
    ctx = build_context(test_settings)
    async with ctx.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield ctx

    async with ctx.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await ctx.dispose()


@pytest.fixture
async def test_db(context: AppContext) -> AsyncGenerator[AsyncSession, None]:
    async with context.session_factory() as session:
        yield session


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def workflow_engine(context: AppContext, sleep: RecordingSleep) -> WorkflowEngine:
    """Engine without a scheduler: tests drive ``run_instance`` themselves."""
    return WorkflowEngine(context, sleep=sleep)


@pytest.fixture
def app(context: AppContext):
    application = create_app(context=context)
    application.state.workflow_engine = WorkflowEngine(context, sleep=RecordingSleep())
    return application


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
