"""
Application context

Everything the services and workflows need from the outside world, built
once per application (or per test) and passed in explicitly.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from edgecms.config import Settings
from edgecms.database import create_engine_from_settings, create_session_factory
from edgecms.storage import ArtifactStore, build_artifact_store


@dataclass
class AppContext:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    artifact_store: ArtifactStore
    engine: AsyncEngine | None = None

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_context(settings: Settings) -> AppContext:
    engine = create_engine_from_settings(settings)
    return AppContext(
        settings=settings,
        session_factory=create_session_factory(engine),
        artifact_store=build_artifact_store(settings),
        engine=engine,
    )
