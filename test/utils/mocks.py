"""
Test doubles for workflow dependencies

Provides:
- RecordingSleep: replaces asyncio.sleep in the step runner and records delays
- FlakyArtifactStore: wraps a real store and fails selected operations
- seed_translations: populate languages and translations through the services
"""

from collections.abc import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from edgecms.services import language_service, translation_service
from edgecms.storage.base import ArtifactStore, StoredArtifact


class RecordingSleep:
    """Awaitable stand-in for ``asyncio.sleep`` that returns immediately."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FlakyArtifactStore:
    """Delegates to ``inner`` but raises for the first ``failures`` matching calls.

    ``fail_paths`` restricts the failures to puts whose path ends with one
    of the given suffixes; ``failures=None`` fails forever.
    """

    provider_type = "flaky"

    def __init__(
        self,
        inner: ArtifactStore,
        failures: int | None = 1,
        fail_paths: tuple[str, ...] = (),
        error: Exception | None = None,
    ):
        self.inner = inner
        self.failures = failures
        self.fail_paths = fail_paths
        self.error = error or ConnectionError("storage unavailable")
        self.put_calls: list[str] = []

    def _should_fail(self, path: str) -> bool:
        if self.fail_paths and not path.endswith(self.fail_paths):
            return False
        if self.failures is None:
            return True
        if self.failures > 0:
            self.failures -= 1
            return True
        return False

    async def put(self, path, data, *, content_type=None, cache_control=None) -> None:
        self.put_calls.append(path)
        if self._should_fail(path):
            raise self.error
        await self.inner.put(path, data, content_type=content_type, cache_control=cache_control)

    async def get(self, path: str) -> StoredArtifact | None:
        return await self.inner.get(path)


async def seed_translations(db: AsyncSession, content: Mapping[str, Mapping[str, str]]) -> None:
    """Create each locale (first one becomes default) and push its key/value map."""
    for locale in content:
        await language_service.create_language(db, locale)
    for locale, translations in content.items():
        await translation_service.bulk_upsert_translations(db, locale, translations)
