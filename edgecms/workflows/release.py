"""
Release Workflow

Publishes the current draft version:

1. get draft version
2. get languages
3. get default translations
4. get rest translations (one query per language, concurrently)
5. generate json files (fallback-applied publish snapshots)
6. save json files
7. generate backup file (raw rows, for rollback)
8. promote draft version

Promotion is the last step, so a version only becomes live once all of
its artifacts are stored. The artifact writes and the promotion only
proceed while the version is still a draft, so a stale retried run can
neither overwrite a published version's files nor revive it. A failure
anywhere earlier leaves the draft as it was; artifacts already written
stay unreferenced.
"""

import asyncio
import logging
from functools import partial
from typing import Any

from edgecms.exceptions import InvalidStatusTransitionError, NoDraftVersionError, VersionNotFoundError
from edgecms.models.version import VersionStatus
from edgecms.schemas.version import VersionOut
from edgecms.services import language_service, translation_service, version_service
from edgecms.snapshot.codec import (
    BACKUP_CONTENT_TYPE,
    SNAPSHOT_CONTENT_TYPE,
    SnapshotFile,
    TranslationRow,
    backup_path,
    build_locale_snapshots,
    encode_backup,
)
from edgecms.workflows.base import Workflow
from edgecms.workflows.steps import StepRunner, policy

logger = logging.getLogger(__name__)

GET_DRAFT_VERSION = policy(limit=3, delay=2, backoff="exponential", timeout=30)
GET_LANGUAGES = policy(limit=3, delay=2, backoff="exponential", timeout=30)
GET_DEFAULT_TRANSLATIONS = policy(limit=3, delay=2, backoff="exponential", timeout=60)
GET_REST_TRANSLATIONS = policy(limit=3, delay=3, backoff="exponential", timeout=120)
GENERATE_JSON_FILES = policy(limit=2, delay=1, backoff="linear", timeout=30)
SAVE_JSON_FILES = policy(limit=5, delay=3, backoff="exponential", timeout=180)
GENERATE_BACKUP_FILE = policy(limit=5, delay=3, backoff="exponential", timeout=120)
PROMOTE_DRAFT_VERSION = policy(limit=5, delay=2, backoff="exponential", timeout=60)


class ReleaseVersionWorkflow(Workflow):
    name = "release-version"

    async def run(self, params: dict[str, Any], step: StepRunner) -> dict[str, Any]:
        draft = await step.run("get draft version", GET_DRAFT_VERSION, self.get_draft_version)
        languages = await step.run("get languages", GET_LANGUAGES, self.get_languages)
        default_locale = languages["default"]
        other_locales = languages["others"]

        default_translations = await step.run(
            "get default translations",
            GET_DEFAULT_TRANSLATIONS,
            partial(self.get_translations, default_locale),
        )
        rest_translations = await step.run(
            "get rest translations",
            GET_REST_TRANSLATIONS,
            partial(self.get_rest_translations, other_locales),
        )
        json_files = await step.run(
            "generate json files",
            GENERATE_JSON_FILES,
            partial(
                self.generate_json_files,
                draft["id"],
                default_locale,
                default_translations,
                list(zip(other_locales, rest_translations)),
            ),
        )
        await step.run("save json files", SAVE_JSON_FILES, partial(self.save_json_files, draft["id"], json_files))
        await step.run(
            "generate backup file",
            GENERATE_BACKUP_FILE,
            partial(
                self.save_backup_file,
                draft["id"],
                default_locale,
                [default_locale, *other_locales],
                [default_translations, *rest_translations],
            ),
        )
        await step.run("promote draft version", PROMOTE_DRAFT_VERSION, partial(self.promote, draft["id"]))

        logger.info(f"[{self.label}] Version {draft['id']} is live")
        return {"versionId": draft["id"], "files": [f["filename"] for f in json_files]}

    async def get_draft_version(self) -> dict[str, Any]:
        logger.info(f"[{self.label}] Getting draft version")
        async with self.context.session_factory() as db:
            draft = await version_service.get_latest_version(db, VersionStatus.draft)
        if draft is None:
            raise NoDraftVersionError()
        return VersionOut.model_validate(draft).model_dump(mode="json")

    async def get_languages(self) -> dict[str, Any]:
        logger.info(f"[{self.label}] Getting languages")
        async with self.context.session_factory() as db:
            languages = await language_service.get_languages(db)
        default_language, other_languages = language_service.partition_languages(languages)
        return {
            "default": default_language.locale,
            "others": [language.locale for language in other_languages],
        }

    async def get_translations(self, locale: str) -> list[TranslationRow]:
        logger.info(f"[{self.label}] Getting translations for {locale}")
        async with self.context.session_factory() as db:
            return await translation_service.get_translations_by_locale(db, locale)

    async def get_rest_translations(self, locales: list[str]) -> list[list[TranslationRow]]:
        logger.info(f"[{self.label}] Getting the rest of the translations")
        return list(await asyncio.gather(*(self.get_translations(locale) for locale in locales)))

    async def generate_json_files(
        self,
        version_id: int,
        default_locale: str,
        default_translations: list[TranslationRow],
        other_translations: list[tuple[str, list[TranslationRow]]],
    ) -> list[SnapshotFile]:
        logger.info(f"[{self.label}] Generating json files")
        return build_locale_snapshots(version_id, default_locale, default_translations, other_translations)

    async def check_still_draft(self, version_id: int) -> None:
        """Refuse to write artifacts for a draft that has since left the draft state.

        A retried run carries the draft id from its first attempt; by then
        that version may have been published by another release.
        """
        async with self.context.session_factory() as db:
            version = await version_service.get_version(db, version_id)
        if version is None:
            raise VersionNotFoundError(version_id)
        if version.status != VersionStatus.draft.value:
            raise InvalidStatusTransitionError(version.status, VersionStatus.live.value)

    async def save_json_files(self, version_id: int, files: list[SnapshotFile]) -> None:
        await self.check_still_draft(version_id)
        logger.info(f"[{self.label}] Saving {len(files)} json files")
        store = self.context.artifact_store
        cache_control = self.context.settings.snapshot_cache_control
        await asyncio.gather(
            *(
                store.put(
                    f["filename"],
                    f["content"],
                    content_type=SNAPSHOT_CONTENT_TYPE,
                    cache_control=cache_control,
                )
                for f in files
            )
        )

    async def save_backup_file(
        self,
        version_id: int,
        default_locale: str,
        locales: list[str],
        translations: list[list[TranslationRow]],
    ) -> dict[str, Any]:
        await self.check_still_draft(version_id)
        logger.info(f"[{self.label}] Generating backup file")
        compressed = encode_backup(translations, default_locale=default_locale, locales=locales)
        path = backup_path(version_id)
        await self.context.artifact_store.put(path, compressed, content_type=BACKUP_CONTENT_TYPE)
        return {"path": path, "size": len(compressed)}

    async def promote(self, version_id: int) -> None:
        logger.info(f"[{self.label}] Promoting draft version {version_id}")
        async with self.context.session_factory() as db:
            await version_service.promote_version(db, version_id, VersionStatus.draft)
