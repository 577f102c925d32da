"""
Rollback Workflow

Restores an archived version by replaying its backup into the content
tables, then makes it live again:

1. check version is archived
2. get backup data (fetch + decompress + parse)
3. delete translations and languages
4. insert languages from backup data
5. insert translations from backup data
6. promote archived version

Steps 3 to 5 replace the whole dataset. Between the wipe and the end of
step 5 readers can observe an empty or partial translations table; each
of these steps is idempotent so a retry or a resumed run repairs it.
The wipe and the promotion only proceed while the version is still
archived.
"""

import logging
from functools import partial
from typing import Any

from edgecms.exceptions import BackupNotFoundError, InvalidStatusTransitionError, VersionNotFoundError
from edgecms.models.version import VersionStatus
from edgecms.services import language_service, translation_service, version_service
from edgecms.snapshot.codec import BackupDocument, backup_path, decode_backup_document, derive_locales
from edgecms.workflows.base import Workflow
from edgecms.workflows.steps import StepRunner, policy

logger = logging.getLogger(__name__)

CHECK_VERSION = policy(limit=3, delay=2, backoff="exponential", timeout=30)
GET_BACKUP_DATA = policy(limit=5, delay=3, backoff="exponential", timeout=120)
DELETE_CONTENT = policy(limit=3, delay=2, backoff="exponential", timeout=60)
INSERT_LANGUAGES = policy(limit=3, delay=2, backoff="exponential", timeout=60)
INSERT_TRANSLATIONS = policy(limit=5, delay=3, backoff="exponential", timeout=180)
PROMOTE_ARCHIVED_VERSION = policy(limit=5, delay=2, backoff="exponential", timeout=60)


def restored_locales(document: BackupDocument) -> tuple[list[str], str | None]:
    """Locales to recreate from a backup, and which of them is the default.

    Recorded locales come first (so languages without rows survive), then
    any locale only seen in the rows. Empty row lists contribute nothing.
    Without a recorded default, the first locale is used.
    """
    locales = list(dict.fromkeys([*document.locales, *derive_locales(document.translations)]))
    return locales, language_service.pick_default_locale(locales, document.default_locale)


class RollbackVersionWorkflow(Workflow):
    name = "rollback-version"

    async def run(self, params: dict[str, Any], step: StepRunner) -> dict[str, Any]:
        version_id = int(params["versionId"])

        await step.run("check version is archived", CHECK_VERSION, partial(self.check_version, version_id))
        backup = await step.run("get backup data", GET_BACKUP_DATA, partial(self.get_backup_data, version_id))
        document = BackupDocument.from_dict(backup)

        await step.run("delete translations and languages", DELETE_CONTENT, partial(self.delete_content, version_id))
        await step.run(
            "insert languages from backup data",
            INSERT_LANGUAGES,
            partial(self.insert_languages, document),
        )
        await step.run(
            "insert translations from backup data",
            INSERT_TRANSLATIONS,
            partial(self.insert_translations, document),
        )
        await step.run("promote archived version", PROMOTE_ARCHIVED_VERSION, partial(self.promote, version_id))

        logger.info(f"[{self.label}] Version {version_id} is live again")
        return {"versionId": version_id}

    async def check_version(self, version_id: int) -> dict[str, Any]:
        logger.info(f"[{self.label}] Checking version {version_id}")
        return await self.check_still_archived(version_id)

    async def check_still_archived(self, version_id: int) -> dict[str, Any]:
        async with self.context.session_factory() as db:
            version = await version_service.get_version(db, version_id)
        if version is None:
            raise VersionNotFoundError(version_id)
        if version.status != VersionStatus.archived.value:
            raise InvalidStatusTransitionError(version.status, VersionStatus.live.value)
        return {"id": version.id, "status": version.status}

    async def get_backup_data(self, version_id: int) -> dict[str, Any]:
        logger.info(f"[{self.label}] Getting backup data")
        path = backup_path(version_id)
        artifact = await self.context.artifact_store.get(path)
        if artifact is None:
            raise BackupNotFoundError(path)
        return decode_backup_document(artifact.data).to_dict()

    async def delete_content(self, version_id: int) -> None:
        # the archived check may be a checkpoint from an earlier attempt
        await self.check_still_archived(version_id)
        logger.info(f"[{self.label}] Deleting translations and languages")
        async with self.context.session_factory() as db:
            await translation_service.delete_all_translations(db, commit=False)
            await language_service.delete_all_languages(db, commit=False)
            await db.commit()

    async def insert_languages(self, document: BackupDocument) -> dict[str, Any]:
        logger.info(f"[{self.label}] Inserting languages from backup data")
        locales, default_locale = restored_locales(document)
        async with self.context.session_factory() as db:
            await language_service.replace_languages(db, locales, default_locale)
        return {"locales": locales, "default": default_locale}

    async def insert_translations(self, document: BackupDocument) -> int:
        logger.info(f"[{self.label}] Inserting translations from backup data")
        async with self.context.session_factory() as db:
            return await translation_service.replace_translation_rows(
                db, document.rows, batch_size=self.context.settings.translation_batch_size
            )

    async def promote(self, version_id: int) -> None:
        logger.info(f"[{self.label}] Promoting archived version {version_id}")
        async with self.context.session_factory() as db:
            await version_service.promote_version(db, version_id, VersionStatus.archived)
