"""
Version Service

Async accessors for the versions table and the draft/live state machine.

Functions:
    create_version            : insert a new draft row
    get_version               : fetch by id
    get_latest_version        : highest id, optionally filtered by status
    list_versions             : all versions, newest first
    update_version_description: rename a version
    promote_version           : archive the live version, make the target live
    ensure_draft_exists       : lazily create the draft before a content edit

None of these retry on their own; the workflows wrap them in retryable steps.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from edgecms.exceptions import InvalidStatusTransitionError, VersionNotFoundError
from edgecms.models.version import Version, VersionStatus

logger = logging.getLogger(__name__)


async def create_version(
    db: AsyncSession,
    description: str | None = None,
    created_by: str | None = None,
) -> Version:
    """Insert a new version in ``draft`` status.

    Callers are responsible for the single-draft invariant; use
    ``ensure_draft_exists`` rather than calling this directly.
    """
    version = Version(
        description=description or None,
        status=VersionStatus.draft.value,
        created_by=created_by or None,
    )
    db.add(version)
    await db.commit()
    await db.refresh(version)
    logger.info("Version created: id=%d description=%r", version.id, version.description)
    return version


async def get_version(db: AsyncSession, version_id: int) -> Version | None:
    result = await db.execute(select(Version).where(Version.id == version_id))
    return result.scalars().first()


async def get_latest_version(db: AsyncSession, status: VersionStatus | str | None = None) -> Version | None:
    """Return the most recent (highest id) version, optionally filtered by status."""
    query = select(Version)
    if status is not None:
        query = query.where(Version.status == VersionStatus(status).value)
    result = await db.execute(query.order_by(Version.id.desc()).limit(1))
    return result.scalars().first()


async def list_versions(db: AsyncSession) -> list[Version]:
    result = await db.execute(select(Version).order_by(Version.id.desc()))
    return list(result.scalars().all())


async def update_version_description(db: AsyncSession, version_id: int, description: str) -> Version:
    version = await get_version(db, version_id)
    if version is None:
        raise VersionNotFoundError(version_id)

    version.description = description
    await db.commit()
    await db.refresh(version)
    return version


async def promote_version(
    db: AsyncSession,
    version_id: int,
    expected_status: VersionStatus | str | None = None,
) -> None:
    """Make ``version_id`` the live version and archive the previous live one.

    With ``expected_status`` the target is only promoted while it still has
    that status (``draft`` for a release, ``archived`` for a rollback); the
    check and the update are a single conditional UPDATE. Both updates are
    committed in one transaction. Promoting a version that is already live
    changes nothing.

    Raises:
        VersionNotFoundError: if the target version does not exist.
        InvalidStatusTransitionError: if the target is neither live nor in
            ``expected_status``.
    """
    version = await get_version(db, version_id)
    if version is None:
        raise VersionNotFoundError(version_id)

    query = update(Version).where(Version.id == version_id, Version.status != VersionStatus.live.value)
    if expected_status is not None:
        query = query.where(Version.status == VersionStatus(expected_status).value)
    result = await db.execute(query.values(status=VersionStatus.live.value))

    if result.rowcount == 0:
        await db.rollback()
        await db.refresh(version)
        if version.status == VersionStatus.live.value:
            logger.info("Version already live: id=%d", version_id)
            return
        raise InvalidStatusTransitionError(version.status, VersionStatus.live.value)

    await db.execute(
        update(Version)
        .where(Version.status == VersionStatus.live.value, Version.id != version_id)
        .values(status=VersionStatus.archived.value)
    )
    await db.commit()
    await db.refresh(version)
    logger.info("Version promoted: id=%d", version_id)


async def ensure_draft_exists(db: AsyncSession, user_id: str | None = None) -> Version:
    """Return the current draft, creating it if there is none.

    The new draft is described as a fork of the live version, or with
    today's date when nothing has been published yet.
    """
    draft = await get_latest_version(db, VersionStatus.draft)
    if draft is not None:
        return draft

    live = await get_latest_version(db, VersionStatus.live)
    if live is not None:
        description = f"fork from v{live.id}"
    else:
        description = datetime.now(timezone.utc).date().isoformat()
    return await create_version(db, description=description, created_by=user_id)
