"""
Tests for the version store.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from edgecms.exceptions import InvalidStatusTransitionError, VersionNotFoundError
from edgecms.models.version import Version, VersionStatus
from edgecms.services import version_service


async def _count(db, status: VersionStatus) -> int:
    result = await db.execute(select(func.count()).select_from(Version).where(Version.status == status.value))
    return result.scalar()


class TestCreateAndQuery:
    """Tests for creating and looking up versions."""

    @pytest.mark.asyncio
    async def test_create_version_is_draft(self, test_db):
        version = await version_service.create_version(test_db, description="first", created_by="42")

        assert version.id is not None
        assert version.status == VersionStatus.draft.value
        assert version.created_by == "42"
        assert version.created_at is not None

    @pytest.mark.asyncio
    async def test_get_version_missing(self, test_db):
        assert await version_service.get_version(test_db, 999) is None

    @pytest.mark.asyncio
    async def test_latest_version_by_status(self, test_db):
        first = await version_service.create_version(test_db, "one")
        second = await version_service.create_version(test_db, "two")
        await version_service.promote_version(test_db, first.id)

        assert (await version_service.get_latest_version(test_db)).id == second.id
        assert (await version_service.get_latest_version(test_db, VersionStatus.live)).id == first.id
        assert (await version_service.get_latest_version(test_db, "draft")).id == second.id
        assert await version_service.get_latest_version(test_db, VersionStatus.archived) is None

    @pytest.mark.asyncio
    async def test_list_versions_newest_first(self, test_db):
        for name in ("a", "b", "c"):
            await version_service.create_version(test_db, name)

        versions = await version_service.list_versions(test_db)
        assert [v.description for v in versions] == ["c", "b", "a"]

    @pytest.mark.asyncio
    async def test_update_description(self, test_db):
        version = await version_service.create_version(test_db, "old")
        updated = await version_service.update_version_description(test_db, version.id, "new")
        assert updated.description == "new"

    @pytest.mark.asyncio
    async def test_update_description_missing(self, test_db):
        with pytest.raises(VersionNotFoundError):
            await version_service.update_version_description(test_db, 404, "nope")


class TestPromoteVersion:
    """Tests for the draft → live → archived transitions."""

    @pytest.mark.asyncio
    async def test_promote_first_version(self, test_db):
        version = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, version.id)

        await test_db.refresh(version)
        assert version.status == VersionStatus.live.value

    @pytest.mark.asyncio
    async def test_promote_archives_previous_live(self, test_db):
        v1 = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, v1.id)
        v2 = await version_service.create_version(test_db, "v2")
        await version_service.promote_version(test_db, v2.id)

        await test_db.refresh(v1)
        await test_db.refresh(v2)
        assert v1.status == VersionStatus.archived.value
        assert v2.status == VersionStatus.live.value
        assert await _count(test_db, VersionStatus.live) == 1

    @pytest.mark.asyncio
    async def test_promote_is_idempotent(self, test_db):
        v1 = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, v1.id)
        await version_service.promote_version(test_db, v1.id)

        await test_db.refresh(v1)
        assert v1.status == VersionStatus.live.value
        assert await _count(test_db, VersionStatus.archived) == 0

    @pytest.mark.asyncio
    async def test_promote_archived_version(self, test_db):
        v1 = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, v1.id)
        v2 = await version_service.create_version(test_db, "v2")
        await version_service.promote_version(test_db, v2.id)

        await version_service.promote_version(test_db, v1.id)

        await test_db.refresh(v1)
        await test_db.refresh(v2)
        assert v1.status == VersionStatus.live.value
        assert v2.status == VersionStatus.archived.value

    @pytest.mark.asyncio
    async def test_promote_leaves_draft_alone(self, test_db):
        v1 = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, v1.id)
        v2 = await version_service.create_version(test_db, "v2")
        v3 = await version_service.create_version(test_db, "v3")

        await version_service.promote_version(test_db, v2.id)

        await test_db.refresh(v3)
        assert v3.status == VersionStatus.draft.value

    @pytest.mark.asyncio
    async def test_promote_missing_version_changes_nothing(self, test_db):
        v1 = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, v1.id)

        with pytest.raises(VersionNotFoundError):
            await version_service.promote_version(test_db, 999)

        await test_db.refresh(v1)
        assert v1.status == VersionStatus.live.value

    @pytest.mark.asyncio
    async def test_expected_status_mismatch_is_rejected(self, test_db):
        v1 = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, v1.id)
        v2 = await version_service.create_version(test_db, "v2")
        await version_service.promote_version(test_db, v2.id)

        with pytest.raises(InvalidStatusTransitionError):
            await version_service.promote_version(test_db, v1.id, VersionStatus.draft)

        await test_db.refresh(v1)
        await test_db.refresh(v2)
        assert v1.status == VersionStatus.archived.value
        assert v2.status == VersionStatus.live.value

    @pytest.mark.asyncio
    async def test_expected_status_on_live_version_is_a_no_op(self, test_db):
        v1 = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, v1.id, VersionStatus.draft)

        await version_service.promote_version(test_db, v1.id, VersionStatus.draft)

        await test_db.refresh(v1)
        assert v1.status == VersionStatus.live.value
        assert await _count(test_db, VersionStatus.live) == 1


class TestEnsureDraftExists:
    """Tests for lazy draft creation."""

    @pytest.mark.asyncio
    async def test_creates_dated_draft_when_nothing_published(self, test_db):
        draft = await version_service.ensure_draft_exists(test_db, "7")

        assert draft.status == VersionStatus.draft.value
        assert draft.description == datetime.now(timezone.utc).date().isoformat()
        assert draft.created_by == "7"

    @pytest.mark.asyncio
    async def test_forks_from_live(self, test_db):
        live = await version_service.create_version(test_db, "v1")
        await version_service.promote_version(test_db, live.id)

        draft = await version_service.ensure_draft_exists(test_db)
        assert draft.description == f"fork from v{live.id}"

    @pytest.mark.asyncio
    async def test_is_idempotent(self, test_db):
        first = await version_service.ensure_draft_exists(test_db)
        second = await version_service.ensure_draft_exists(test_db)

        assert first.id == second.id
        assert await _count(test_db, VersionStatus.draft) == 1
