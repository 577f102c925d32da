"""
Tests for workflow instance lifecycle.
"""

import dataclasses
import json
from unittest.mock import MagicMock

import pytest

from edgecms.exceptions import ValidationError, WorkflowInProgressError, WorkflowNotFoundError
from edgecms.models.version import VersionStatus
from edgecms.models.workflow import WorkflowStatus
from edgecms.services import translation_service, version_service
from edgecms.workflows.engine import WorkflowEngine
from utils.mocks import FlakyArtifactStore, seed_translations

CONTENT = {"en": {"a": "A", "b": "B"}, "fr": {"a": "Ah"}}


class TestEnqueue:
    """Tests for creating workflow instances."""

    @pytest.mark.asyncio
    async def test_enqueue_release(self, workflow_engine):
        instance = await workflow_engine.enqueue_release()

        assert instance.workflow == "release-version"
        assert instance.status == WorkflowStatus.queued.value
        assert instance.get_params() == {}

    @pytest.mark.asyncio
    async def test_enqueue_rollback_records_version(self, workflow_engine):
        instance = await workflow_engine.enqueue_rollback(3)
        assert instance.workflow == "rollback-version"
        assert instance.get_params() == {"versionId": 3}

    @pytest.mark.asyncio
    async def test_only_one_active_workflow(self, workflow_engine):
        first = await workflow_engine.enqueue_release()

        with pytest.raises(WorkflowInProgressError) as exc_info:
            await workflow_engine.enqueue_rollback(1)
        assert exc_info.value.details["instance_id"] == first.id

    @pytest.mark.asyncio
    async def test_unknown_workflow(self, workflow_engine):
        with pytest.raises(ValidationError):
            await workflow_engine.create("delete-everything", {})

    @pytest.mark.asyncio
    async def test_dispatch_schedules_job(self, context):
        scheduler = MagicMock()
        engine = WorkflowEngine(context, scheduler)

        instance = await engine.enqueue_release()

        scheduler.add_job.assert_called_once()
        kwargs = scheduler.add_job.call_args.kwargs
        assert kwargs["args"] == [instance.id]
        assert kwargs["id"] == f"workflow_{instance.id}"


class TestRunInstance:
    """Tests for executing instances and recording outcomes."""

    @pytest.mark.asyncio
    async def test_successful_release(self, workflow_engine, test_db):
        await seed_translations(test_db, CONTENT)
        instance = await workflow_engine.enqueue_release()

        finished = await workflow_engine.run_instance(instance.id)

        assert finished.status == WorkflowStatus.complete.value
        assert finished.error is None
        steps = await workflow_engine.get_completed_steps(instance.id)
        assert steps[0] == "get draft version"
        assert steps[-1] == "promote draft version"
        assert len(steps) == 8

    @pytest.mark.asyncio
    async def test_fatal_error_is_recorded(self, workflow_engine, sleep):
        instance = await workflow_engine.enqueue_release()

        finished = await workflow_engine.run_instance(instance.id)

        assert finished.status == WorkflowStatus.errored.value
        assert finished.error_type == "RELEASE_NO_DRAFT_VERSION"
        assert "No draft version" in finished.error
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_finished_instance_is_not_rerun(self, workflow_engine, test_db):
        await seed_translations(test_db, CONTENT)
        instance = await workflow_engine.enqueue_release()
        await workflow_engine.run_instance(instance.id)

        again = await workflow_engine.run_instance(instance.id)
        assert again.status == WorkflowStatus.complete.value

    @pytest.mark.asyncio
    async def test_missing_instance(self, workflow_engine):
        with pytest.raises(WorkflowNotFoundError):
            await workflow_engine.get_instance("nope")

    @pytest.mark.asyncio
    async def test_new_workflow_allowed_after_finish(self, workflow_engine):
        instance = await workflow_engine.enqueue_release()
        await workflow_engine.run_instance(instance.id)

        second = await workflow_engine.enqueue_release()
        assert second.id != instance.id


class TestRetryAndResume:
    """Tests for resuming interrupted or failed instances."""

    @pytest.mark.asyncio
    async def test_retry_resumes_from_checkpoint(self, workflow_engine, test_db, monkeypatch):
        await seed_translations(test_db, CONTENT)
        original = version_service.promote_version

        async def broken_promote(db, version_id, expected_status=None):
            raise ConnectionError("database went away")

        monkeypatch.setattr(version_service, "promote_version", broken_promote)
        instance = await workflow_engine.enqueue_release()
        failed = await workflow_engine.run_instance(instance.id)
        assert failed.status == WorkflowStatus.errored.value
        assert failed.error_type == "WORKFLOW_STEP_FAILED"

        monkeypatch.setattr(version_service, "promote_version", original)
        retried = await workflow_engine.retry_instance(instance.id)
        assert retried.status == WorkflowStatus.queued.value
        finished = await workflow_engine.run_instance(instance.id)

        assert finished.status == WorkflowStatus.complete.value
        assert finished.error is None
        live = await version_service.get_latest_version(test_db, VersionStatus.live)
        assert live.id == 1

    @pytest.mark.asyncio
    async def test_retry_requires_errored_status(self, workflow_engine):
        instance = await workflow_engine.enqueue_release()
        with pytest.raises(ValidationError):
            await workflow_engine.retry_instance(instance.id)

    @pytest.mark.asyncio
    async def test_retry_blocked_by_active_workflow(self, workflow_engine):
        failed = await workflow_engine.enqueue_release()
        await workflow_engine.run_instance(failed.id)
        await workflow_engine.enqueue_rollback(1)

        with pytest.raises(WorkflowInProgressError):
            await workflow_engine.retry_instance(failed.id)

    @pytest.mark.asyncio
    async def test_resume_incomplete(self, context):
        scheduler = MagicMock()
        engine = WorkflowEngine(context)
        queued = await engine.enqueue_release()

        engine.scheduler = scheduler
        resumed = await engine.resume_incomplete()

        assert resumed == [queued.id]
        scheduler.add_job.assert_called_once()

    @pytest.mark.asyncio
    async def test_retry_of_stale_release_leaves_published_versions_alone(
        self, context, workflow_engine, test_db, sleep
    ):
        await seed_translations(test_db, CONTENT)
        broken_store = FlakyArtifactStore(context.artifact_store, failures=None, fail_paths=(".json",))
        broken_engine = WorkflowEngine(dataclasses.replace(context, artifact_store=broken_store), sleep=sleep)
        stale = await broken_engine.enqueue_release()
        failed = await broken_engine.run_instance(stale.id)
        assert failed.status == WorkflowStatus.errored.value
        assert failed.error_type == "WORKFLOW_STEP_FAILED"

        # v1 is published by a later release, then superseded by v2
        await translation_service.upsert_translation(test_db, "a", "en", "A1")
        await workflow_engine.run_instance((await workflow_engine.enqueue_release()).id)
        await translation_service.upsert_translation(test_db, "b", "en", "B2")
        await workflow_engine.run_instance((await workflow_engine.enqueue_release()).id)

        await workflow_engine.retry_instance(stale.id)
        finished = await workflow_engine.run_instance(stale.id)

        assert finished.status == WorkflowStatus.errored.value
        assert finished.error_type == "VERSION_INVALID_STATUS_TRANSITION"
        test_db.expire_all()
        assert (await version_service.get_version(test_db, 1)).status == VersionStatus.archived.value
        assert (await version_service.get_version(test_db, 2)).status == VersionStatus.live.value
        published = await context.artifact_store.get("1/en.json")
        assert json.loads(published.data) == {"a": "A1", "b": "B"}
