"""
Workflow Engine

Creates, dispatches and tracks release/rollback workflow instances.

Enqueueing persists a ``queued`` instance and hands it to the APScheduler
``AsyncIOScheduler`` for immediate execution; the HTTP caller only learns
that the workflow was accepted. Progress is observed by polling the
instance. On startup ``resume_incomplete`` re-dispatches every instance a
previous process left ``queued`` or ``running``; completed steps replay
from their checkpoints.
"""

import asyncio
import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from sqlalchemy import select

from edgecms.context import AppContext
from edgecms.exceptions import CMSException, ValidationError, WorkflowInProgressError, WorkflowNotFoundError
from edgecms.models.workflow import WorkflowInstance, WorkflowStatus
from edgecms.workflows.base import Workflow
from edgecms.workflows.release import ReleaseVersionWorkflow
from edgecms.workflows.rollback import RollbackVersionWorkflow
from edgecms.workflows.steps import DatabaseCheckpointStore, StepRunner

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (WorkflowStatus.queued.value, WorkflowStatus.running.value)

WORKFLOWS: dict[str, type[Workflow]] = {
    ReleaseVersionWorkflow.name: ReleaseVersionWorkflow,
    RollbackVersionWorkflow.name: RollbackVersionWorkflow,
}


class WorkflowEngine:
    """Runs release and rollback workflows for one application context."""

    def __init__(
        self,
        context: AppContext,
        scheduler: AsyncIOScheduler | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.context = context
        self.scheduler = scheduler
        self._sleep = sleep

    # ============== Enqueue ==============

    async def enqueue_release(self) -> WorkflowInstance:
        return await self.create(ReleaseVersionWorkflow.name, {})

    async def enqueue_rollback(self, version_id: int) -> WorkflowInstance:
        return await self.create(RollbackVersionWorkflow.name, {"versionId": version_id})

    async def create(self, workflow: str, params: dict[str, Any]) -> WorkflowInstance:
        """Persist a new queued instance and dispatch it.

        Raises:
            WorkflowInProgressError: if another release or rollback is queued or running.
        """
        if workflow not in WORKFLOWS:
            raise ValidationError(f"Unknown workflow: {workflow}", field="workflow")

        async with self.context.session_factory() as db:
            result = await db.execute(
                select(WorkflowInstance)
                .where(WorkflowInstance.status.in_(ACTIVE_STATUSES))
                .order_by(WorkflowInstance.created_at)
                .limit(1)
            )
            active = result.scalars().first()
            if active is not None:
                raise WorkflowInProgressError(active.id, active.workflow)

            instance = WorkflowInstance(
                id=str(uuid.uuid4()),
                workflow=workflow,
                params=json.dumps(params),
                status=WorkflowStatus.queued.value,
            )
            db.add(instance)
            await db.commit()
            await db.refresh(instance)

        logger.info(f"Created {workflow} workflow: {instance.id} params={params}")
        self.dispatch(instance.id)
        return instance

    def dispatch(self, instance_id: str) -> None:
        """Schedule ``run_instance`` to run as soon as the scheduler allows."""
        if self.scheduler is None:
            return
        self.scheduler.add_job(
            self.run_instance,
            trigger=DateTrigger(run_date=datetime.now(timezone.utc)),
            args=[instance_id],
            id=f"workflow_{instance_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )

    # ============== Execution ==============

    async def run_instance(self, instance_id: str) -> WorkflowInstance:
        """Run (or resume) an instance to completion and record the outcome.

        Workflow failures are recorded on the instance, not raised.
        """
        async with self.context.session_factory() as db:
            instance = await self._get(db, instance_id)
            if instance.is_finished:
                return instance
            instance.status = WorkflowStatus.running.value
            await db.commit()
            workflow_name = instance.workflow
            params = instance.get_params()

        workflow = WORKFLOWS[workflow_name](self.context)
        runner = StepRunner(
            instance_id,
            DatabaseCheckpointStore(self.context.session_factory),
            sleep=self._sleep,
            label=workflow.label,
        )
        completed = await runner.load()
        if completed:
            logger.info(f"[{workflow.label}] Resuming {instance_id} after steps: {', '.join(completed)}")

        error: Exception | None = None
        try:
            await workflow.run(params, runner)
        except CMSException as e:
            error = e
            logger.error(f"[{workflow.label}] Workflow {instance_id} failed: {e.message}")
        except Exception as e:
            error = e
            logger.exception(f"[{workflow.label}] Workflow {instance_id} failed unexpectedly")

        async with self.context.session_factory() as db:
            instance = await self._get(db, instance_id)
            if error is None:
                instance.status = WorkflowStatus.complete.value
                instance.error = None
                instance.error_type = None
            else:
                instance.status = WorkflowStatus.errored.value
                instance.error = str(error)
                instance.error_type = _error_type(error)
            await db.commit()
            await db.refresh(instance)
        logger.info(f"[{workflow.label}] Workflow {instance_id} finished with status {instance.status}")
        return instance

    async def retry_instance(self, instance_id: str) -> WorkflowInstance:
        """Re-queue an errored instance; it resumes from its last checkpoint."""
        async with self.context.session_factory() as db:
            instance = await self._get(db, instance_id)
            if instance.status != WorkflowStatus.errored.value:
                raise ValidationError(f"Only errored workflows can be retried (status is '{instance.status}')")

            result = await db.execute(
                select(WorkflowInstance).where(
                    WorkflowInstance.status.in_(ACTIVE_STATUSES),
                    WorkflowInstance.id != instance_id,
                )
            )
            active = result.scalars().first()
            if active is not None:
                raise WorkflowInProgressError(active.id, active.workflow)

            instance.status = WorkflowStatus.queued.value
            await db.commit()
            await db.refresh(instance)

        self.dispatch(instance_id)
        return instance

    async def resume_incomplete(self) -> list[str]:
        """Dispatch every instance left queued or running by a previous process."""
        async with self.context.session_factory() as db:
            result = await db.execute(
                select(WorkflowInstance.id)
                .where(WorkflowInstance.status.in_(ACTIVE_STATUSES))
                .order_by(WorkflowInstance.created_at)
            )
            instance_ids = list(result.scalars().all())

        for instance_id in instance_ids:
            logger.info(f"Resuming workflow {instance_id}")
            self.dispatch(instance_id)
        return instance_ids

    # ============== Queries ==============

    async def get_instance(self, instance_id: str) -> WorkflowInstance:
        async with self.context.session_factory() as db:
            return await self._get(db, instance_id)

    async def get_completed_steps(self, instance_id: str) -> list[str]:
        checkpoints = await DatabaseCheckpointStore(self.context.session_factory).load(instance_id)
        return list(checkpoints)

    @staticmethod
    async def _get(db, instance_id: str) -> WorkflowInstance:
        result = await db.execute(select(WorkflowInstance).where(WorkflowInstance.id == instance_id))
        instance = result.scalars().first()
        if instance is None:
            raise WorkflowNotFoundError(instance_id)
        return instance


def _error_type(error: Exception) -> str:
    code = getattr(error, "error_code", None)
    if code is not None:
        return code.value
    return type(error).__name__
