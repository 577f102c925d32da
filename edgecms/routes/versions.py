"""
Version & Workflow Routes

    GET    /versions                     → list versions, newest first
    PATCH  /versions/{version_id}        → rename a version
    POST   /versions/release             → enqueue the release workflow
    POST   /versions/{version_id}/rollback → enqueue the rollback workflow
    GET    /workflows/{instance_id}      → workflow status
    POST   /workflows/{instance_id}/retry → resume an errored workflow

Release and rollback only confirm that the workflow was enqueued; the
outcome is read from the workflow status or the version list.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from edgecms.database import get_db
from edgecms.dependencies import get_workflow_engine
from edgecms.models.workflow import WorkflowInstance
from edgecms.schemas.version import VersionOut, VersionUpdate
from edgecms.schemas.workflow import WorkflowInstanceOut
from edgecms.services import version_service
from edgecms.workflows.engine import WorkflowEngine

router = APIRouter(tags=["Versions"])


async def _instance_out(instance: WorkflowInstance, engine: WorkflowEngine) -> WorkflowInstanceOut:
    return WorkflowInstanceOut(
        id=instance.id,
        workflow=instance.workflow,
        params=instance.get_params(),
        status=instance.status,
        error=instance.error,
        error_type=instance.error_type,
        completed_steps=await engine.get_completed_steps(instance.id),
        created_at=instance.created_at,
        updated_at=instance.updated_at,
    )


@router.get("/versions", response_model=list[VersionOut])
async def list_versions_route(db: AsyncSession = Depends(get_db)):
    return await version_service.list_versions(db)


@router.patch("/versions/{version_id}", response_model=VersionOut)
async def update_version_route(version_id: int, payload: VersionUpdate, db: AsyncSession = Depends(get_db)):
    return await version_service.update_version_description(db, version_id, payload.description)


@router.post("/versions/release", response_model=WorkflowInstanceOut, status_code=status.HTTP_202_ACCEPTED)
async def release_draft_route(engine: WorkflowEngine = Depends(get_workflow_engine)):
    instance = await engine.enqueue_release()
    return await _instance_out(instance, engine)


@router.post(
    "/versions/{version_id}/rollback",
    response_model=WorkflowInstanceOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def rollback_version_route(version_id: int, engine: WorkflowEngine = Depends(get_workflow_engine)):
    instance = await engine.enqueue_rollback(version_id)
    return await _instance_out(instance, engine)


@router.get("/workflows/{instance_id}", response_model=WorkflowInstanceOut)
async def get_workflow_route(instance_id: str, engine: WorkflowEngine = Depends(get_workflow_engine)):
    instance = await engine.get_instance(instance_id)
    return await _instance_out(instance, engine)


@router.post("/workflows/{instance_id}/retry", response_model=WorkflowInstanceOut, status_code=status.HTTP_202_ACCEPTED)
async def retry_workflow_route(instance_id: str, engine: WorkflowEngine = Depends(get_workflow_engine)):
    instance = await engine.retry_instance(instance_id)
    return await _instance_out(instance, engine)
