"""
Workflow persistence models

``WorkflowInstance`` records one run of the release or rollback workflow.
``WorkflowStep`` is the durable checkpoint of a completed step: when an
instance is re-invoked, steps with a row here return their stored result
instead of executing again.
"""

import enum
import json
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from edgecms.database import Base


class WorkflowStatus(str, enum.Enum):
    queued = "queued"
    running = "running"
    complete = "complete"
    errored = "errored"


class WorkflowInstance(Base):
    __tablename__ = "workflow_instances"

    id = Column(String(36), primary_key=True)
    workflow = Column(String(50), nullable=False, index=True)
    params = Column(Text, nullable=False, default="{}")
    status = Column(String(20), nullable=False, default=WorkflowStatus.queued.value, index=True)
    error = Column(Text, nullable=True)
    error_type = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def get_params(self) -> dict[str, Any]:
        return json.loads(self.params) if self.params else {}

    @property
    def is_finished(self) -> bool:
        return self.status in (WorkflowStatus.complete.value, WorkflowStatus.errored.value)

    def __repr__(self) -> str:
        return f"<WorkflowInstance(id='{self.id}', workflow='{self.workflow}', status='{self.status}')>"


class WorkflowStep(Base):
    __tablename__ = "workflow_steps"

    id = Column(Integer, primary_key=True, autoincrement=True)
    instance_id = Column(String(36), ForeignKey("workflow_instances.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    result = Column(Text, nullable=True)  # JSON
    attempts = Column(Integer, nullable=False, default=1)
    completed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("instance_id", "name", name="uq_workflow_step_name"),)
