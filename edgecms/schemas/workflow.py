from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkflowInstanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    workflow: str
    params: dict[str, Any] = Field(default_factory=dict)
    status: str
    error: str | None = None
    error_type: str | None = None
    completed_steps: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
