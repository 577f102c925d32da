from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from edgecms.models.version import VersionStatus


class VersionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str | None
    status: VersionStatus
    created_at: datetime | None
    created_by: str | None


class VersionUpdate(BaseModel):
    description: str = Field(..., max_length=500)
