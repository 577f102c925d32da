"""
Version Model

One row per release candidate of the translation dataset. The row with
status ``live`` is what the public read path serves; the single ``draft``
row collects edits made since the last publish.
"""

import enum

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from edgecms.database import Base


class VersionStatus(str, enum.Enum):
    """Version lifecycle status."""

    draft = "draft"
    live = "live"
    archived = "archived"


class Version(Base):
    __tablename__ = "versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=VersionStatus.draft.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Version(id={self.id}, status='{self.status}')>"
