"""
Artifact store interface

Published snapshots and recovery backups are written once per version id
and read back by the public read path and by rollback. Writers rely on
read-after-write consistency within one workflow run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass
class StoredArtifact:
    path: str
    data: bytes
    content_type: str | None = None
    cache_control: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    def text(self, encoding: str = "utf-8") -> str:
        return self.data.decode(encoding)


class ArtifactStore(Protocol):
    provider_type: str

    async def put(
        self,
        path: str,
        data: bytes | str,
        *,
        content_type: str | None = None,
        cache_control: str | None = None,
    ) -> None: ...

    async def get(self, path: str) -> StoredArtifact | None: ...


def as_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data
