import json
import logging
import os
from pathlib import Path

from edgecms.exceptions import StorageError
from edgecms.storage.base import StoredArtifact, as_bytes

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".meta.json"


class LocalArtifactStore:
    """Filesystem artifact store.

    Each artifact is a file under ``base_path``; its HTTP metadata is kept
    in a ``<name>.meta.json`` sidecar. Writes go through a temporary file
    and ``os.replace`` so a reader never sees a half-written artifact.
    """

    provider_type = "local"

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        full_path = (self.base_path / path).resolve()
        if full_path == self.base_path or self.base_path not in full_path.parents:
            raise StorageError("Artifact path escapes the storage directory", path=path)
        if full_path.name.endswith(METADATA_SUFFIX):
            raise StorageError("Artifact path uses a reserved suffix", path=path)
        return full_path

    @staticmethod
    def _write_atomic(target: Path, data: bytes) -> None:
        tmp_path = target.with_name(f".{target.name}.tmp")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, target)

    async def put(
        self,
        path: str,
        data: bytes | str,
        *,
        content_type: str | None = None,
        cache_control: str | None = None,
    ) -> None:
        full_path = self._resolve(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        payload = as_bytes(data)
        metadata = {"content_type": content_type, "cache_control": cache_control}
        self._write_atomic(full_path, payload)
        self._write_atomic(full_path.with_name(full_path.name + METADATA_SUFFIX), json.dumps(metadata).encode())
        logger.debug(f"Stored artifact {path} ({len(payload)} bytes)")

    async def get(self, path: str) -> StoredArtifact | None:
        full_path = self._resolve(path)
        if not full_path.is_file():
            return None

        metadata = {}
        metadata_path = full_path.with_name(full_path.name + METADATA_SUFFIX)
        if metadata_path.is_file():
            metadata = json.loads(metadata_path.read_text())

        return StoredArtifact(
            path=path,
            data=full_path.read_bytes(),
            content_type=metadata.get("content_type"),
            cache_control=metadata.get("cache_control"),
        )
