from edgecms.config import Settings
from edgecms.storage.base import ArtifactStore, StoredArtifact
from edgecms.storage.local import LocalArtifactStore
from edgecms.storage.s3 import S3ArtifactStore


def build_artifact_store(settings: Settings) -> ArtifactStore:
    """Create the artifact store selected by ``settings.artifact_backend``."""
    backend = settings.artifact_backend.strip().lower()
    if backend == "s3":
        return S3ArtifactStore(
            settings.s3_bucket or "",
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
        )
    if backend == "local":
        return LocalArtifactStore(settings.artifact_local_path)
    raise ValueError(f"Unknown artifact backend: {settings.artifact_backend}")


__all__ = [
    "ArtifactStore",
    "LocalArtifactStore",
    "S3ArtifactStore",
    "StoredArtifact",
    "build_artifact_store",
]
