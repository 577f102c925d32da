import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from edgecms.storage.base import StoredArtifact, as_bytes

logger = logging.getLogger(__name__)


class S3ArtifactStore:
    """Artifact store backed by an S3-compatible bucket.

    Setting ``endpoint_url`` points the client at Cloudflare R2 or MinIO.
    boto3 is blocking, so each call runs in a worker thread.
    """

    provider_type = "s3"

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        prefix: str = "",
        client: Any = None,
    ):
        if not bucket:
            raise ValueError("s3 bucket is required")
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    def _key(self, path: str) -> str:
        return f"{self.prefix}/{path}" if self.prefix else path

    async def put(
        self,
        path: str,
        data: bytes | str,
        *,
        content_type: str | None = None,
        cache_control: str | None = None,
    ) -> None:
        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type
        if cache_control:
            extra["CacheControl"] = cache_control

        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=self._key(path),
            Body=as_bytes(data),
            **extra,
        )
        logger.debug(f"Stored artifact s3://{self.bucket}/{self._key(path)}")

    async def get(self, path: str) -> StoredArtifact | None:
        try:
            response = await asyncio.to_thread(self.client.get_object, Bucket=self.bucket, Key=self._key(path))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            raise

        body = await asyncio.to_thread(response["Body"].read)
        return StoredArtifact(
            path=path,
            data=body,
            content_type=response.get("ContentType"),
            cache_control=response.get("CacheControl"),
        )
