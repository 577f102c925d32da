"""
Tests for artifact storage backends.
"""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from edgecms.config import Settings
from edgecms.exceptions import StorageError
from edgecms.storage import LocalArtifactStore, S3ArtifactStore, build_artifact_store


class TestLocalArtifactStore:
    """Tests for the filesystem store."""

    @pytest.mark.asyncio
    async def test_put_and_get(self, tmp_path):
        store = LocalArtifactStore(tmp_path)
        await store.put("1/en.json", '{"a":"A"}', content_type="application/json", cache_control="public")

        artifact = await store.get("1/en.json")
        assert artifact.text() == '{"a":"A"}'
        assert artifact.size == 9
        assert artifact.content_type == "application/json"
        assert artifact.cache_control == "public"

    @pytest.mark.asyncio
    async def test_missing_artifact(self, tmp_path):
        assert await LocalArtifactStore(tmp_path).get("1/en.json") is None

    @pytest.mark.asyncio
    async def test_overwrite(self, tmp_path):
        store = LocalArtifactStore(tmp_path)
        await store.put("1/backup.gz", b"old")
        await store.put("1/backup.gz", b"new")

        artifact = await store.get("1/backup.gz")
        assert artifact.data == b"new"
        assert artifact.content_type is None

    @pytest.mark.asyncio
    async def test_path_traversal_rejected(self, tmp_path):
        store = LocalArtifactStore(tmp_path / "artifacts")
        with pytest.raises(StorageError):
            await store.put("../outside.json", "{}")

    @pytest.mark.asyncio
    async def test_metadata_suffix_rejected(self, tmp_path):
        store = LocalArtifactStore(tmp_path)
        with pytest.raises(StorageError):
            await store.get("1/en.json.meta.json")


class TestS3ArtifactStore:
    """Tests for the S3-compatible store with a mocked boto3 client."""

    @pytest.mark.asyncio
    async def test_put_sends_headers(self):
        client = MagicMock()
        store = S3ArtifactStore("bucket", prefix="i18n/", client=client)

        await store.put("1/en.json", "{}", content_type="application/json", cache_control="public, immutable")

        client.put_object.assert_called_once_with(
            Bucket="bucket",
            Key="i18n/1/en.json",
            Body=b"{}",
            ContentType="application/json",
            CacheControl="public, immutable",
        )

    @pytest.mark.asyncio
    async def test_get(self):
        client = MagicMock()
        client.get_object.return_value = {
            "Body": io.BytesIO(b"payload"),
            "ContentType": "application/gzip",
        }
        store = S3ArtifactStore("bucket", client=client)

        artifact = await store.get("1/backup.gz")

        client.get_object.assert_called_once_with(Bucket="bucket", Key="1/backup.gz")
        assert artifact.data == b"payload"
        assert artifact.content_type == "application/gzip"
        assert artifact.cache_control is None

    @pytest.mark.asyncio
    async def test_get_missing_key(self):
        client = MagicMock()
        client.get_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")

        assert await S3ArtifactStore("bucket", client=client).get("1/en.json") is None

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        client = MagicMock()
        client.get_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "GetObject")

        with pytest.raises(ClientError):
            await S3ArtifactStore("bucket", client=client).get("1/en.json")

    def test_bucket_required(self):
        with pytest.raises(ValueError):
            S3ArtifactStore("", client=MagicMock())


class TestBuildArtifactStore:
    """Tests for backend selection."""

    def test_local(self, tmp_path):
        store = build_artifact_store(Settings(artifact_backend="local", artifact_local_path=str(tmp_path)))
        assert isinstance(store, LocalArtifactStore)

    def test_s3(self):
        store = build_artifact_store(
            Settings(
                artifact_backend="s3",
                s3_bucket="translations",
                s3_endpoint_url="https://example.r2.cloudflarestorage.com",
                s3_region="auto",
                s3_access_key_id="key",
                s3_secret_access_key="secret",
            )
        )
        assert isinstance(store, S3ArtifactStore)
        assert store.bucket == "translations"

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_artifact_store(Settings(artifact_backend="ftp"))
