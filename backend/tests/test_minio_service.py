"""
Unit tests for MinIOBlobStore.

The MinIO client is mocked; tests cover bucket bootstrap, URL building and
URL -> key mapping, missing-object handling and health reporting.
"""

import json
import logging
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from minio.error import S3Error

from tonypoem.core.content.records import Collection
from tonypoem.core.content.repository import ContentRepository, Upload
from tonypoem.core.storage.blob_store import get_blob_store
from tonypoem.core.storage.minio_service import MinIOBlobStore, public_read_policy
from tonypoem.main import create_app

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class StorageError(S3Error):
    """S3Error carrying only an error code."""

    def __init__(self, code):
        Exception.__init__(self, code)
        self._error_code = code

    @property
    def code(self):
        return self._error_code

    def __str__(self):
        return f"S3 operation failed; code: {self._error_code}"


@pytest.fixture
def minio_settings(settings):
    return settings.model_copy(update={
        "blob_backend": "minio",
        "minio_endpoint": "minio:9000",
        "minio_public_endpoint": "media.example.org",
        "minio_bucket": "site-media",
    })


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.bucket_exists.return_value = True
    return client


@pytest.fixture
def store(minio_settings, mock_client):
    return MinIOBlobStore(minio_settings, client=mock_client)


class TestBackendSelection:

    def test_minio_backend_selected(self, minio_settings):
        store = get_blob_store(minio_settings)
        assert isinstance(store, MinIOBlobStore)
        assert store.bucket == "site-media"

    def test_client_is_lazy(self, minio_settings):
        with patch("tonypoem.core.storage.minio_service.Minio") as minio_cls:
            store = MinIOBlobStore(minio_settings)
            minio_cls.assert_not_called()

            assert store.client is store.client
            minio_cls.assert_called_once_with(
                endpoint="minio:9000",
                access_key=minio_settings.minio_access_key,
                secret_key=minio_settings.minio_secret_key,
                secure=False,
            )


class TestEnsureBucket:

    def test_creates_missing_bucket(self, store, mock_client):
        mock_client.bucket_exists.return_value = False

        assert store.ensure_bucket() is True
        mock_client.make_bucket.assert_called_once_with("site-media")
        mock_client.set_bucket_policy.assert_called_once_with("site-media", public_read_policy("site-media"))

    def test_existing_bucket(self, store, mock_client):
        assert store.ensure_bucket() is False
        mock_client.make_bucket.assert_not_called()

    def test_policy_allows_anonymous_reads(self):
        policy = json.loads(public_read_policy("site-media"))
        (statement,) = policy["Statement"]
        assert statement["Action"] == ["s3:GetObject"]
        assert statement["Resource"] == ["arn:aws:s3:::site-media/*"]

    def test_failure_propagates(self, store, mock_client):
        mock_client.bucket_exists.side_effect = StorageError("AccessDenied")
        with pytest.raises(S3Error):
            store.ensure_bucket()


class TestPut:

    def test_returns_public_url(self, store, mock_client):
        url = store.put("blogs/cover.png-1-abc", PNG, "image/png")

        assert url == "http://media.example.org/site-media/blogs/cover.png-1-abc"
        kwargs = mock_client.put_object.call_args.kwargs
        assert kwargs["bucket_name"] == "site-media"
        assert kwargs["object_name"] == "blogs/cover.png-1-abc"
        assert kwargs["length"] == len(PNG)
        assert kwargs["content_type"] == "image/png"

    def test_bucket_prepared_once(self, store, mock_client):
        store.put("blogs/a", PNG, "image/png")
        store.put("blogs/b", PNG, "image/png")
        assert mock_client.bucket_exists.call_count == 1

    def test_secure_url(self, minio_settings, mock_client):
        secure = MinIOBlobStore(minio_settings.model_copy(update={"minio_secure": True}), client=mock_client)
        assert secure.put("blogs/a", PNG, "image/png").startswith("https://media.example.org/")

    def test_url_maps_back_to_key(self, store):
        url = store.put("program-images/one.png-1-abc", PNG, "image/png")
        assert store.key_from_url(url) == "program-images/one.png-1-abc"

    def test_foreign_url_has_no_key(self, store):
        assert store.key_from_url("https://elsewhere.example/other-bucket/x.png") is None
        assert store.key_from_url("/media/blogs/x.png") is None


class TestDeleteByUrl:

    def test_deletes_existing_object(self, store, mock_client):
        url = "http://media.example.org/site-media/blogs/x.png"

        assert store.delete_by_url(url) is True
        mock_client.remove_object.assert_called_once_with("site-media", "blogs/x.png")

    def test_missing_object_is_not_an_error(self, store, mock_client):
        mock_client.stat_object.side_effect = StorageError("NoSuchKey")

        assert store.delete_by_url("http://media.example.org/site-media/blogs/gone.png") is False
        mock_client.remove_object.assert_not_called()

    def test_foreign_url_is_ignored(self, store, mock_client):
        assert store.delete_by_url("https://elsewhere.example/x.png") is False
        mock_client.stat_object.assert_not_called()

    def test_other_errors_propagate(self, store, mock_client):
        mock_client.stat_object.side_effect = StorageError("AccessDenied")
        with pytest.raises(S3Error):
            store.delete_by_url("http://media.example.org/site-media/blogs/x.png")


class TestRepositoryWithMinIO:

    @pytest.mark.asyncio
    async def test_missing_blob_does_not_block_record_delete(self, database, store, mock_client):
        repository = ContentRepository(database, store)
        record_id = await repository.create_with_media(
            Collection.BLOGS, {"title": "Post"}, [Upload("cover.png", PNG, "image/png")], path_prefix="blogs",
        )
        record = await repository.get(Collection.BLOGS, record_id)
        assert record.image_url.startswith("http://media.example.org/site-media/blogs/cover.png-")

        mock_client.stat_object.side_effect = StorageError("NoSuchKey")
        assert await repository.remove_with_media(record) is True
        assert await repository.list_all(Collection.BLOGS) == []

    @pytest.mark.asyncio
    async def test_storage_failure_on_delete_is_non_fatal(self, database, store, mock_client):
        repository = ContentRepository(database, store)
        mock_client.stat_object.side_effect = StorageError("AccessDenied")

        assert await repository.delete_blob("http://media.example.org/site-media/blogs/x.png") is False


class TestHealth:

    def test_healthy(self, store):
        assert store.check_health() == {
            "status": "healthy",
            "backend": "minio",
            "bucket": "site-media",
            "bucket_exists": True,
        }

    def test_unreachable(self, store, mock_client):
        mock_client.bucket_exists.side_effect = ConnectionError("connection refused")

        health = store.check_health()
        assert health["status"] == "unhealthy"
        assert "connection refused" in health["error"]


class TestAppWithMinIO:

    def test_startup_survives_unready_bucket(self, minio_settings, caplog):
        caplog.set_level(logging.WARNING)
        with patch.object(MinIOBlobStore, "ensure_bucket", side_effect=ConnectionError("refused")):
            with TestClient(create_app(minio_settings)) as client:
                assert client.get("/").status_code == 200

        assert "each upload attempts to create it until one succeeds" in caplog.text

    def test_health_degraded_when_storage_down(self, minio_settings):
        unhealthy = {"status": "unhealthy", "backend": "minio", "error": "refused"}
        with patch.object(MinIOBlobStore, "ensure_bucket", return_value=False), \
                patch.object(MinIOBlobStore, "check_health", return_value=unhealthy):
            with TestClient(create_app(minio_settings)) as client:
                body = client.get("/health").json()

        assert body["status"] == "degraded"
        assert body["storage"]["backend"] == "minio"
