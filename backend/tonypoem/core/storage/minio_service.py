"""
MinIO Storage Service.

Blob store backend using the MinIO S3-compatible API. Uploaded images land
in a single bucket with a public-read policy so the URLs stored on content
records can be embedded directly in pages.
"""

import json
import logging
from io import BytesIO
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

from minio import Minio
from minio.error import S3Error

from tonypoem.config import Settings, settings as default_settings
from tonypoem.core.storage.blob_store import BlobStore

logger = logging.getLogger("tonypoem.minio")


def public_read_policy(bucket: str) -> str:
    """Bucket policy allowing anonymous GetObject on every key."""
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"AWS": ["*"]},
                "Action": ["s3:GetObject"],
                "Resource": [f"arn:aws:s3:::{bucket}/*"],
            }
        ],
    })


class MinIOBlobStore(BlobStore):
    """
    MinIO blob store.

    Provides:
    - Bucket bootstrap with a public-read policy
    - Object upload returning a public URL
    - Delete-by-URL tolerant of missing objects
    """

    def __init__(self, config: Optional[Settings] = None, client: Optional[Minio] = None):
        config = config or default_settings
        self.endpoint = config.minio_endpoint
        self.public_endpoint = config.minio_public_endpoint or config.minio_endpoint
        self.access_key = config.minio_access_key
        self.secret_key = config.minio_secret_key
        self.secure = config.minio_secure
        self.bucket = config.minio_bucket
        self._client: Optional[Minio] = client
        self._bucket_ready = False

    @property
    def client(self) -> Minio:
        """Get or create MinIO client (lazy initialization)."""
        if self._client is None:
            self._client = Minio(
                endpoint=self.endpoint,
                access_key=self.access_key,
                secret_key=self.secret_key,
                secure=self.secure,
            )
            logger.info(
                f"MinIO client initialized (endpoint={self.endpoint}, "
                f"secure={self.secure})"
            )
        return self._client

    @property
    def public_base_url(self) -> str:
        protocol = "https" if self.secure else "http"
        return f"{protocol}://{self.public_endpoint}/{self.bucket}"

    # =========================================================================
    # BUCKET OPERATIONS
    # =========================================================================

    def ensure_bucket(self) -> bool:
        """
        Create the media bucket if it doesn't exist and make it publicly readable.

        Returns:
            True if bucket was created, False if it already existed
        """
        try:
            created = False
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
                logger.info(f"Created bucket: {self.bucket}")
                created = True
            self.client.set_bucket_policy(self.bucket, public_read_policy(self.bucket))
            self._bucket_ready = True
            return created
        except S3Error as e:
            logger.error(f"Failed to prepare bucket {self.bucket}: {e}")
            raise

    def object_exists(self, key: str) -> bool:
        try:
            self.client.stat_object(self.bucket, key)
            return True
        except S3Error as e:
            if e.code == "NoSuchKey":
                return False
            raise

    def key_from_url(self, url: str) -> Optional[str]:
        path = unquote(urlparse(url).path).lstrip("/")
        prefix = f"{self.bucket}/"
        if not path.startswith(prefix):
            return None
        return path[len(prefix):]

    # =========================================================================
    # BLOB OPERATIONS
    # =========================================================================

    def put(self, key: str, data: bytes, content_type: str) -> str:
        if not self._bucket_ready:
            self.ensure_bucket()
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=key,
            data=BytesIO(data),
            length=len(data),
            content_type=content_type or "application/octet-stream",
        )
        logger.info(f"Uploaded object {self.bucket}/{key} ({len(data)} bytes)")
        return f"{self.public_base_url}/{key}"

    def delete_by_url(self, url: str) -> bool:
        key = self.key_from_url(url)
        if key is None or not self.object_exists(key):
            return False
        self.client.remove_object(self.bucket, key)
        logger.info(f"Deleted object {self.bucket}/{key}")
        return True

    # =========================================================================
    # HEALTH CHECK
    # =========================================================================

    def check_health(self) -> Dict[str, Any]:
        try:
            exists = self.client.bucket_exists(self.bucket)
            return {
                "status": "healthy" if exists else "unhealthy",
                "backend": "minio",
                "bucket": self.bucket,
                "bucket_exists": exists,
            }
        except Exception as e:
            logger.error(f"MinIO health check failed: {e}")
            return {"status": "unhealthy", "backend": "minio", "error": str(e)}
