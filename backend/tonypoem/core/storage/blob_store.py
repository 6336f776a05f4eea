"""
Blob storage backends.

Uploaded images are opaque blobs addressed by a key and referenced from
content records by URL. Two backends share one interface:

    FilesystemBlobStore  files under settings.media_root, served at /media
    MinIOBlobStore       MinIO/S3 bucket with a public-read policy
                         (see tonypoem.core.storage.minio_service)

Usage:
    from tonypoem.core.storage.blob_store import get_blob_store

    store = get_blob_store()
    url = store.put("blogs/cover.jpg-1700000000000-ab12cd34", data, "image/jpeg")
    store.delete_by_url(url)   # False when the blob is already gone
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import unquote, urlparse

from tonypoem.config import Settings, settings as default_settings

logger = logging.getLogger("tonypoem.storage")


class BlobStore(ABC):
    """Abstract base class for blob storage backends."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Store `data` under `key`.

        Returns:
            str: Publicly retrievable URL of the stored blob
        """

    @abstractmethod
    def delete_by_url(self, url: str) -> bool:
        """
        Delete the blob a URL points to.

        Returns:
            bool: True if deleted, False if no such blob exists
        """

    @abstractmethod
    def check_health(self) -> Dict[str, Any]:
        """Report backend connectivity."""


class FilesystemBlobStore(BlobStore):
    """
    Blob store backed by a local directory.

    Keys map to paths below `root`; URLs are `{url_prefix}/{key}`. The app
    mounts `root` at `url_prefix` so the URLs resolve.
    """

    def __init__(self, root: Path, url_prefix: str = "/media"):
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Blob key escapes media root: {key}")
        return path

    def key_from_url(self, url: str) -> Optional[str]:
        path = unquote(urlparse(url).path)
        prefix = self.url_prefix + "/"
        if not path.startswith(prefix):
            return None
        return path[len(prefix):]

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Stored blob {key} ({len(data)} bytes, {content_type})")
        return f"{self.url_prefix}/{key}"

    def delete_by_url(self, url: str) -> bool:
        key = self.key_from_url(url)
        if key is None:
            return False
        path = self._path_for(key)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted blob {key}")
        return True

    def check_health(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self.root.is_dir() else "unhealthy",
            "backend": "filesystem",
            "root": str(self.root),
        }


def get_blob_store(config: Optional[Settings] = None) -> BlobStore:
    """
    Build the blob store selected by `blob_backend`.

    Returns:
        MinIOBlobStore when blob_backend is "minio", else FilesystemBlobStore
    """
    config = config or default_settings
    if config.uses_object_storage:
        from tonypoem.core.storage.minio_service import MinIOBlobStore

        return MinIOBlobStore(config)
    return FilesystemBlobStore(config.media_root_path, config.media_url_prefix)
