"""
Content repository.

Translates page-level intents into document store and blob store calls and
hides the query syntax behind a handful of verbs:

    list_all / list_filtered / get       reads, FetchError / NotFoundError
    create / update / remove             writes, WriteError
    upload_blob / delete_blob            media, WriteError / best-effort
    create_with_media / remove_with_media
                                         upload-then-insert and
                                         delete-then-clean-up sequencing

Every call is single-shot: there is no retry, and nothing here keeps state
between calls.

Usage:
    repository = ContentRepository(database, blob_store)
    posts = await repository.list_all(Collection.BLOGS)
    related = await repository.list_filtered(
        Collection.BLOGS,
        RecordQuery(field="topic", equals=post.topic, exclude_id=post.id,
                    limit=3, order_by="date"),
    )
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from tonypoem.core.content.errors import FetchError, NotFoundError, WriteError
from tonypoem.core.content.records import SLUG_PREFIXES, Collection, ContentRecord, slugify
from tonypoem.core.database.models import ContentDocument
from tonypoem.core.shared.database_service import DatabaseService
from tonypoem.core.storage.blob_store import BlobStore

logger = logging.getLogger("tonypoem.content")

_STORE_ERRORS = (SQLAlchemyError, OSError)

# Characters kept in blob key names; everything else is URL-reserved or unsafe
_UNSAFE_KEY_CHARS = re.compile(r"[^a-z0-9._-]+")


@dataclass(frozen=True)
class RecordQuery:
    """Equality query on one document field."""

    field: str
    equals: Any
    exclude_id: Optional[str] = None
    limit: Optional[int] = None
    order_by: Optional[str] = None
    descending: bool = True


@dataclass(frozen=True)
class Upload:
    """One file received from a form."""

    filename: str
    data: bytes
    content_type: str = "application/octet-stream"


def blob_key(prefix: str, filename: str) -> str:
    """
    `{prefix}/{name}-{timestamp_ms}-{token}`; the suffix keeps keys unique.

    `name` is reduced to `[a-z0-9._-]` so the key can be used verbatim in a URL.
    """
    name = PurePosixPath((filename or "upload").replace("\\", "/")).name or "upload"
    name = _UNSAFE_KEY_CHARS.sub("-", slugify(name))
    name = re.sub(r"-{2,}", "-", name).strip("-.") or "upload"
    token = uuid.uuid4().hex[:8]
    return f"{prefix.strip('/')}/{name}-{int(time.time() * 1000)}-{token}"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _with_slug(collection: Collection, data: Dict[str, Any]) -> Dict[str, Any]:
    prefix = SLUG_PREFIXES.get(collection)
    label = data.get("title") or data.get("name")
    if prefix and label:
        data["slug"] = f"{prefix}{slugify(label)}"
    return data


class ContentRepository:
    """Document and blob access for every content collection."""

    def __init__(self, database: DatabaseService, blob_store: BlobStore):
        self.database = database
        self.blob_store = blob_store

    # =========================================================================
    # READS
    # =========================================================================

    async def list_all(self, collection: Collection) -> List[ContentRecord]:
        """Every record in `collection`, in creation order."""
        try:
            async with self.database.get_session() as session:
                result = await session.execute(
                    select(ContentDocument)
                    .where(ContentDocument.collection == collection.value)
                    .order_by(ContentDocument.created_at, ContentDocument.id)
                )
                documents = result.scalars().all()
        except _STORE_ERRORS as e:
            logger.error(f"Failed to list {collection.value}: {e}")
            raise FetchError(f"list {collection.value} failed: {e}") from e

        return [ContentRecord.from_document(d.id, d.data, collection) for d in documents]

    async def list_filtered(self, collection: Collection, query: RecordQuery) -> List[ContentRecord]:
        """
        Records whose `query.field` equals `query.equals`.

        The id exclusion and the cap run after the equality query, so a
        capped result never comes up short because the excluded record
        happened to be among the first matches.
        """
        field = ContentDocument.data[query.field].as_string()
        statement = (
            select(ContentDocument)
            .where(ContentDocument.collection == collection.value)
            .where(field == str(query.equals))
        )
        if query.order_by:
            order_column = ContentDocument.data[query.order_by].as_string()
            statement = statement.order_by(
                order_column.desc() if query.descending else order_column.asc(),
                ContentDocument.created_at.desc() if query.descending else ContentDocument.created_at,
            )
        else:
            statement = statement.order_by(ContentDocument.created_at, ContentDocument.id)

        try:
            async with self.database.get_session() as session:
                result = await session.execute(statement)
                documents = result.scalars().all()
        except _STORE_ERRORS as e:
            logger.error(f"Failed to query {collection.value} by {query.field}: {e}")
            raise FetchError(f"query {collection.value} failed: {e}") from e

        records = [
            ContentRecord.from_document(d.id, d.data, collection)
            for d in documents
            if d.id != query.exclude_id
        ]
        if query.limit is not None:
            records = records[: query.limit]
        return records

    async def get(self, collection: Collection, record_id: str) -> ContentRecord:
        try:
            async with self.database.get_session() as session:
                result = await session.execute(
                    select(ContentDocument).where(
                        ContentDocument.collection == collection.value,
                        ContentDocument.id == record_id,
                    )
                )
                document = result.scalar_one_or_none()
        except _STORE_ERRORS as e:
            logger.error(f"Failed to load {collection.value}/{record_id}: {e}")
            raise FetchError(f"get {collection.value}/{record_id} failed: {e}") from e

        if document is None:
            raise NotFoundError(f"{collection.value}/{record_id} does not exist")
        return ContentRecord.from_document(document.id, document.data, collection)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create(self, collection: Collection, fields: Dict[str, Any]) -> str:
        """
        Insert a record and return its generated id.

        Stamps `createdAt` and derives `slug` (blogs, programs) before the
        insert; the store computes neither.
        """
        data = _with_slug(collection, dict(fields))
        data["createdAt"] = _utcnow_iso()
        document = ContentDocument(id=str(uuid.uuid4()), collection=collection.value, data=data)

        try:
            async with self.database.get_session() as session:
                session.add(document)
        except _STORE_ERRORS as e:
            logger.error(f"Failed to create {collection.value} record: {e}")
            raise WriteError(f"create {collection.value} failed: {e}") from e

        logger.info(f"Created {collection.value}/{document.id}")
        return document.id

    async def update(self, collection: Collection, record_id: str, fields: Dict[str, Any]) -> ContentRecord:
        """Merge `fields` into an existing record; the id never changes."""
        try:
            async with self.database.get_session() as session:
                result = await session.execute(
                    select(ContentDocument).where(
                        ContentDocument.collection == collection.value,
                        ContentDocument.id == record_id,
                    )
                )
                document = result.scalar_one_or_none()
                if document is None:
                    raise NotFoundError(f"{collection.value}/{record_id} does not exist")

                data = dict(document.data or {})
                data.update({k: v for k, v in fields.items() if k not in ("id", "createdAt")})
                if "title" in fields or "name" in fields:
                    data = _with_slug(collection, data)
                document.data = data
        except _STORE_ERRORS as e:
            logger.error(f"Failed to update {collection.value}/{record_id}: {e}")
            raise WriteError(f"update {collection.value}/{record_id} failed: {e}") from e

        logger.info(f"Updated {collection.value}/{record_id}")
        return ContentRecord.from_document(record_id, data, collection)

    async def remove(self, collection: Collection, record_id: str) -> bool:
        """
        Delete a record by id.

        Returns False, without raising, when the record is already gone (for
        instance deleted by another admin a moment earlier).
        """
        try:
            async with self.database.get_session() as session:
                result = await session.execute(
                    delete(ContentDocument).where(
                        ContentDocument.collection == collection.value,
                        ContentDocument.id == record_id,
                    )
                )
                deleted = result.rowcount or 0
        except _STORE_ERRORS as e:
            logger.error(f"Failed to delete {collection.value}/{record_id}: {e}")
            raise WriteError(f"delete {collection.value}/{record_id} failed: {e}") from e

        if not deleted:
            logger.warning(f"Delete of {collection.value}/{record_id} found nothing to delete")
            return False
        logger.info(f"Deleted {collection.value}/{record_id}")
        return True

    # =========================================================================
    # MEDIA
    # =========================================================================

    async def upload_blob(self, path_prefix: str, filename: str, data: bytes, content_type: str) -> str:
        """Store one payload under `path_prefix` and return its URL."""
        key = blob_key(path_prefix, filename)
        try:
            return await asyncio.to_thread(self.blob_store.put, key, data, content_type)
        except Exception as e:
            logger.error(f"Failed to upload blob {key}: {e}")
            raise WriteError(f"upload {key} failed: {e}") from e

    async def delete_blob(self, url: str) -> bool:
        """
        Best-effort blob deletion.

        Never raises: a missing blob or a storage failure is logged as a
        warning and reported as False.
        """
        if not url:
            return False
        try:
            deleted = await asyncio.to_thread(self.blob_store.delete_by_url, url)
        except Exception as e:
            logger.warning(f"Blob delete failed for {url}: {e}")
            return False
        if not deleted:
            logger.warning(f"Blob not found in storage: {url}")
        return deleted

    async def create_with_media(
        self,
        collection: Collection,
        fields: Dict[str, Any],
        uploads: Sequence[Upload],
        path_prefix: str,
        image_field: str = "imageUrl",
        multiple: bool = False,
    ) -> str:
        """
        Upload every file, then insert the record with the resulting URL(s).

        Uploads run before the insert; if any upload fails the insert never
        happens, and blobs already stored for this submission are removed.
        """
        urls: List[str] = []
        try:
            for upload in uploads:
                urls.append(
                    await self.upload_blob(path_prefix, upload.filename, upload.data, upload.content_type)
                )
        except WriteError:
            logger.warning(
                f"Aborting {collection.value} insert after upload failure "
                f"({len(urls)} of {len(uploads)} uploaded)"
            )
            await self._discard_blobs(urls)
            raise

        data = dict(fields)
        data[image_field] = urls if multiple else (urls[0] if urls else "")
        try:
            return await self.create(collection, data)
        except WriteError:
            await self._discard_blobs(urls)
            raise

    async def remove_with_media(self, record: ContentRecord) -> bool:
        """Delete the record, then best-effort delete every image it references."""
        if record.collection is None:
            raise WriteError(f"record {record.id} has no collection")
        removed = await self.remove(record.collection, record.id)
        for url in record.image_urls:
            await self.delete_blob(url)
        return removed

    async def _discard_blobs(self, urls: Sequence[str]) -> None:
        for url in urls:
            await self.delete_blob(url)
