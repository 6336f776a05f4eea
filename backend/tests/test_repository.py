"""
Tests for ContentRepository against an in-memory SQLite document store and a
temporary filesystem blob store.
"""

import re
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from tonypoem.core.content.errors import FetchError, NotFoundError, WriteError
from tonypoem.core.content.records import Collection
from tonypoem.core.content.repository import RecordQuery, Upload, blob_key

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class TestBlobKey:

    def test_key_is_namespaced_and_unique(self):
        first = blob_key("program-images", "My Photo.PNG")
        second = blob_key("program-images", "My Photo.PNG")

        assert first.startswith("program-images/my-photo.png-")
        assert first != second

    @pytest.mark.parametrize("filename", ["cover #1.png", "what?.png", "r\xe9sum\xe9 100%.jpg", "a&b=c.gif"])
    def test_key_is_url_safe(self, filename):
        key = blob_key("blogs", filename)
        name = key.split("/", 1)[1]
        assert re.fullmatch(r"[a-z0-9._-]+", name)

    def test_reserved_characters_collapse(self):
        assert blob_key("blogs", "cover #1.png").startswith("blogs/cover-1.png-")
        assert blob_key("blogs", "???").startswith("blogs/upload-")


class TestReads:

    @pytest.mark.asyncio
    async def test_list_all_empty(self, repository):
        assert await repository.list_all(Collection.BLOGS) == []

    @pytest.mark.asyncio
    async def test_list_all_only_returns_collection(self, repository):
        await repository.create(Collection.BLOGS, {"title": "Post"})
        await repository.create(Collection.PROGRAMS, {"name": "Program"})

        blogs = await repository.list_all(Collection.BLOGS)
        assert [r.title for r in blogs] == ["Post"]
        assert blogs[0].collection is Collection.BLOGS

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get(Collection.BLOGS, "does-not-exist")

    @pytest.mark.asyncio
    async def test_get_wrong_collection_is_not_found(self, repository):
        record_id = await repository.create(Collection.BLOGS, {"title": "Post"})
        with pytest.raises(NotFoundError):
            await repository.get(Collection.PROGRAMS, record_id)

    @pytest.mark.asyncio
    async def test_store_failure_raises_fetch_error(self, repository):
        with patch.object(
            repository.database,
            "get_session",
            side_effect=OperationalError("SELECT", {}, Exception("database is locked")),
        ):
            with pytest.raises(FetchError):
                await repository.list_all(Collection.BLOGS)


class TestListFiltered:

    @pytest.mark.asyncio
    async def test_related_posts(self, repository):
        current = await repository.create(Collection.BLOGS, {"title": "Current", "topic": "Youth", "date": "2024-03-01"})
        await repository.create(Collection.BLOGS, {"title": "Old", "topic": "Youth", "date": "2023-01-01"})
        await repository.create(Collection.BLOGS, {"title": "Newest", "topic": "Youth", "date": "2024-06-01"})
        await repository.create(Collection.BLOGS, {"title": "Middle", "topic": "Youth", "date": "2023-09-01"})
        await repository.create(Collection.BLOGS, {"title": "Other", "topic": "Training", "date": "2024-07-01"})

        related = await repository.list_filtered(
            Collection.BLOGS,
            RecordQuery(field="topic", equals="Youth", exclude_id=current, limit=2, order_by="date"),
        )

        assert [r.title for r in related] == ["Newest", "Middle"]

    @pytest.mark.asyncio
    async def test_exclusion_applies_before_limit(self, repository):
        current = await repository.create(Collection.BLOGS, {"title": "Current", "topic": "Youth", "date": "2024-12-01"})
        await repository.create(Collection.BLOGS, {"title": "Other", "topic": "Youth", "date": "2024-01-01"})

        related = await repository.list_filtered(
            Collection.BLOGS,
            RecordQuery(field="topic", equals="Youth", exclude_id=current, limit=1, order_by="date"),
        )

        assert [r.title for r in related] == ["Other"]

    @pytest.mark.asyncio
    async def test_no_matches(self, repository):
        await repository.create(Collection.BLOGS, {"title": "Post", "topic": "Youth"})
        assert await repository.list_filtered(Collection.BLOGS, RecordQuery(field="topic", equals="Art")) == []


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_stamps_created_at_and_slug(self, repository):
        record_id = await repository.create(Collection.BLOGS, {"title": "The Future of African Youth"})
        record = await repository.get(Collection.BLOGS, record_id)

        assert record.slug == "/blog/the-future-of-african-youth"
        assert record.created_at is not None

    @pytest.mark.asyncio
    async def test_program_slug_uses_name(self, repository):
        record_id = await repository.create(Collection.PROGRAMS, {"name": "Coding Club"})
        record = await repository.get(Collection.PROGRAMS, record_id)
        assert record.slug == "/programs/coding-club"

    @pytest.mark.asyncio
    async def test_other_collections_get_no_slug(self, repository):
        record_id = await repository.create(Collection.CONTACTS, {"name": "Ada", "message": "Hi"})
        record = await repository.get(Collection.CONTACTS, record_id)
        assert record.slug is None

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, repository):
        record_id = await repository.create(Collection.BLOGS, {"title": "Draft", "topic": "News"})
        updated = await repository.update(Collection.BLOGS, record_id, {"title": "Final"})

        assert updated.id == record_id
        assert updated.topic == "News"
        assert updated.slug == "/blog/final"

    @pytest.mark.asyncio
    async def test_update_missing(self, repository):
        with pytest.raises(NotFoundError):
            await repository.update(Collection.BLOGS, "nope", {"title": "x"})


class TestRemove:

    @pytest.mark.asyncio
    async def test_remove(self, repository):
        record_id = await repository.create(Collection.TESTIMONIALS, {"name": "Jane"})
        assert await repository.remove(Collection.TESTIMONIALS, record_id) is True
        assert await repository.list_all(Collection.TESTIMONIALS) == []

    @pytest.mark.asyncio
    async def test_second_remove_is_soft_failure(self, repository):
        record_id = await repository.create(Collection.TESTIMONIALS, {"name": "Jane"})
        await repository.remove(Collection.TESTIMONIALS, record_id)
        assert await repository.remove(Collection.TESTIMONIALS, record_id) is False

    @pytest.mark.asyncio
    async def test_delete_blob_missing_is_non_fatal(self, repository):
        assert await repository.delete_blob("/media/blogs/never-uploaded.png") is False
        assert await repository.delete_blob("") is False

    @pytest.mark.asyncio
    async def test_remove_with_media_tolerates_missing_blob(self, repository):
        record_id = await repository.create(
            Collection.LEADERSHIP, {"name": "Tony", "imageUrl": "/media/leadership/gone.png"}
        )
        record = await repository.get(Collection.LEADERSHIP, record_id)

        assert await repository.remove_with_media(record) is True
        assert await repository.list_all(Collection.LEADERSHIP) == []

    @pytest.mark.asyncio
    async def test_remove_with_media_deletes_blobs(self, repository, blob_store):
        record_id = await repository.create_with_media(
            Collection.PROGRAMS,
            {"name": "Art Class"},
            [Upload("a.png", PNG, "image/png"), Upload("b.png", PNG, "image/png")],
            path_prefix="program-images",
            image_field="images",
            multiple=True,
        )
        record = await repository.get(Collection.PROGRAMS, record_id)
        paths = [blob_store.root / blob_store.key_from_url(url) for url in record.images]
        assert all(path.exists() for path in paths)

        await repository.remove_with_media(record)
        assert not any(path.exists() for path in paths)


class TestMedia:

    @pytest.mark.asyncio
    async def test_upload_blob_returns_public_url(self, repository, blob_store):
        url = await repository.upload_blob("blogs", "cover.png", PNG, "image/png")

        assert url.startswith("/media/blogs/cover.png-")
        assert (blob_store.root / blob_store.key_from_url(url)).read_bytes() == PNG

    @pytest.mark.asyncio
    async def test_reserved_filename_round_trips(self, repository, blob_store):
        url = await repository.upload_blob("blogs", "cover #1.png", PNG, "image/png")

        assert "#" not in url
        path = blob_store.root / blob_store.key_from_url(url)
        assert path.read_bytes() == PNG

        assert await repository.delete_blob(url) is True
        assert not path.exists()
        assert list((blob_store.root / "blogs").glob("*")) == []

    @pytest.mark.asyncio
    async def test_create_with_single_image(self, repository):
        record_id = await repository.create_with_media(
            Collection.BLOGS,
            {"title": "With Image"},
            [Upload("cover.png", PNG, "image/png")],
            path_prefix="blogs",
        )
        record = await repository.get(Collection.BLOGS, record_id)
        assert record.image_url.startswith("/media/blogs/")

    @pytest.mark.asyncio
    async def test_create_without_image(self, repository):
        record_id = await repository.create_with_media(Collection.BLOGS, {"title": "Plain"}, [], path_prefix="blogs")
        record = await repository.get(Collection.BLOGS, record_id)
        assert record.image_url is None or record.image_url == ""

    @pytest.mark.asyncio
    async def test_upload_failure_aborts_insert(self, repository, blob_store):
        original_put = blob_store.put
        calls = []

        def failing_put(key, data, content_type):
            calls.append(key)
            if len(calls) == 2:
                raise OSError("disk full")
            return original_put(key, data, content_type)

        with patch.object(blob_store, "put", side_effect=failing_put):
            with pytest.raises(WriteError):
                await repository.create_with_media(
                    Collection.PROGRAMS,
                    {"name": "Doomed"},
                    [Upload("a.png", PNG, "image/png"), Upload("b.png", PNG, "image/png")],
                    path_prefix="program-images",
                    image_field="images",
                    multiple=True,
                )

        # No orphan record, and the first upload was cleaned up
        assert await repository.list_all(Collection.PROGRAMS) == []
        assert list((blob_store.root / "program-images").glob("*")) == []

    @pytest.mark.asyncio
    async def test_insert_failure_discards_uploaded_blobs(self, repository, blob_store):
        with patch.object(repository, "create", side_effect=WriteError("insert failed")):
            with pytest.raises(WriteError):
                await repository.create_with_media(
                    Collection.BLOGS,
                    {"title": "Doomed"},
                    [Upload("cover.png", PNG, "image/png")],
                    path_prefix="blogs",
                )

        assert list((blob_store.root / "blogs").glob("*")) == []
