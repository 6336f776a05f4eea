"""
Unit tests for ContentRecord mapping and defaulting rules.
"""

from datetime import date, datetime

import pytest

from tonypoem.core.content.records import Collection, ContentRecord, parse_date, slugify


class TestSlugify:

    @pytest.mark.parametrize("text,expected", [
        ("The Future of African Youth", "the-future-of-african-youth"),
        ("  Padded   Title ", "padded-title"),
        ("Tabs\tand\nnewlines", "tabs-and-newlines"),
        ("", ""),
    ])
    def test_slugify(self, text, expected):
        assert slugify(text) == expected


class TestParseDate:

    @pytest.mark.parametrize("value,expected", [
        ("2024-03-10", datetime(2024, 3, 10)),
        ("2024-03-10T08:30:00", datetime(2024, 3, 10, 8, 30)),
        ("March 10, 2024", datetime(2024, 3, 10)),
        ("Feb 25, 2024", datetime(2024, 2, 25)),
        (date(2023, 1, 15), datetime(2023, 1, 15)),
    ])
    def test_parses(self, value, expected):
        assert parse_date(value).replace(tzinfo=None) == expected

    def test_utc_suffix(self):
        parsed = parse_date("2024-03-10T08:30:00Z")
        assert parsed.year == 2024
        assert parsed.utcoffset().total_seconds() == 0

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 12345])
    def test_invalid_returns_none(self, value):
        assert parse_date(value) is None


class TestDocumentMapping:

    def test_from_document_maps_camel_case(self):
        record = ContentRecord.from_document("abc", {
            "title": "Hello",
            "imageUrl": "/media/blogs/a.png",
            "createdAt": "2024-01-01T00:00:00+00:00",
            "views": 10,
        }, Collection.BLOGS)

        assert record.id == "abc"
        assert record.collection is Collection.BLOGS
        assert record.image_url == "/media/blogs/a.png"
        assert record.created_at == "2024-01-01T00:00:00+00:00"
        assert record.extra == {"views": 10}

    def test_from_document_drops_empty_images(self):
        record = ContentRecord.from_document("p", {"images": ["/media/a.png", "", None]})
        assert record.images == ["/media/a.png"]

    def test_from_document_non_list_images(self):
        record = ContentRecord.from_document("p", {"images": "oops"})
        assert record.images == []


class TestDefaults:

    def test_empty_record_defaults(self):
        record = ContentRecord(id="x")
        assert record.display_title == "Untitled"
        assert record.category == "Uncategorized"
        assert record.year == "Unknown"
        assert record.formatted_date == "Date unavailable"
        assert record.image_urls == []
        assert record.summary == ""

    def test_display_title_falls_back_to_name(self):
        assert ContentRecord(id="x", name="Jane").display_title == "Jane"

    def test_formatted_date(self):
        assert ContentRecord(id="x", date="2024-03-05").formatted_date == "March 5, 2024"

    def test_year(self):
        assert ContentRecord(id="x", date="2023-12-31T23:00:00").year == "2023"

    def test_image_urls_combines_without_duplicates(self):
        record = ContentRecord(id="x", image_url="/a.png", images=["/a.png", "/b.png"])
        assert record.image_urls == ["/a.png", "/b.png"]

    def test_summary_strips_html_and_truncates(self):
        record = ContentRecord(id="x", content="<p>Hello <b>world</b></p>" + " word" * 60)
        assert record.summary.startswith("Hello world word")
        assert "<" not in record.summary
        assert len(record.summary) <= 160
        assert record.summary.endswith("...")
