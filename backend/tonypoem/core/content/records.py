"""
Typed view over content documents.

Documents are stored with the camelCase keys the site has always written
(`imageUrl`, `createdAt`, ...). ContentRecord maps them onto explicit
optional fields and owns the defaulting rules every page relies on:

    display_title   title, then name, then "Untitled"
    category        topic, or "Uncategorized"
    year            calendar year of date, or "Unknown"
    formatted_date  "March 10, 2024", or "Date unavailable"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

UNTITLED = "Untitled"
UNCATEGORIZED = "Uncategorized"
UNKNOWN_YEAR = "Unknown"
DATE_PLACEHOLDER = "Date unavailable"

_HUMAN_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%Y-%m-%d", "%d/%m/%Y")
_WHITESPACE = re.compile(r"\s+")


class Collection(str, Enum):
    """Content collections held in the document store."""

    BLOGS = "blogs"
    PROGRAMS = "programs"
    LEADERSHIP = "leadership"
    TESTIMONIALS = "testimonials"
    DONATIONS = "donations"
    CONTACTS = "contacts"

    @property
    def label(self) -> str:
        return {
            Collection.BLOGS: "Blog Posts",
            Collection.PROGRAMS: "Programs",
            Collection.LEADERSHIP: "Leadership",
            Collection.TESTIMONIALS: "Testimonials",
            Collection.DONATIONS: "Donations",
            Collection.CONTACTS: "Contact Messages",
        }[self]


# Collections whose records get a slug derived from their title/name
SLUG_PREFIXES: Dict[Collection, str] = {
    Collection.BLOGS: "/blog/",
    Collection.PROGRAMS: "/programs/",
}


def slugify(text: str) -> str:
    """Lower-case `text` and replace each whitespace run with a hyphen."""
    return _WHITESPACE.sub("-", (text or "").strip().lower())


def parse_date(value: Union[str, datetime, date_type, None]) -> Optional[datetime]:
    """Parse an ISO-8601 string or native date; None when absent or invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date_type):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _HUMAN_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


# Stored key -> attribute name, for fields whose names differ
_KEY_TO_ATTR = {
    "imageUrl": "image_url",
    "createdAt": "created_at",
    "submittedAt": "submitted_at",
}

_FIELDS = (
    "title", "name", "topic", "date", "image_url", "images", "content",
    "description", "bio", "review", "department", "email", "message", "slug",
    "created_at", "submitted_at",
)


@dataclass
class ContentRecord:
    """A document from one of the content collections."""

    id: str
    collection: Optional[Collection] = None
    title: Optional[str] = None
    name: Optional[str] = None
    topic: Optional[str] = None
    date: Union[str, datetime, None] = None
    image_url: Optional[str] = None
    images: List[str] = field(default_factory=list)
    content: Optional[str] = None
    description: Optional[str] = None
    bio: Optional[str] = None
    review: Optional[str] = None
    department: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    slug: Optional[str] = None
    created_at: Optional[str] = None
    submitted_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(
        cls,
        record_id: str,
        data: Dict[str, Any],
        collection: Optional[Collection] = None,
    ) -> "ContentRecord":
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            attr = _KEY_TO_ATTR.get(key, key)
            if attr in _FIELDS:
                values[attr] = value
            elif key != "id":
                extra[key] = value

        images = values.get("images")
        values["images"] = [url for url in images if url] if isinstance(images, list) else []
        return cls(id=record_id, collection=collection, extra=extra, **values)

    # ------------------------------------------------------------------
    # Defaulting rules
    # ------------------------------------------------------------------

    @property
    def display_title(self) -> str:
        return self.title or self.name or UNTITLED

    @property
    def category(self) -> str:
        return self.topic or UNCATEGORIZED

    @property
    def parsed_date(self) -> Optional[datetime]:
        return parse_date(self.date)

    @property
    def year(self) -> str:
        parsed = self.parsed_date
        return str(parsed.year) if parsed else UNKNOWN_YEAR

    @property
    def formatted_date(self) -> str:
        parsed = self.parsed_date
        if parsed is None:
            return DATE_PLACEHOLDER
        return f"{parsed:%B} {parsed.day}, {parsed.year}"

    @property
    def image_urls(self) -> List[str]:
        urls = [self.image_url] if self.image_url else []
        return urls + [url for url in self.images if url not in urls]

    @property
    def summary(self) -> str:
        """Plain-text teaser of the long-form field."""
        body = self.description or self.bio or self.review or self.message or self.content or ""
        plain = _WHITESPACE.sub(" ", re.sub(r"<[^>]+>", " ", body)).strip()
        return plain if len(plain) <= 160 else plain[:157].rstrip() + "..."
