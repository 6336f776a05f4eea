"""
Content layer: typed records, repository access, listing pipeline and the
impact counter.
"""

from .errors import AuthError, BusyError, ContentError, FetchError, NotFoundError, WriteError
from .list_view import ALL, Failed, ListViewController, Loaded, Loading
from .records import Collection, ContentRecord, slugify
from .repository import ContentRepository, RecordQuery, Upload

__all__ = [
    "ALL",
    "AuthError",
    "BusyError",
    "Collection",
    "ContentError",
    "ContentRecord",
    "ContentRepository",
    "Failed",
    "FetchError",
    "ListViewController",
    "Loaded",
    "Loading",
    "NotFoundError",
    "RecordQuery",
    "Upload",
    "WriteError",
    "slugify",
]
