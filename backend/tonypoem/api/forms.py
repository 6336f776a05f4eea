"""
Helpers shared by the form-handling routes: reading multipart uploads,
validating them against the upload settings, and keying submissions for
the busy guard.
"""

from typing import Any, Dict, Hashable, List, Mapping

from starlette.datastructures import FormData, UploadFile

from tonypoem.config import Settings
from tonypoem.core.content.records import Collection
from tonypoem.core.content.repository import Upload


class UploadRejected(ValueError):
    """An uploaded file failed type or size checks."""


def text_fields(form: FormData) -> Dict[str, str]:
    """Plain text values of a submitted form (files excluded)."""
    return {key: value for key, value in form.items() if isinstance(value, str)}


async def read_uploads(form: FormData, field: str, config: Settings) -> List[Upload]:
    """
    Read every file submitted under `field`.

    Empty file inputs (no filename) are skipped.

    Raises:
        UploadRejected: Unsupported content type or file too large
    """
    uploads: List[Upload] = []
    for item in form.getlist(field):
        if not isinstance(item, UploadFile) or not item.filename:
            continue
        content_type = item.content_type or "application/octet-stream"
        if content_type not in config.allowed_image_types:
            raise UploadRejected(f"{item.filename}: unsupported file type {content_type}")
        data = await item.read()
        if len(data) > config.max_upload_size:
            limit_mb = config.max_upload_size / (1024 * 1024)
            raise UploadRejected(f"{item.filename}: file is larger than {limit_mb:.0f} MB")
        uploads.append(Upload(filename=item.filename, data=data, content_type=content_type))
    return uploads


def submission_key(collection: Collection, fields: Mapping[str, Any]) -> Hashable:
    """Busy-guard key for a form submission: identical content, same key."""
    return ("submit", collection.value, tuple(sorted((k, str(v)) for k, v in fields.items())))


def delete_key(collection: Collection, record_id: str) -> Hashable:
    return ("delete", collection.value, record_id)
