from __future__ import annotations

import re
from typing import Optional

from src.relay.models import DocumentMetadata

GENERIC_MIME_TYPE = "application/octet-stream"

MIME_EXTENSIONS = {
    "application/pdf": ".pdf",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "text/plain": ".txt",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
}

UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_.\-]")


def base_media_type(mime_type: Optional[str]) -> str:
    """Strip parameters such as ``; charset=utf-8`` and lowercase the type."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def extension_for(mime_type: Optional[str]) -> str:
    return MIME_EXTENSIONS.get(base_media_type(mime_type), "")


def resolve_mime_type(
    export_mime_type: Optional[str],
    content_type: Optional[str],
    metadata: DocumentMetadata,
) -> str:
    """Export target wins, then the response header, then Drive metadata."""
    return export_mime_type or content_type or metadata.mime_type or GENERIC_MIME_TYPE


def sanitize_filename(name: str) -> str:
    return UNSAFE_FILENAME_RE.sub("_", name)


def resolve_filename(
    document_id: str,
    mime_type: str,
    desired: Optional[str] = None,
    metadata: Optional[DocumentMetadata] = None,
) -> str:
    name = desired or (metadata.name if metadata else None)
    if not name:
        name = f"{document_id}{extension_for(mime_type)}"
    return sanitize_filename(name)
