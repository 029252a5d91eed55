"""
Filename-based MIME type lookup for outbound media.

Classification uses the extension only; no content sniffing.
"""

from __future__ import annotations

from typing import Final

DEFAULT_MIME_TYPE: Final[str] = "application/octet-stream"

MIME_TYPES: Final[dict[str, str]] = {
    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    # Documents
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "txt": "text/plain",
    "csv": "text/csv",
    # Audio
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    # Video
    "mp4": "video/mp4",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "wmv": "video/x-ms-wmv",
    # Archives
    "zip": "application/zip",
    "rar": "application/x-rar-compressed",
    "7z": "application/x-7z-compressed",
}


def extension_of(filename: str) -> str:
    """Lower-cased text after the final `.`, or "" when there is none."""

    _, sep, ext = filename.rpartition(".")
    return ext.lower() if sep else ""


def resolve(filename: str) -> str:
    return MIME_TYPES.get(extension_of(filename), DEFAULT_MIME_TYPE)
