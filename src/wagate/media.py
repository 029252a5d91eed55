from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

_DATA_URI_MARKER = "base64,"


@dataclass(frozen=True, slots=True)
class MessageMedia:
    """An outbound attachment: raw bytes plus the metadata the transport needs."""

    mimetype: str
    data: bytes
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)


def strip_data_uri(content: str) -> str:
    """
    Drop a `data:<type>;base64,` prefix if present.

    Everything up to and including the first `base64,` marker is removed; plain
    base64 text is returned unchanged.
    """

    _, sep, rest = content.partition(_DATA_URI_MARKER)
    return rest if sep else content


def decode_content(content: str) -> bytes:
    """
    Decode caller-supplied base64 (optionally data-URI prefixed) into bytes.

    Raises `ValueError` on malformed input.
    """

    payload = "".join(strip_data_uri(content).split())
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 content: {e}") from e
