from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from ..media import decode_content


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone: str = Field(min_length=1)
    is_group: StrictBool = Field(alias="isGroup")
    message: str = Field(min_length=1)


class SendFileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone: str = Field(min_length=1)
    is_group: StrictBool = Field(alias="isGroup")
    filename: str = Field(min_length=1)
    caption: str | None = None
    base64: bytes = Field(min_length=1)

    @field_validator("base64", mode="before")
    @classmethod
    def _decode(cls, v: object) -> bytes:
        # Decoded once here; a `data:<type>;base64,` prefix is accepted.
        if not isinstance(v, str):
            raise ValueError("expected a base64 string")
        return decode_content(v)


def ok(message: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    out: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        out["data"] = data
    return out


def error_body(
    error: str, *, code: str | None = None, details: str | None = None
) -> dict[str, Any]:
    out: dict[str, Any] = {"success": False}
    if code is not None:
        out["code"] = code
    out["error"] = error
    if details:
        out["details"] = details
    return out
