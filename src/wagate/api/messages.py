from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..dispatch import Dispatcher
from .deps import ready_dispatcher
from .models import SendFileRequest, SendMessageRequest, ok

router = APIRouter()


@router.post("/send-message")
async def send_message(
    body: SendMessageRequest, dispatcher: Dispatcher = Depends(ready_dispatcher)
) -> dict[str, Any]:
    """Send a text message to an individual or a group."""
    result = await dispatcher.send_text(body.phone, body.is_group, body.message)
    return ok(
        "Message sent successfully",
        {"messageId": result.message_id, "to": body.phone, "isGroup": body.is_group},
    )


@router.post("/send-file")
async def send_file(
    body: SendFileRequest, dispatcher: Dispatcher = Depends(ready_dispatcher)
) -> dict[str, Any]:
    """Send a base64-encoded file (optionally with a caption) to an individual or a group."""
    result = await dispatcher.send_file(
        body.phone, body.is_group, body.filename, body.base64, body.caption
    )
    return ok(
        "File sent successfully",
        {
            "messageId": result.message_id,
            "to": body.phone,
            "isGroup": body.is_group,
            "filename": body.filename,
        },
    )
