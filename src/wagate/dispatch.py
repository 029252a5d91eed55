from __future__ import annotations

import logging
from dataclasses import dataclass

from . import mime
from .chat import format_chat_id
from .exceptions import TransportError
from .media import MessageMedia, decode_content
from .session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SendResult:
    message_id: str
    chat_id: str


class Dispatcher:
    """
    The only place outbound sends are issued.

    Each call checks session readiness, formats the chat id and makes exactly one
    transport call. Failures are reported as-is: nothing is retried or queued.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    async def send_text(self, address: str, is_group: bool, text: str) -> SendResult:
        transport = self.session.require_ready()
        chat_id = format_chat_id(address, is_group)
        logger.info("sending message to %s", chat_id)

        try:
            message_id = await transport.send_message(chat_id, text)
        except Exception as e:
            logger.error("error sending message to %s: %s", chat_id, e)
            raise TransportError.wrap("Failed to send message", e) from e
        return SendResult(message_id=message_id, chat_id=chat_id)

    async def send_file(
        self,
        address: str,
        is_group: bool,
        filename: str,
        content: str | bytes,
        caption: str | None = None,
    ) -> SendResult:
        """
        Send `content` as an attachment named `filename`.

        `content` is either raw bytes or base64 text; a `data:<type>;base64,`
        prefix on the text is stripped before decoding.
        The MIME type comes from the filename extension.
        """

        transport = self.session.require_ready()
        chat_id = format_chat_id(address, is_group)
        if isinstance(content, bytes):
            data = content
        else:
            try:
                data = decode_content(content)
            except ValueError as e:
                raise TransportError.wrap("Failed to send file", e) from e

        media = MessageMedia(mimetype=mime.resolve(filename), data=data, filename=filename)
        logger.info("sending file to %s: %s (%d bytes)", chat_id, filename, media.size)
        try:
            message_id = await transport.send_message(chat_id, media, caption=caption or None)
        except Exception as e:
            logger.error("error sending file to %s: %s", chat_id, e)
            raise TransportError.wrap("Failed to send file", e) from e
        return SendResult(message_id=message_id, chat_id=chat_id)
