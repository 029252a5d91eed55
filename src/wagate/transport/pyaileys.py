"""
Transport backed by pyaileys, an asyncio WhatsApp Web (multi-device) client.

pyaileys speaks the WebSocket protocol directly, so no browser is involved and
`TransportOptions.executable_path` is not used. Credentials live in a
Baileys-style multi-file folder under `TransportOptions.session_dir`.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Awaitable, Callable
from typing import Any

from pyaileys import WhatsAppClient
from pyaileys.socket import ConnectionUpdate
from pyaileys.wabinary import S_WHATSAPP_NET
from pyaileys.wabinary.jid import jid_decode
from pyaileys.wabinary.types import BinaryNode

from ..chat import INDIVIDUAL_SUFFIX
from ..media import MessageMedia
from .base import (
    EVENT_AUTH_FAILURE,
    EVENT_AUTHENTICATED,
    EVENT_DISCONNECTED,
    EVENT_QR,
    EVENT_READY,
    ClientInfo,
    EventedTransport,
    TransportOptions,
    TransportState,
)

logger = logging.getLogger(__name__)

ClientLoader = Callable[[str], Awaitable[tuple[Any, Any]]]

# Media types WhatsApp renders inline; anything else goes out as a document.
INLINE_IMAGE_TYPES = frozenset({"image/jpeg", "image/png"})
INLINE_VIDEO_TYPES = frozenset({"video/mp4"})


def to_wa_jid(chat_id: str) -> str:
    """`123@c.us` -> `123@s.whatsapp.net`; group and other JIDs pass through."""

    if chat_id.endswith(INDIVIDUAL_SUFFIX):
        return chat_id[: -len(INDIVIDUAL_SUFFIX)] + S_WHATSAPP_NET
    return chat_id


class PyaileysTransport(EventedTransport):
    def __init__(
        self, options: TransportOptions | None = None, *, client_loader: ClientLoader | None = None
    ) -> None:
        super().__init__(options)
        self._load_client: ClientLoader = client_loader or WhatsAppClient.from_auth_folder
        self._client: Any | None = None
        self._auth_state: Any | None = None

        self._state: TransportState = "UNLAUNCHED"
        self._authenticated = False
        # After a fresh pairing the server closes the stream and asks for a restart
        # (stream error 515); that close is not a disconnect.
        self._restart_pending = False
        self._closing = False

    async def initialize(self) -> None:
        folder = self.options.session_dir
        logger.info("loading credentials from %s", folder)
        self._closing = False
        self._state = "OPENING"

        self._client, self._auth_state = await self._load_client(str(folder))
        self._client.on("connection.update", self._on_connection_update)
        self._client.on("creds.update", self._on_creds_update)
        self._client.on("cb:failure", self._on_failure)

        await self._client.connect()
        await self._auth_state.save_creds()

    async def send_message(
        self, chat_id: str, content: str | MessageMedia, *, caption: str | None = None
    ) -> str:
        client = self._require_client()
        jid = to_wa_jid(chat_id)
        if not isinstance(content, MessageMedia):
            return await client.send_text(jid, content)

        if content.mimetype in INLINE_IMAGE_TYPES:
            return await client.send_image(
                jid, content.data, mimetype=content.mimetype, caption=caption
            )
        if content.mimetype in INLINE_VIDEO_TYPES:
            return await client.send_video(
                jid, content.data, mimetype=content.mimetype, caption=caption
            )
        return await client.send_document(
            jid,
            content.data,
            mimetype=content.mimetype,
            filename=content.filename,
            caption=caption,
        )

    async def get_state(self) -> TransportState:
        return self._state

    async def get_info(self) -> ClientInfo | None:
        if self._client is None:
            return None
        creds = self._client.socket.auth.creds
        me = creds.me
        decoded = jid_decode(me.id) if me else None
        if decoded is None:
            return None
        return ClientInfo(
            user=decoded.user,
            server=decoded.server,
            pushname=me.name,
            platform=creds.platform,
        )

    async def logout(self) -> None:
        """
        Unlink this companion device, close the socket and forget the credentials.
        """

        client = self._require_client()
        me = client.socket.auth.creds.me
        if me and me.id:
            await client.socket.query(
                BinaryNode(
                    tag="iq",
                    attrs={"to": S_WHATSAPP_NET, "type": "set", "xmlns": "md"},
                    content=[
                        BinaryNode(
                            tag="remove-companion-device",
                            attrs={"jid": me.id, "reason": "user_initiated"},
                        )
                    ],
                )
            )
        await self.destroy()
        await asyncio.to_thread(shutil.rmtree, self.options.session_dir, ignore_errors=True)

    async def destroy(self) -> None:
        client, self._client = self._client, None
        self._auth_state = None
        self._authenticated = False
        self._restart_pending = False
        self._state = "UNLAUNCHED"
        if client is None:
            return
        self._closing = True
        await client.disconnect()

    def _require_client(self) -> Any:
        if self._client is None:
            raise RuntimeError("transport is not initialized")
        return self._client

    async def _on_connection_update(self, update: ConnectionUpdate) -> None:
        if update.qr:
            self._state = "PAIRING"
            await self.events.emit(EVENT_QR, update.qr)

        if update.is_new_login:
            self._restart_pending = True
            self._authenticated = True
            await self.events.emit(EVENT_AUTHENTICATED)

        if update.connection == "open":
            self._restart_pending = False
            self._state = "CONNECTED"
            if not self._authenticated:
                # Restored from stored credentials; no pairing happened.
                self._authenticated = True
                await self.events.emit(EVENT_AUTHENTICATED)
            await self.events.emit(EVENT_READY)

        elif update.connection == "close":
            if self._closing:
                return
            if self._restart_pending:
                logger.info("restarting connection after pairing")
                return
            self._state = "UNPAIRED"
            self._authenticated = False
            reason = str(update.last_disconnect) if update.last_disconnect else "connection closed"
            await self.events.emit(EVENT_DISCONNECTED, reason)

    async def _on_creds_update(self, _creds: Any) -> None:
        if self._auth_state is not None:
            await self._auth_state.save_creds()

    async def _on_failure(self, node: BinaryNode) -> None:
        reason = node.attrs.get("reason", "unknown")
        self._state = "UNPAIRED"
        await self.events.emit(EVENT_AUTH_FAILURE, f"connection failure (reason={reason})")
