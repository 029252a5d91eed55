from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol, TypeAlias, runtime_checkable

from ..media import MessageMedia
from ..util.events import AsyncEventEmitter, Listener

# Lifecycle events every transport emits.
EVENT_QR = "qr"
EVENT_AUTHENTICATED = "authenticated"
EVENT_AUTH_FAILURE = "auth_failure"
EVENT_READY = "ready"
EVENT_DISCONNECTED = "disconnected"
EVENT_LOADING_SCREEN = "loading_screen"

TransportState: TypeAlias = Literal[
    "CONNECTED",
    "OPENING",
    "PAIRING",
    "UNPAIRED",
    "TIMEOUT",
    "CONFLICT",
    "UNLAUNCHED",
    "DEPRECATED_VERSION",
    "TOS_BLOCK",
    "PROXYBLOCK",
]

DEFAULT_CLIENT_ID = "whatsapp-web-api"
DEFAULT_DATA_PATH = "./.wwebjs_auth/"


@dataclass(frozen=True, slots=True)
class TransportOptions:
    """
    Construction parameters handed to a transport factory.

    `executable_path` locates the native runtime (a Chromium build) for
    browser-backed transports; protocol-level transports ignore it.
    """

    client_id: str = DEFAULT_CLIENT_ID
    data_path: Path = field(default_factory=lambda: Path(DEFAULT_DATA_PATH))
    executable_path: str | None = None

    @property
    def session_dir(self) -> Path:
        """Directory holding persisted credentials for this client id."""

        return self.data_path / f"session-{self.client_id}"


@dataclass(frozen=True, slots=True)
class ClientInfo:
    user: str
    server: str
    pushname: str | None = None
    platform: str | None = None

    @property
    def serialized(self) -> str:
        return f"{self.user}@{self.server}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "wid": {"user": self.user, "server": self.server, "_serialized": self.serialized},
            "pushname": self.pushname,
            "platform": self.platform,
        }


@runtime_checkable
class Transport(Protocol):
    """
    The connection to the remote messaging service.

    Implementations emit the `EVENT_*` lifecycle events through `on` listeners.
    `send_message` returns the transport-assigned message id.
    """

    def on(self, event: str, listener: Listener) -> None: ...

    async def initialize(self) -> None: ...

    async def send_message(
        self, chat_id: str, content: str | MessageMedia, *, caption: str | None = None
    ) -> str: ...

    async def get_state(self) -> TransportState: ...

    async def get_info(self) -> ClientInfo | None: ...

    async def logout(self) -> None: ...

    async def destroy(self) -> None: ...


TransportFactory: TypeAlias = Callable[[TransportOptions], Transport]


class EventedTransport:
    """Shared listener plumbing for transport implementations."""

    def __init__(self, options: TransportOptions | None = None) -> None:
        self.options = options or TransportOptions()
        self.events = AsyncEventEmitter()

    def on(self, event: str, listener: Listener) -> None:
        self.events.on(event, listener)
