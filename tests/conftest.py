from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from wagate.dispatch import Dispatcher
from wagate.media import MessageMedia
from wagate.session import Session, SessionConfig
from wagate.transport.base import (
    EVENT_AUTH_FAILURE,
    EVENT_AUTHENTICATED,
    EVENT_DISCONNECTED,
    EVENT_LOADING_SCREEN,
    EVENT_QR,
    EVENT_READY,
    ClientInfo,
    EventedTransport,
    TransportOptions,
    TransportState,
)


class FakeTransport(EventedTransport):
    """In-memory transport: records calls and lets tests drive lifecycle events."""

    def __init__(self, options: TransportOptions | None = None) -> None:
        super().__init__(options)
        self.state: TransportState = "OPENING"
        self.info: ClientInfo | None = ClientInfo(
            user="5511999999999", server="c.us", pushname="Gateway", platform="android"
        )
        self.sent: list[tuple[str, str | MessageMedia, str | None]] = []

        self.initialized = False
        self.logged_out = False
        self.destroyed = False

        self.init_error: Exception | None = None
        self.send_error: Exception | None = None
        self.state_error: Exception | None = None
        self.info_error: Exception | None = None
        self.logout_error: Exception | None = None
        self.destroy_error: Exception | None = None

    async def initialize(self) -> None:
        if self.init_error:
            raise self.init_error
        self.initialized = True

    async def send_message(
        self, chat_id: str, content: str | MessageMedia, *, caption: str | None = None
    ) -> str:
        if self.send_error:
            raise self.send_error
        self.sent.append((chat_id, content, caption))
        return f"true_{chat_id}_MSG{len(self.sent)}"

    async def get_state(self) -> TransportState:
        if self.state_error:
            raise self.state_error
        return self.state

    async def get_info(self) -> ClientInfo | None:
        if self.info_error:
            raise self.info_error
        return self.info

    async def logout(self) -> None:
        self.logged_out = True
        if self.logout_error:
            raise self.logout_error

    async def destroy(self) -> None:
        self.destroyed = True
        if self.destroy_error:
            raise self.destroy_error

    async def emit_qr(self, code: str) -> None:
        self.state = "PAIRING"
        await self.events.emit(EVENT_QR, code)

    async def emit_authenticated(self) -> None:
        await self.events.emit(EVENT_AUTHENTICATED)

    async def emit_ready(self) -> None:
        self.state = "CONNECTED"
        await self.events.emit(EVENT_READY)

    async def emit_auth_failure(self, message: str = "bad credentials") -> None:
        await self.events.emit(EVENT_AUTH_FAILURE, message)

    async def emit_disconnected(self, reason: str = "NAVIGATION") -> None:
        self.state = "UNPAIRED"
        await self.events.emit(EVENT_DISCONNECTED, reason)

    async def emit_loading(self, percent: int, message: str = "WhatsApp") -> None:
        await self.events.emit(EVENT_LOADING_SCREEN, percent, message)


class TransportRecorder:
    """Transport factory that remembers every transport it built."""

    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self, options: TransportOptions) -> FakeTransport:
        t = FakeTransport(options)
        self.created.append(t)
        return t

    @property
    def current(self) -> FakeTransport:
        return self.created[-1]


def fake_png(code: str) -> bytes:
    return b"\x89PNG-" + code.encode()


@pytest.fixture
def transports() -> TransportRecorder:
    return TransportRecorder()


@pytest_asyncio.fixture
async def session(transports: TransportRecorder) -> AsyncIterator[Session]:
    s = Session(transports, config=SessionConfig(pairing_wait_s=0.2), encoder=fake_png)
    yield s
    await s.destroy()


@pytest.fixture
def dispatcher(session: Session) -> Dispatcher:
    return Dispatcher(session)


async def make_ready(session: Session, transports: TransportRecorder) -> FakeTransport:
    await session.initialize()
    await session.settle()
    transport = transports.current
    await transport.emit_authenticated()
    await transport.emit_ready()
    await session.settle()
    return transport
