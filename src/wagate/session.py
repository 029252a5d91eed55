from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .events import (
    AuthFailure,
    Authenticated,
    Disconnected,
    LoadingProgress,
    PairingCodeIssued,
    Ready,
    SessionEvent,
)
from .exceptions import (
    AlreadyAuthenticatedError,
    NotAuthenticatedError,
    NotReadyError,
    PairingNotAvailableError,
    TransportError,
)
from .pairing import PairingCodeCache, PairingEncoder, PairingPayload, render_qr_png
from .transport.base import (
    EVENT_AUTH_FAILURE,
    EVENT_AUTHENTICATED,
    EVENT_DISCONNECTED,
    EVENT_LOADING_SCREEN,
    EVENT_QR,
    EVENT_READY,
    ClientInfo,
    Transport,
    TransportFactory,
    TransportOptions,
)
from .util.asyncio import cancel_all, spawn

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZING = "INITIALIZING"
    AWAITING_PAIRING = "AWAITING_PAIRING"
    READY = "READY"
    DISCONNECTED = "DISCONNECTED"
    TERMINATED = "TERMINATED"


@dataclass(slots=True)
class SessionConfig:
    # How long a pairing-image request waits for the first code while initializing.
    pairing_wait_s: float = 10.0
    # Start a fresh transport after logout so a new pairing code becomes available.
    restart_after_logout: bool = True
    # Re-initialize this long after an unsolicited disconnect; None disables it.
    reconnect_delay_s: float | None = None

    transport: TransportOptions = field(default_factory=TransportOptions)


@dataclass(frozen=True, slots=True)
class SessionStatus:
    state: str
    session: SessionState
    connected: bool
    info: ClientInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "state": self.state,
            "session": self.session.value,
            "connected": self.connected,
        }
        if self.info is not None:
            out["info"] = self.info.to_dict()
        return out


class Session:
    """
    Owner of the one transport connection this gateway manages.

    Transport listeners translate each emission into a typed event and queue it,
    and a single consumer task applies the transitions in order. The one thing a
    listener does directly is close the readiness gate on a disconnect or auth
    failure. Outbound code gets the transport only through `require_ready()`.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        *,
        config: SessionConfig | None = None,
        encoder: PairingEncoder = render_qr_png,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or SessionConfig()
        self._factory = transport_factory
        self._encoder = encoder
        self._pairing = PairingCodeCache(clock=clock)

        self._state = SessionState.UNINITIALIZED
        self._ready = False
        self._transport: Transport | None = None
        # Bumped whenever a transport is created or released; events tagged with
        # an older generation come from a released handle and are dropped.
        self._generation = 0

        self._inbox: asyncio.Queue[SessionEvent] | None = None
        # Disconnect/auth-failure events enqueued but not yet applied.
        self._pending_closes = 0
        self._consumer_task: asyncio.Task[object] | None = None
        self._init_task: asyncio.Task[object] | None = None
        self._reconnect_task: asyncio.Task[object] | None = None

    def current_state(self) -> SessionState:
        return self._state

    def is_ready(self) -> bool:
        return self._ready

    def pairing_payload(self) -> PairingPayload | None:
        return self._pairing.current

    @property
    def has_transport(self) -> bool:
        return self._transport is not None

    async def initialize(self) -> None:
        """
        Create the transport, register listeners and start connecting.

        Returns once listeners are in place; the transport's own `initialize()`
        keeps running in the background for the whole pairing flow. A handle left
        behind by a disconnect is released and replaced.
        """

        if self._transport is not None:
            if self._state is not SessionState.DISCONNECTED:
                logger.info("session already initialized (state=%s)", self._state.value)
                return
            logger.info("replacing disconnected transport")
            await self.destroy()

        logger.info("initializing transport (client_id=%s)", self.config.transport.client_id)
        transport = self._factory(self.config.transport)
        self._generation += 1
        generation = self._generation
        if self._state is SessionState.TERMINATED:
            self._set_state(SessionState.UNINITIALIZED)

        self._inbox = asyncio.Queue()
        self._pending_closes = 0
        self._bind(transport, generation)
        self._transport = transport
        self._set_state(SessionState.INITIALIZING)

        self._consumer_task = spawn(self._consume(self._inbox), name="wagate.session.events")
        self._init_task = spawn(
            self._start_transport(transport, generation), name="wagate.session.initialize"
        )

    async def reinitialize(self) -> None:
        await self.destroy()
        await self.initialize()

    async def settle(self) -> None:
        """Wait until every queued lifecycle event has been applied."""

        if self._inbox is not None:
            await self._inbox.join()

    def require_ready(self) -> Transport:
        if not self._ready or self._transport is None:
            raise NotReadyError(
                "Client is not ready. Please authenticate first by scanning QR code."
            )
        return self._transport

    async def pairing_image(self, max_wait_s: float | None = None) -> bytes:
        """
        Render the newest pairing code as PNG bytes.

        While the transport is still initializing and no code has been issued,
        waits up to `max_wait_s` (default `config.pairing_wait_s`) for one. A
        disconnected session with no reconnect pending is initialized again first.
        """

        if self._ready:
            raise AlreadyAuthenticatedError(
                "Already authenticated. Please logout first to get a new QR code."
            )

        if self._state is SessionState.DISCONNECTED and not self._reconnect_pending():
            await self.initialize()

        payload = self._pairing.current
        if payload is None and self._state is SessionState.INITIALIZING:
            wait_s = self.config.pairing_wait_s if max_wait_s is None else max_wait_s
            payload = await self._pairing.wait(wait_s)
            if self._ready:
                raise AlreadyAuthenticatedError(
                    "Already authenticated. Please logout first to get a new QR code."
                )

        if payload is None:
            raise PairingNotAvailableError(
                "QR code not available. Client might be authenticated already or still "
                "initializing. Please try again in a moment."
            )

        try:
            return await asyncio.to_thread(self._encoder, payload.code)
        except Exception as e:
            logger.error("error generating QR code: %s", e)
            raise TransportError.wrap("Failed to generate QR code", e) from e

    async def status(self) -> SessionStatus:
        transport = self._transport
        if transport is None:
            return SessionStatus(state="UNPAIRED", session=self._state, connected=False)

        try:
            state = await transport.get_state()
        except Exception as e:
            raise TransportError.wrap("Failed to get status", e) from e

        info: ClientInfo | None = None
        if self._ready:
            try:
                info = await transport.get_info()
            except Exception:
                logger.exception("error getting client info")

        return SessionStatus(state=state, session=self._state, connected=self._ready, info=info)

    async def logout(self) -> None:
        """
        End the authenticated session and release the transport.

        Local state is reset before the transport is asked to log out, and the
        handle is released even when that call fails; the failure is re-raised
        as `TransportError` afterwards.
        """

        transport = self._transport
        if not self._ready or transport is None:
            raise NotAuthenticatedError("Client is not authenticated")

        logger.info("logging out")
        self._ready = False
        self._pairing.clear()
        self._set_state(SessionState.DISCONNECTED)

        try:
            await transport.logout()
        except Exception as e:
            logger.error("error during logout: %s", e)
            raise TransportError.wrap("Failed to logout", e) from e
        else:
            logger.info("logged out successfully")
        finally:
            await self.destroy()
            if self.config.restart_after_logout:
                try:
                    await self.initialize()
                except Exception:
                    logger.exception("error restarting session after logout")

    async def destroy(self) -> None:
        """Release the transport. Idempotent; transport errors are logged, not raised."""

        transport = await self._release()
        if transport is None:
            return

        logger.info("destroying transport")
        try:
            await transport.destroy()
        except Exception:
            logger.exception("error destroying transport")
        else:
            logger.info("transport destroyed")

    async def _release(self) -> Transport | None:
        transport, self._transport = self._transport, None
        self._generation += 1
        self._ready = False
        self._pairing.clear()
        self._inbox = None
        self._pending_closes = 0
        if transport is not None:
            self._set_state(SessionState.TERMINATED)

        init_task, self._init_task = self._init_task, None
        consumer_task, self._consumer_task = self._consumer_task, None
        reconnect_task, self._reconnect_task = self._reconnect_task, None
        await cancel_all(init_task, consumer_task, reconnect_task)
        return transport

    def _bind(self, transport: Transport, generation: int) -> None:
        def put(event: SessionEvent) -> None:
            self._enqueue(generation, event)

        transport.on(EVENT_QR, lambda code, *_: put(PairingCodeIssued(code=str(code))))
        transport.on(EVENT_AUTHENTICATED, lambda *_: put(Authenticated()))
        transport.on(
            EVENT_AUTH_FAILURE, lambda message=None, *_: put(AuthFailure(_text(message)))
        )
        transport.on(EVENT_READY, lambda *_: put(Ready()))
        transport.on(
            EVENT_DISCONNECTED, lambda reason=None, *_: put(Disconnected(_text(reason)))
        )
        transport.on(
            EVENT_LOADING_SCREEN,
            lambda percent=0, message=None, *_: put(LoadingProgress(int(percent), _text(message))),
        )

    def _enqueue(self, generation: int, event: SessionEvent) -> None:
        if generation != self._generation or self._inbox is None:
            logger.debug("dropping %s from a released transport", type(event).__name__)
            return
        # The readiness gate closes as soon as the transport reports trouble, not
        # when the consumer gets round to the event.
        if isinstance(event, (AuthFailure, Disconnected)):
            self._ready = False
            self._pending_closes += 1
        if isinstance(event, Disconnected):
            self._pairing.clear()
        self._inbox.put_nowait(event)

    async def _start_transport(self, transport: Transport, generation: int) -> None:
        try:
            await transport.initialize()
        except Exception as e:
            logger.exception("transport initialization failed")
            self._enqueue(generation, Disconnected(reason=f"initialization failed: {e}"))

    async def _consume(self, inbox: asyncio.Queue[SessionEvent]) -> None:
        while True:
            event = await inbox.get()
            try:
                self._apply(event)
            except Exception:
                logger.exception("failed to apply %r", event)
            finally:
                inbox.task_done()

    def _apply(self, event: SessionEvent) -> None:
        if isinstance(event, PairingCodeIssued):
            rotated = self._pairing.current is not None
            self._pairing.put(event.code)
            self._ready = False
            logger.info("QR code %s", "rotated" if rotated else "received")
            self._set_state(SessionState.AWAITING_PAIRING)

        elif isinstance(event, Authenticated):
            logger.info("authentication successful")
            self._pairing.clear()
            if self._state is SessionState.AWAITING_PAIRING:
                self._set_state(SessionState.INITIALIZING)

        elif isinstance(event, AuthFailure):
            logger.error("authentication failed: %s", event.message)
            self._ready = False
            self._pending_closes -= 1

        elif isinstance(event, Ready):
            logger.info("client is ready")
            self._pairing.clear()
            # A close reported after this Ready was queued still wins.
            self._ready = self._pending_closes == 0
            self._set_state(SessionState.READY)

        elif isinstance(event, Disconnected):
            logger.warning("client disconnected: %s", event.reason)
            self._ready = False
            self._pending_closes -= 1
            self._pairing.clear()
            self._set_state(SessionState.DISCONNECTED)
            self._schedule_reconnect()

        elif isinstance(event, LoadingProgress):
            logger.info("loading... %d%%", event.percent)

    def _reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def _schedule_reconnect(self) -> None:
        delay_s = self.config.reconnect_delay_s
        if delay_s is None or self._reconnect_pending():
            return
        logger.info("reconnecting in %.1fs", delay_s)
        self._reconnect_task = spawn(
            self._reconnect_after(delay_s), name="wagate.session.reconnect"
        )

    async def _reconnect_after(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        await self.reinitialize()

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.info("session state %s -> %s", self._state.value, state.value)
        self._state = state


def _text(value: object) -> str | None:
    return None if value is None else str(value)
