from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

Listener = Callable[..., Awaitable[None]] | Callable[..., None]

logger = logging.getLogger(__name__)


class AsyncEventEmitter:
    """
    Minimal async-friendly event emitter for transport lifecycle events.

    - `on(event, fn)` registers a listener (sync or async).
    - `emit(event, *args)` calls listeners in registration order, awaiting async ones.

    A failing listener is logged and does not stop the remaining listeners: the
    emitter runs inside the transport's receive path, which must keep going.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        with contextlib.suppress(ValueError):
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    async def emit(self, event: str, *args: Any) -> bool:
        any_triggered = False
        for listener in list(self._listeners.get(event, [])):
            any_triggered = True
            try:
                res = listener(*args)
                if asyncio.iscoroutine(res):
                    await res
            except Exception:
                logger.exception("listener for %r failed", event)
        return any_triggered
