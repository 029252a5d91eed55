from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def spawn(coro: Coroutine[Any, Any, T], *, name: str) -> asyncio.Task[T]:
    """Start a named background task owned by the session."""

    return asyncio.create_task(coro, name=name)


async def cancel_all(*tasks: asyncio.Task[Any] | None) -> None:
    """
    Cancel the given tasks and wait for them to unwind.

    `None` entries and finished tasks are skipped. The calling task is skipped
    as well: a reconnect task that tears the session down must not cancel itself.
    """

    current = asyncio.current_task()
    pending = [t for t in tasks if t is not None and t is not current and not t.done()]
    for t in pending:
        t.cancel()
    for t in pending:
        with contextlib.suppress(asyncio.CancelledError):
            await t
