"""
Pairing (QR) code cache.

The transport rotates pairing codes every ~20-60 seconds until a phone scans one.
Only the newest code is kept: a rotation replaces the cached payload, and the
cache is emptied once the session authenticates or drops.
"""

from __future__ import annotations

import asyncio
import io
import time
from collections.abc import Callable
from dataclasses import dataclass

import qrcode

QR_IMAGE_WIDTH_PX = 500
QR_IMAGE_MARGIN = 2

PairingEncoder = Callable[[str], bytes]


@dataclass(frozen=True, slots=True)
class PairingPayload:
    code: str
    issued_at: float


class PairingCodeCache:
    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._payload: PairingPayload | None = None
        self._waiters: list[asyncio.Future[PairingPayload | None]] = []

    @property
    def current(self) -> PairingPayload | None:
        return self._payload

    def put(self, code: str) -> PairingPayload:
        payload = PairingPayload(code=code, issued_at=self._clock())
        self._payload = payload
        self._wake(payload)
        return payload

    def clear(self) -> None:
        self._payload = None
        # Wake pending waiters so they re-check session state instead of sitting
        # out their timeout after the session authenticated or dropped.
        self._wake(None)

    async def wait(self, timeout_s: float) -> PairingPayload | None:
        """
        Return the cached payload, waiting up to `timeout_s` for one to be issued.

        Resolves early with `None` if the cache is cleared while waiting.
        """

        if self._payload is not None:
            return self._payload
        if timeout_s <= 0:
            return None

        fut: asyncio.Future[PairingPayload | None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            return await asyncio.wait_for(fut, timeout=timeout_s)
        except TimeoutError:
            return None
        finally:
            if fut in self._waiters:
                self._waiters.remove(fut)

    def _wake(self, payload: PairingPayload | None) -> None:
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            if not fut.done():
                fut.set_result(payload)


def render_qr_png(code: str) -> bytes:
    """Render a pairing code as a scannable PNG (500 px wide, 2-module border)."""

    qr = qrcode.QRCode(border=QR_IMAGE_MARGIN)
    qr.add_data(code)
    qr.make(fit=True)
    # Pick the module size that gets closest to the target width.
    modules = qr.modules_count + 2 * QR_IMAGE_MARGIN
    qr.box_size = max(1, round(QR_IMAGE_WIDTH_PX / modules))

    img = qr.make_image()
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
