from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from ..session import Session
from .deps import get_session
from .models import ok

router = APIRouter()


@router.get("/qr", responses={200: {"content": {"image/png": {}}}})
async def get_qr(session: Session = Depends(get_session)) -> Response:
    """Pairing QR code as a PNG; scan it from WhatsApp -> Linked devices."""
    png = await session.pairing_image()
    return Response(
        content=png,
        media_type="image/png",
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


@router.post("/logout")
async def logout(session: Session = Depends(get_session)) -> dict[str, Any]:
    await session.logout()
    return ok("Logged out successfully")
