from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ..session import Session
from .deps import get_session

router = APIRouter()


@router.get("")
async def get_status(session: Session = Depends(get_session)) -> dict[str, Any]:
    """Connection state as reported by the transport, plus account info once ready."""
    status = await session.status()
    return status.to_dict()
