"""
wagate: an HTTP gateway in front of a single WhatsApp Web session.

The session manager owns the connection lifecycle and QR pairing; the dispatcher
sends text and files once the session is ready.
"""

from __future__ import annotations

from .dispatch import Dispatcher, SendResult
from .exceptions import GatewayError
from .session import Session, SessionConfig, SessionState

__all__ = [
    "Dispatcher",
    "GatewayError",
    "SendResult",
    "Session",
    "SessionConfig",
    "SessionState",
]

__version__ = "1.0.0"
