"""
Typed session lifecycle events.

Transport listeners translate raw emissions into these values and queue them;
the session applies them one at a time in arrival order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class PairingCodeIssued:
    code: str


@dataclass(frozen=True, slots=True)
class Authenticated:
    pass


@dataclass(frozen=True, slots=True)
class AuthFailure:
    message: str | None = None


@dataclass(frozen=True, slots=True)
class Ready:
    pass


@dataclass(frozen=True, slots=True)
class Disconnected:
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class LoadingProgress:
    percent: int
    message: str | None = None


SessionEvent: TypeAlias = (
    PairingCodeIssued | Authenticated | AuthFailure | Ready | Disconnected | LoadingProgress
)
