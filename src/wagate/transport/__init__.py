from __future__ import annotations

import importlib
from typing import cast

from .base import (
    EVENT_AUTH_FAILURE,
    EVENT_AUTHENTICATED,
    EVENT_DISCONNECTED,
    EVENT_LOADING_SCREEN,
    EVENT_QR,
    EVENT_READY,
    ClientInfo,
    EventedTransport,
    Transport,
    TransportFactory,
    TransportOptions,
    TransportState,
)

DEFAULT_TRANSPORT = "wagate.transport.pyaileys:PyaileysTransport"


def load_transport_factory(path: str = DEFAULT_TRANSPORT) -> TransportFactory:
    """
    Resolve a `module:attribute` (or dotted `module.attribute`) path to a factory.

    The attribute is usually a `Transport` class; any callable taking
    `TransportOptions` works.
    """

    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ValueError(f"invalid transport path: {path!r}")

    module = importlib.import_module(module_name)
    try:
        factory = getattr(module, attr)
    except AttributeError as e:
        raise ValueError(f"module {module_name!r} has no attribute {attr!r}") from e
    if not callable(factory):
        raise ValueError(f"transport factory {path!r} is not callable")
    return cast(TransportFactory, factory)


__all__ = [
    "DEFAULT_TRANSPORT",
    "EVENT_AUTHENTICATED",
    "EVENT_AUTH_FAILURE",
    "EVENT_DISCONNECTED",
    "EVENT_LOADING_SCREEN",
    "EVENT_QR",
    "EVENT_READY",
    "ClientInfo",
    "EventedTransport",
    "Transport",
    "TransportFactory",
    "TransportOptions",
    "TransportState",
    "load_transport_factory",
]
