from __future__ import annotations

from fastapi import Depends, Request

from ..dispatch import Dispatcher
from ..session import Session


def get_session(request: Request) -> Session:
    return request.app.state.session


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def ready_dispatcher(dispatcher: Dispatcher = Depends(get_dispatcher)) -> Dispatcher:
    """Reject sends with NOT_READY before the request body is even validated."""

    dispatcher.session.require_ready()
    return dispatcher
