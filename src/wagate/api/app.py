from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..dispatch import Dispatcher
from ..exceptions import GatewayError, ValidationError
from ..session import Session
from . import auth, messages, status
from .models import error_body

logger = logging.getLogger(__name__)

SERVICE_NAME = "WhatsApp Web API"

ENDPOINTS = {
    "auth": {
        "GET /api/qr": "Get QR code as PNG image for authentication",
        "POST /api/logout": "Logout and destroy session",
    },
    "status": {
        "GET /api/status": "Get connection status and client info",
    },
    "messaging": {
        "POST /api/send-message": "Send text message",
        "POST /api/send-file": "Send file with base64 encoding",
    },
}


def create_app(
    session: Session,
    *,
    dispatcher: Dispatcher | None = None,
    manage_session: bool = True,
) -> FastAPI:
    """
    Build the HTTP application around an existing session.

    With `manage_session` the app initializes the session on startup and
    destroys it on shutdown; otherwise the caller owns its lifecycle.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manage_session:
            await session.initialize()
        try:
            yield
        finally:
            if manage_session:
                logger.info("shutting down gracefully...")
                await session.destroy()

    app = FastAPI(
        title=SERVICE_NAME,
        description="HTTP gateway for a single WhatsApp Web session",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session = session
    app.state.dispatcher = dispatcher or Dispatcher(session)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(status.router, prefix="/api/status", tags=["status"])
    app.include_router(messages.router, prefix="/api", tags=["messaging"])

    @app.get("/")
    async def index() -> dict[str, Any]:
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "status": "running",
            "endpoints": ENDPOINTS,
        }

    _install_error_handlers(app)
    return app


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def gateway_error(_request: Request, exc: GatewayError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted({_field_name(err.get("loc", ())) for err in exc.errors()} - {""})
        message = (
            f"Missing or invalid required fields: {', '.join(fields)}"
            if fields
            else "Invalid request body"
        )
        return _error_response(ValidationError(message))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(error_body("Route not found"), status_code=404)
        return JSONResponse(error_body(str(exc.detail)), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def server_error(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("server error")
        return JSONResponse(
            error_body("Internal server error", details=str(exc)), status_code=500
        )


def _error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(
        error_body(exc.message, code=exc.code, details=exc.details),
        status_code=exc.http_status,
    )


def _field_name(loc: tuple[object, ...] | list[object]) -> str:
    # ("body", "isGroup") -> "isGroup"; a body-level error has only ("body",).
    parts = [str(p) for p in loc if p != "body"]
    return parts[-1] if parts else ""
