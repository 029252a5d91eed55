"""
Run the gateway: `python -m wagate` or the `wagate` console script.

Settings come from the environment / `.env` (see `wagate.config.Settings`);
command-line flags override the listener address and log level.
"""

from __future__ import annotations

import argparse
import logging

import uvicorn

from .api import create_app
from .config import get_settings
from .session import Session
from .transport import load_transport_factory

logger = logging.getLogger("wagate")


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()

    ap = argparse.ArgumentParser(prog="wagate")
    ap.add_argument(
        "--host", default=settings.host, help=f"bind address (default: {settings.host})"
    )
    ap.add_argument(
        "--port", type=int, default=settings.port, help=f"listen port (default: {settings.port})"
    )
    ap.add_argument(
        "--log-level", default=settings.log_level, help=f"log level (default: {settings.log_level})"
    )
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session = Session(load_transport_factory(settings.transport), config=settings.session_config())
    app = create_app(session)

    base = f"http://localhost:{args.port}"
    logger.info("WhatsApp Web API server (transport: %s)", settings.transport)
    logger.info("server is running on %s", base)
    logger.info("scan QR code at: %s/api/qr", base)
    logger.info("check status at: %s/api/status", base)
    logger.warning(
        "this is an unofficial WhatsApp API; use at your own risk, account bans are possible"
    )

    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
