from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from .session import SessionConfig
from .transport import DEFAULT_TRANSPORT
from .transport.base import DEFAULT_CLIENT_ID, DEFAULT_DATA_PATH, TransportOptions

logger = logging.getLogger(__name__)

LINUX_BROWSER_PATHS = (
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
)
MACOS_BROWSER_PATH = "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
DEFAULT_BROWSER_PATH = "/usr/bin/google-chrome"


class Settings(BaseSettings):
    # HTTP listener
    host: str = "0.0.0.0"
    port: int = 3000

    log_level: str = "INFO"

    # Transport
    transport: str = DEFAULT_TRANSPORT
    client_id: str = DEFAULT_CLIENT_ID
    data_path: str = DEFAULT_DATA_PATH
    chrome_path: str | None = None  # browser-backed transports only

    # Session
    pairing_wait_s: float = 10.0
    restart_after_logout: bool = True
    reconnect_delay_s: float | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def transport_options(self) -> TransportOptions:
        return TransportOptions(
            client_id=self.client_id,
            data_path=Path(self.data_path).expanduser(),
            executable_path=resolve_browser_executable(self),
        )

    def session_config(self) -> SessionConfig:
        return SessionConfig(
            pairing_wait_s=self.pairing_wait_s,
            restart_after_logout=self.restart_after_logout,
            reconnect_delay_s=self.reconnect_delay_s,
            transport=self.transport_options(),
        )


def resolve_browser_executable(settings: Settings) -> str:
    """
    Locate the Chromium executable for browser-backed transports.

    Priority: explicit setting (`CHROME_PATH`), common Linux install paths (Docker/VPS),
    the macOS application bundle, then the stock Linux path as a last resort.
    """

    if settings.chrome_path:
        logger.debug("using browser from settings: %s", settings.chrome_path)
        return settings.chrome_path

    for path in LINUX_BROWSER_PATHS:
        if os.path.exists(path):
            logger.debug("using browser from: %s", path)
            return path

    if os.path.exists(MACOS_BROWSER_PATH):
        logger.debug("using browser from macOS: %s", MACOS_BROWSER_PATH)
        return MACOS_BROWSER_PATH

    logger.debug("using default browser path")
    return DEFAULT_BROWSER_PATH


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment / `.env` again."""
    get_settings.cache_clear()
    return get_settings()
