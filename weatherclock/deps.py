# ABOUTME: Dependency container for the weather service using Pydantic BaseModel.
# ABOUTME: Holds the httpx.Client, the UTC clock source and the connectivity check.

import logging
import socket
from collections.abc import Callable

import httpx
from pydantic import BaseModel, ConfigDict, Field

from weatherclock.clock import system_utc_now
from weatherclock.config import Settings

logger = logging.getLogger(__name__)


def _always_online() -> bool:
    return True


def connectivity_check(settings: Settings, timeout: float = 3.0) -> Callable[[], bool]:
    """Return an is_online callable that opens a TCP connection to the geocode host."""
    url = httpx.URL(settings.geocode_url)
    address = (url.host, url.port or (443 if url.scheme == "https" else 80))

    def is_online() -> bool:
        try:
            with socket.create_connection(address, timeout=timeout):
                return True
        except OSError as e:
            logger.warning("Network unreachable (%s:%d): %s", address[0], address[1], e)
            return False

    return is_online


class WeatherDeps(BaseModel):
    """Collaborators injected into WeatherService."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.Client
    utc_now: Callable[[], int | None] = Field(default=system_utc_now)
    is_online: Callable[[], bool] = Field(default=_always_online)


def create_http_client(settings: Settings) -> httpx.Client:
    """Create an httpx client for the OpenWeather endpoints.

    The read timeout doubles as the idle-stream window. Certificate checks
    follow settings.verify_tls, which is off by default for the device build.
    """
    if not settings.verify_tls:
        logger.warning("TLS certificate validation is disabled for weather requests")
    return httpx.Client(
        verify=settings.verify_tls,
        timeout=httpx.Timeout(settings.forecast_timeout_seconds, read=settings.stall_timeout_seconds),
    )
