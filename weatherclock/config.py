# ABOUTME: Runtime settings for the weather refresh pipeline.
# ABOUTME: Loads postal code, API key, endpoints and transport limits from the environment / .env file.

import os

from dotenv import load_dotenv
from pydantic import BaseModel

from weatherclock.models import ApiKey, PostalCode

GEOCODE_URL = "https://api.openweathermap.org/geo/1.0/zip"
ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"


class Settings(BaseModel):
    """Configuration consumed by WeatherService and the HTTP client factory."""

    zip_code: PostalCode = ""
    api_key: ApiKey = ""
    geocode_url: str = GEOCODE_URL
    onecall_url: str = ONECALL_URL
    geocode_timeout_seconds: float = 10.0
    forecast_timeout_seconds: float = 20.0
    stall_timeout_seconds: float = 30.0
    max_body_bytes: int = 30000
    forecast_attempts: int = 2
    retry_delay_seconds: float = 0.2
    # Certificate validation is off by default: the device has no CA bundle
    # to validate against. This is an accepted risk, not an oversight.
    verify_tls: bool = False


def _float_env(name: str, default: float, minimum: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        value = float(raw) if raw else default
    except ValueError:
        value = default
    return max(minimum, value)


def _int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        value = int(raw) if raw else default
    except ValueError:
        value = default
    return max(minimum, value)


def load_settings() -> Settings:
    """Build Settings from environment variables, reading a .env file first if present."""
    load_dotenv()

    verify_raw = os.getenv("WEATHERCLOCK_VERIFY_TLS", "").strip().lower()

    return Settings(
        zip_code=os.getenv("WEATHERCLOCK_ZIP_CODE", "").strip(),
        api_key=os.getenv("OPENWEATHER_API_KEY", "").strip(),
        geocode_url=os.getenv("OPENWEATHER_GEOCODE_URL", "").strip() or GEOCODE_URL,
        onecall_url=os.getenv("OPENWEATHER_ONECALL_URL", "").strip() or ONECALL_URL,
        stall_timeout_seconds=_float_env("WEATHERCLOCK_STALL_TIMEOUT_SECONDS", 30.0, 1.0),
        retry_delay_seconds=_float_env("WEATHERCLOCK_RETRY_DELAY_SECONDS", 0.2, 0.0),
        max_body_bytes=_int_env("WEATHERCLOCK_MAX_BODY_BYTES", 30000, 1024),
        verify_tls=verify_raw in ("1", "true", "yes", "on"),
    )
