# ABOUTME: Service layer that runs one full weather refresh: geocode, forecast, commit.
# ABOUTME: Owns writes to the NormalizedWeather record and the detected UTC offset / place name.

import logging
from collections.abc import Callable

from weatherclock import forecast, geocode
from weatherclock.config import Settings
from weatherclock.deps import WeatherDeps
from weatherclock.errors import ConfigMissing, WeatherError
from weatherclock.models import NormalizedWeather
from weatherclock.transport import Fetcher

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str, str, str], None]

PROGRESS_TITLE = "Weather API"


class WeatherService:
    """Refreshes a NormalizedWeather record from OpenWeather.

    Not reentrant: callers serialize refreshes. The record is only written
    after a fully successful extraction; on failure only its `valid` flag is
    cleared.
    """

    def __init__(self, settings: Settings, deps: WeatherDeps):
        self.settings = settings
        self.deps = deps
        self.fetcher = Fetcher(
            deps.http_client,
            max_body_bytes=settings.max_body_bytes,
            stall_timeout=settings.stall_timeout_seconds,
        )
        self.last_location_name = ""
        self.detected_utc_offset_seconds = 0

    def refresh(self, record: NormalizedWeather, progress: ProgressCallback | None = None) -> bool:
        """Refresh `record` in place. Returns False (and clears record.valid) on any failure."""
        try:
            self.refresh_or_raise(record, progress)
        except WeatherError as e:
            logger.warning("Weather refresh failed (%s): %s", type(e).__name__, e)
            return False
        return True

    def refresh_or_raise(self, record: NormalizedWeather, progress: ProgressCallback | None = None) -> None:
        """Like refresh, but lets the WeatherError through after clearing record.valid."""
        try:
            self._refresh(record, progress)
        except WeatherError:
            record.valid = False
            raise

    def _refresh(self, record: NormalizedWeather, progress: ProgressCallback | None) -> None:
        zip_code = self.settings.zip_code
        api_key = self.settings.api_key
        if not zip_code or not api_key:
            raise ConfigMissing(f"zip={zip_code!r} apiKeyLen={len(api_key)}")
        if not self.deps.is_online():
            raise ConfigMissing("network is not connected")

        if progress is not None:
            progress(PROGRESS_TITLE, "Getting coordinates", f"ZIP: {zip_code}", "")
        location = geocode.resolve(self.fetcher, zip_code, api_key, self.settings)

        if progress is not None:
            progress(PROGRESS_TITLE, "Getting weather for", location.name, "")
        result = forecast.extract(
            self.fetcher,
            location.latitude,
            location.longitude,
            api_key,
            self.settings,
            utc_now=self.deps.utc_now(),
        )

        record.apply(result.weather)
        self.last_location_name = location.name
        self.detected_utc_offset_seconds = result.utc_offset_seconds
