# ABOUTME: Resolves a postal code to coordinates via the OpenWeather geocoding endpoint.
# ABOUTME: lat/lon are mandatory; the place name falls back to a generic label.

import logging

from weatherclock import scanner
from weatherclock.config import Settings
from weatherclock.errors import ParseError
from weatherclock.models import DEFAULT_PLACE_NAME, PLACE_NAME_CAPACITY, GeocodeResult
from weatherclock.transport import Fetcher

logger = logging.getLogger(__name__)


def parse_geocode(payload: bytes) -> GeocodeResult:
    """Extract lat, lon and name from a geocoding payload."""
    lat = scanner.number_after(payload, b'"lat":')
    lon = scanner.number_after(payload, b'"lon":')
    if lat is None or lon is None:
        logger.warning("Failed to parse lat/lon from geocode payload: %r", payload[:220])
        raise ParseError("geocode payload has no lat/lon")

    name = scanner.string_after(payload, b'"name":"', capacity=PLACE_NAME_CAPACITY)
    return GeocodeResult(
        latitude=lat[0],
        longitude=lon[0],
        name=name[0] if name is not None else DEFAULT_PLACE_NAME,
    )


def resolve(fetcher: Fetcher, postal_code: str, api_key: str, settings: Settings) -> GeocodeResult:
    """Geocode a postal code. Single attempt; any transport or parse failure propagates."""
    payload = fetcher.fetch(
        settings.geocode_url,
        params={"zip": postal_code, "units": "imperial", "appid": api_key},
        timeout=settings.geocode_timeout_seconds,
        attempts=1,
        tag="Geocode",
    )
    result = parse_geocode(payload)
    logger.info("Geocode success lat/lon: %.6f, %.6f (%s)", result.latitude, result.longitude, result.name)
    return result
