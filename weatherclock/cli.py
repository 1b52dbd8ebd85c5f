# ABOUTME: Command line entry point that runs a single weather refresh.
# ABOUTME: Prints the normalized record, place name and UTC offset; exits non-zero on failure.

"""
Run one weather refresh against OpenWeather and print the normalized record.

Usage:
    python -m weatherclock.cli [--zip 10001] [--api-key KEY] [--verbose]
"""

import argparse
import logging
import sys

from weatherclock.clock import LocalClock
from weatherclock.config import load_settings
from weatherclock.deps import WeatherDeps, connectivity_check, create_http_client
from weatherclock.models import NormalizedWeather
from weatherclock.weather_service import WeatherService


def _print_progress(title: str, line1: str, line2: str, line3: str) -> None:
    print(" | ".join(part for part in (title, line1, line2, line3) if part))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch and normalize the local weather once.")
    parser.add_argument("--zip", help="Postal code (overrides WEATHERCLOCK_ZIP_CODE)")
    parser.add_argument("--api-key", help="OpenWeather API key (overrides OPENWEATHER_API_KEY)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings()
    overrides = {}
    if args.zip:
        overrides["zip_code"] = args.zip
    if args.api_key:
        overrides["api_key"] = args.api_key
    if overrides:
        settings = settings.model_validate({**settings.model_dump(), **overrides})

    record = NormalizedWeather()
    with create_http_client(settings) as client:
        deps = WeatherDeps(http_client=client, is_online=connectivity_check(settings))
        service = WeatherService(settings, deps)
        ok = service.refresh(record, progress=_print_progress)

    if not ok:
        print("Weather refresh failed", file=sys.stderr)
        return 1

    clock = LocalClock()
    clock.set_utc_offset(service.detected_utc_offset_seconds)
    now = clock.clock_data()

    print(f"Location: {service.last_location_name}")
    print(f"UTC offset: {service.detected_utc_offset_seconds}s")
    if now.valid:
        print(f"Local time: {now.hour:02d}:{now.minute:02d} on {now.month}/{now.day}")
    for line in record.summary_lines():
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
