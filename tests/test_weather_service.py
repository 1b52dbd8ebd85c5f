# ABOUTME: Contract tests for the refresh orchestrator.
# ABOUTME: Validates fail-fast config checks, progress updates, commit-on-success and stale-record handling.

from unittest.mock import MagicMock

import httpx
import pytest
from payloads import GEOCODE_JSON, NOW_UTC, NY_OFFSET, encode, mock_client, onecall

from weatherclock.config import Settings
from weatherclock.deps import WeatherDeps
from weatherclock.errors import ConfigMissing, InsufficientData
from weatherclock.models import NormalizedWeather, WeatherType
from weatherclock.weather_service import WeatherService


def _router(forecast: dict | None = None, geocode_status: int = 200):
    """Build a MockTransport handler that answers the geocode and OneCall endpoints."""
    calls: list[httpx.Request] = []
    forecast_body = encode(forecast if forecast is not None else onecall())

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path == "/geo/1.0/zip":
            return httpx.Response(geocode_status, content=encode(GEOCODE_JSON))
        return httpx.Response(200, content=forecast_body)

    handler.calls = calls
    return handler


def _service(settings: Settings, handler, online: bool = True) -> WeatherService:
    deps = WeatherDeps(http_client=mock_client(handler), utc_now=lambda: NOW_UTC, is_online=lambda: online)
    return WeatherService(settings, deps)


class TestRefreshSuccess:
    def test_populates_record_and_location(self, settings):
        """A full refresh commits the record and exposes place name and UTC offset.

        Implementation: Routes geocode and OneCall requests to synthetic payloads.
        Passing implies: Geocode -> forecast -> commit runs end to end.
        """
        handler = _router()
        service = _service(settings, handler)
        record = NormalizedWeather()

        assert service.refresh(record) is True
        assert record.valid is True
        assert record.temperature_f == 72
        assert record.type is WeatherType.CLEAR
        assert service.last_location_name == "New York"
        assert service.detected_utc_offset_seconds == NY_OFFSET
        assert [r.url.path for r in handler.calls] == ["/geo/1.0/zip", "/data/3.0/onecall"]

    def test_forecast_uses_geocoded_coordinates(self, settings):
        handler = _router()
        _service(settings, handler).refresh(NormalizedWeather())
        params = handler.calls[1].url.params
        assert params["lat"] == "40.748400"
        assert params["lon"] == "-73.996700"

    def test_progress_callback_checkpoints(self, settings):
        """Progress is reported before geocoding and before the forecast fetch.

        Implementation: Passes a MagicMock progress callback.
        Passing implies: Status displays get a title plus three lines at each stage.
        """
        progress = MagicMock()
        _service(settings, _router()).refresh(NormalizedWeather(), progress=progress)

        assert progress.call_count == 2
        progress.assert_any_call("Weather API", "Getting coordinates", "ZIP: 10001", "")
        progress.assert_any_call("Weather API", "Getting weather for", "New York", "")

    def test_record_object_is_mutated_in_place(self, settings):
        record = NormalizedWeather()
        view = record
        _service(settings, _router()).refresh(record)
        assert view is record
        assert view.valid is True


class TestRefreshFailures:
    @pytest.mark.parametrize("zip_code, api_key", [("", "key"), ("10001", "")])
    def test_missing_config_fails_fast(self, zip_code, api_key):
        """Empty postal code or API key fails before any request.

        Implementation: Settings with one empty field; handler records calls.
        Passing implies: No network traffic happens without configuration.
        """
        handler = _router()
        service = _service(Settings(zip_code=zip_code, api_key=api_key), handler)
        record = NormalizedWeather(valid=True)

        assert service.refresh(record) is False
        assert record.valid is False
        assert handler.calls == []

    def test_offline_raises_config_missing(self, settings):
        handler = _router()
        service = _service(settings, handler, online=False)
        with pytest.raises(ConfigMissing):
            service.refresh_or_raise(NormalizedWeather())
        assert handler.calls == []

    def test_failed_refresh_keeps_previous_contents(self, settings):
        """A failing forecast clears only the valid flag.

        Implementation: Seeds the record with earlier values, then serves a payload with 3 daily entries.
        Passing implies: Partial extraction results never leak into the shared record.
        """
        service = _service(settings, _router(forecast=onecall(temp=40.0, daily_count=3)))
        record = NormalizedWeather(temperature_f=55, advisory="EARLIER", valid=True)

        with pytest.raises(InsufficientData):
            service.refresh_or_raise(record)

        assert record.valid is False
        assert record.temperature_f == 55
        assert record.advisory == "EARLIER"
        assert service.detected_utc_offset_seconds == 0
        assert service.last_location_name == ""

    def test_geocode_http_error_stops_refresh(self, settings):
        handler = _router(geocode_status=401)
        record = NormalizedWeather()
        assert _service(settings, handler).refresh(record) is False
        assert record.valid is False
        assert len(handler.calls) == 1

    @pytest.mark.parametrize("section, key", [("daily", "dt"), ("current", "sunrise")])
    def test_out_of_range_timestamp_fails_refresh(self, settings, section, key):
        """A timestamp the platform cannot convert fails the refresh without raising.

        Implementation: Serves OneCall with one timestamp set to 10**17 seconds.
        Passing implies: Corrupt provider data never takes the process down.
        """
        payload = onecall()
        target = payload[section][1] if section == "daily" else payload[section]
        target[key] = 10**17
        record = NormalizedWeather(valid=True)

        assert _service(settings, _router(forecast=payload)).refresh(record) is False
        assert record.valid is False
