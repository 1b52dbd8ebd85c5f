# ABOUTME: Fetches the OneCall payload and reduces it to a NormalizedWeather record.
# ABOUTME: Scans current, hourly, alerts and daily sections and picks the +2/4/6/8h and next-4-day rows.

import logging
from collections.abc import Iterator, Sequence
from itertools import islice
from typing import NamedTuple

from weatherclock import scanner
from weatherclock.clock import day_of_week, local_datetime
from weatherclock.conditions import classify
from weatherclock.config import Settings
from weatherclock.errors import InsufficientData, ParseError
from weatherclock.models import (
    ADVISORY_ACTIVE,
    ADVISORY_CAPACITY,
    CONDITION_CAPACITY,
    NO_ADVISORIES,
    SLOT_COUNT,
    WIND_ADVISORY,
    DailySlot,
    ForecastResult,
    HourlySlot,
    NormalizedWeather,
)
from weatherclock.scanner import round_half_away
from weatherclock.transport import Fetcher

logger = logging.getLogger(__name__)

EXCLUDED_SECTIONS = "minutely,alerts"
WIND_ADVISORY_GUST_MPH = 20
MAX_HOURLY_ENTRIES = 96
MAX_DAILY_ENTRIES = 8
MIN_DAILY_ENTRIES = 5
FALLBACK_HOURLY_INDICES = (2, 4, 6, 8)
HOURLY_STEP_SECONDS = 2 * 3600
TIMEZONE_NAME_CAPACITY = 39


class HourlyEntry(NamedTuple):
    local_dt: int
    temperature: float
    code: int
    condition: str


def rain_percent(pop: float) -> int:
    """Convert a 0..1 probability into a clamped 0..100 percent, rounding halves up."""
    pop = min(max(pop, 0.0), 1.0)
    return int(pop * 100.0 + 0.5)


def hourly_targets(utc_now: int | None, utc_offset_seconds: int) -> list[int] | None:
    """Local epochs for +2h, +4h, +6h, +8h from the top of the current local hour.

    None when the system time is unavailable.
    """
    if utc_now is None:
        return None
    local_now = utc_now + utc_offset_seconds
    base_hour = local_now - local_now % 3600
    return [base_hour + (i + 1) * HOURLY_STEP_SECONDS for i in range(SLOT_COUNT)]


def select_hourly(entries: Iterator[HourlyEntry], targets: Sequence[int] | None) -> dict[int, HourlyEntry]:
    """Assign entries to the four hourly slots.

    With targets, a single pointer walks the targets in order: each one is
    filled by the first entry whose local time reaches it and never revisited.
    Without targets, entries at positions 2, 4, 6 and 8 are taken.
    """
    chosen: dict[int, HourlyEntry] = {}
    next_target = 0
    for index, entry in enumerate(islice(entries, MAX_HOURLY_ENTRIES)):
        if targets is not None:
            if entry.local_dt >= targets[next_target]:
                chosen[next_target] = entry
                next_target += 1
        elif index in FALLBACK_HOURLY_INDICES:
            chosen[FALLBACK_HOURLY_INDICES.index(index)] = entry
        if len(chosen) == SLOT_COUNT:
            break
    return chosen


def _hourly_entries(
    payload: bytes, start: int, end: int | None, utc_offset_seconds: int, current_temp: float, current_id: int
) -> Iterator[HourlyEntry]:
    for obj_start, obj_end in scanner.objects_in(payload, start, end):
        obj = payload[obj_start : obj_end + 1]
        dt = scanner.int_after(obj, b'"dt":')
        if dt is None:
            continue
        temp = scanner.number_after(obj, b'"temp":')
        code = scanner.int_after(obj, b'"id":')
        condition = scanner.string_after(obj, b'"main":"', capacity=CONDITION_CAPACITY)
        yield HourlyEntry(
            local_dt=dt[0] + utc_offset_seconds,
            temperature=temp[0] if temp is not None else current_temp,
            code=code[0] if code is not None else current_id,
            condition=condition[0] if condition is not None else "",
        )


def _parse_day(obj: bytes, utc_offset_seconds: int, current_temp: float, current_id: int) -> DailySlot | None:
    dt = scanner.int_after(obj, b'"dt":')
    if dt is None:
        return None

    high = low = None
    temp_key = scanner.find_key(obj, b'"temp":')
    if temp_key is not None:
        temp_open = obj.find(b"{", temp_key)
        temp_close = scanner.matching_brace(obj, temp_open if temp_open >= 0 else None)
        if temp_close is not None:
            temp_obj = obj[temp_open : temp_close + 1]
            high = scanner.field_number(temp_obj, b'"max"')
            low = scanner.field_number(temp_obj, b'"min"')
    if high is None:
        high = scanner.field_number(obj, b'"day"')
    if low is None:
        low = scanner.field_number(obj, b'"night"')

    code = scanner.int_after(obj, b'"id":')
    condition = scanner.string_after(obj, b'"main":"', capacity=CONDITION_CAPACITY)
    local = local_datetime(dt[0], utc_offset_seconds)
    return DailySlot(
        day_of_week=day_of_week(local),
        high_f=round_half_away(high if high is not None else current_temp),
        low_f=round_half_away(low if low is not None else current_temp),
        type=classify(code[0] if code is not None else current_id),
        condition=condition[0] if condition is not None else "",
    )


def _section_array(payload: bytes, section_pos: int) -> tuple[int, int] | None:
    array_open = payload.find(b"[", section_pos)
    array_close = scanner.matching_bracket(payload, array_open if array_open >= 0 else None)
    if array_close is None:
        return None
    return array_open, array_close


def parse_forecast(payload: bytes, utc_now: int | None = None) -> ForecastResult:
    """Reduce a OneCall payload to a NormalizedWeather record.

    `utc_now` is the current UTC epoch, or None when the system clock is not
    set, in which case hourly rows are picked by position instead of time.

    Raises ParseError when current temperature or condition is missing and
    InsufficientData when fewer than five daily entries can be read.
    """
    weather = NormalizedWeather()

    offset_found = scanner.int_after(payload, b'"timezone_offset":')
    utc_offset = offset_found[0] if offset_found is not None else 0
    tz_found = scanner.string_after(payload, b'"timezone":"', capacity=TIMEZONE_NAME_CAPACITY)
    timezone_name = tz_found[0] if tz_found is not None else ""
    logger.info("Timezone from API: iana=%r offsetSec=%d", timezone_name, utc_offset)

    # Scans below are anchored at the section start, not bounded by it.
    current_pos = scanner.find_section(payload, b'"current":')
    current_start = current_pos if current_pos is not None else 0
    temp = scanner.number_after(payload, b'"temp":', current_start)
    code = scanner.int_after(payload, b'"weather":[{"id":', current_start) or scanner.int_after(
        payload, b'"id":', current_start
    )
    if temp is None or code is None:
        logger.warning("Failed to parse current temp/weather id; payload head: %r", payload[:220])
        raise ParseError("current temperature or weather id missing")
    current_temp, current_id = temp[0], code[0]

    weather.temperature_f = round_half_away(current_temp)
    weather.type = classify(current_id)
    feels = scanner.number_after(payload, b'"feels_like":', current_start)
    weather.feels_like_f = round_half_away(feels[0]) if feels is not None else weather.temperature_f
    weather.today_high_f = weather.temperature_f
    weather.today_low_f = weather.temperature_f

    wind = scanner.number_after(payload, b'"wind_speed":', current_start)
    if wind is not None:
        weather.wind_mph = max(0, round_half_away(wind[0]))
    gust = scanner.number_after(payload, b'"wind_gust":', current_start)
    if gust is not None:
        weather.gust_mph = max(0, round_half_away(gust[0]))
    wind_deg = scanner.int_after(payload, b'"wind_deg":', current_start)
    if wind_deg is not None:
        weather.wind_deg = max(0, wind_deg[0]) % 360

    sunrise = scanner.int_after(payload, b'"sunrise":', current_start)
    if sunrise is not None:
        local = local_datetime(sunrise[0], utc_offset)
        weather.sunrise_hour, weather.sunrise_minute = local.hour, local.minute
    sunset = scanner.int_after(payload, b'"sunset":', current_start)
    if sunset is not None:
        local = local_datetime(sunset[0], utc_offset)
        weather.sunset_hour, weather.sunset_minute = local.hour, local.minute

    hourly = [HourlySlot() for _ in range(SLOT_COUNT)]
    hourly_pos = scanner.find_section(payload, b'"hourly":')
    if hourly_pos is not None:
        pop = scanner.number_after(payload, b'"pop":', hourly_pos)
        if pop is not None:
            weather.rain_chance_pct = rain_percent(pop[0])

        bounds = _section_array(payload, hourly_pos)
        start, end = (bounds[0] + 1, bounds[1]) if bounds is not None else (hourly_pos, None)
        entries = _hourly_entries(payload, start, end, utc_offset, current_temp, current_id)
        targets = hourly_targets(utc_now, utc_offset)
        if targets is None:
            logger.info("System time unavailable, selecting hourly rows by position")
        for slot, entry in select_hourly(entries, targets).items():
            hourly[slot] = HourlySlot(
                hour24=local_datetime(entry.local_dt, 0).hour,
                temperature_f=round_half_away(entry.temperature),
                type=classify(entry.code),
                condition=entry.condition,
            )

    alerts_pos = scanner.find_section(payload, b'"alerts":')
    if alerts_pos is not None:
        event = scanner.string_after(payload, b'"event":"', alerts_pos, capacity=ADVISORY_CAPACITY)
        weather.advisory = event[0] if event is not None else ADVISORY_ACTIVE
    elif weather.gust_mph >= WIND_ADVISORY_GUST_MPH:
        weather.advisory = WIND_ADVISORY
    else:
        weather.advisory = NO_ADVISORIES

    parsed_daily: list[DailySlot] = []
    daily_pos = scanner.find_section(payload, b'"daily":')
    bounds = _section_array(payload, daily_pos) if daily_pos is not None else None
    if bounds is not None:
        for obj_start, obj_end in scanner.objects_in(payload, bounds[0] + 1, bounds[1]):
            if len(parsed_daily) >= MAX_DAILY_ENTRIES:
                break
            day = _parse_day(payload[obj_start : obj_end + 1], utc_offset, current_temp, current_id)
            if day is not None:
                parsed_daily.append(day)

    if parsed_daily:
        weather.today_high_f = parsed_daily[0].high_f
        weather.today_low_f = parsed_daily[0].low_f

    if len(parsed_daily) < MIN_DAILY_ENTRIES:
        logger.warning("Insufficient daily entries: parsed %d", len(parsed_daily))
        raise InsufficientData(f"only {len(parsed_daily)} daily entries parsed, need {MIN_DAILY_ENTRIES}")

    # tomorrow .. +3 days
    upcoming = parsed_daily[1 : 1 + SLOT_COUNT]
    if len(upcoming) < SLOT_COUNT:
        logger.warning("Failed to populate 4-day rows: filled %d", len(upcoming))
        raise InsufficientData(f"only {len(upcoming)} upcoming daily rows filled")

    weather.hourly = hourly
    weather.daily = upcoming
    weather.valid = True

    logger.info(
        "Weather success: tempF=%d type=%s rain=%d%% wind=%d gust=%d",
        weather.temperature_f,
        weather.type.label,
        weather.rain_chance_pct,
        weather.wind_mph,
        weather.gust_mph,
    )
    for line in weather.summary_lines():
        logger.debug(line)
    return ForecastResult(weather=weather, utc_offset_seconds=utc_offset, timezone_name=timezone_name)


def fetch_forecast(fetcher: Fetcher, latitude: float, longitude: float, api_key: str, settings: Settings) -> bytes:
    """Fetch the OneCall payload, retrying once on transport or length failures."""
    return fetcher.fetch(
        settings.onecall_url,
        params={
            "lat": f"{latitude:.6f}",
            "lon": f"{longitude:.6f}",
            "units": "imperial",
            "exclude": EXCLUDED_SECTIONS,
            "appid": api_key,
        },
        timeout=settings.forecast_timeout_seconds,
        attempts=settings.forecast_attempts,
        retry_delay=settings.retry_delay_seconds,
        tag="OneCall",
    )


def extract(
    fetcher: Fetcher,
    latitude: float,
    longitude: float,
    api_key: str,
    settings: Settings,
    utc_now: int | None = None,
) -> ForecastResult:
    """Fetch and parse the forecast for a coordinate pair."""
    payload = fetch_forecast(fetcher, latitude, longitude, api_key, settings)
    return parse_forecast(payload, utc_now)
