# ABOUTME: Pydantic BaseModels for the normalized weather record and its inputs.
# ABOUTME: Defines the fixed-shape record handed to renderers plus geocode and clock types.

from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

SLOT_COUNT = 4

PLACE_NAME_CAPACITY = 39
ADVISORY_CAPACITY = 31
CONDITION_CAPACITY = 11
POSTAL_CODE_CAPACITY = 15
API_KEY_CAPACITY = 64

NO_ADVISORIES = "NO ADVISORIES"
ADVISORY_ACTIVE = "ADVISORY ACTIVE"
WIND_ADVISORY = "WIND ADVISORY"
DEFAULT_PLACE_NAME = "Selected ZIP"


def bounded(capacity: int):
    """Annotated str type that truncates to `capacity` characters instead of rejecting."""
    return Annotated[str, AfterValidator(lambda value: value[:capacity])]


PlaceName = bounded(PLACE_NAME_CAPACITY)
AdvisoryText = bounded(ADVISORY_CAPACITY)
ConditionWord = bounded(CONDITION_CAPACITY)
PostalCode = bounded(POSTAL_CODE_CAPACITY)
ApiKey = bounded(API_KEY_CAPACITY)


class WeatherType(str, Enum):
    """Weather categories shared by the extractor and renderers."""

    CLEAR = "clear"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    RAIN = "rain"
    THUNDERSTORM = "thunderstorm"
    SNOW = "snow"
    FOG = "fog"
    WINDY = "windy"

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]


_TYPE_LABELS = {
    WeatherType.CLEAR: "Clear",
    WeatherType.PARTLY_CLOUDY: "Partly Cloudy",
    WeatherType.CLOUDY: "Cloudy",
    WeatherType.RAIN: "Rain",
    WeatherType.THUNDERSTORM: "Thunderstorm",
    WeatherType.SNOW: "Snow",
    WeatherType.FOG: "Fog",
    WeatherType.WINDY: "Windy",
}


class HourlySlot(BaseModel):
    """One of the four "next hours" rows."""

    model_config = ConfigDict(validate_assignment=True)

    hour24: int = Field(default=0, ge=0, le=23)
    temperature_f: int = 0
    type: WeatherType = WeatherType.CLOUDY
    condition: ConditionWord = ""

    @property
    def display_condition(self) -> str:
        return self.condition or self.type.label


class DailySlot(BaseModel):
    """One of the four "tomorrow onwards" rows. day_of_week is 0=Sunday."""

    model_config = ConfigDict(validate_assignment=True)

    day_of_week: int = Field(default=0, ge=0, le=6)
    high_f: int = 0
    low_f: int = 0
    type: WeatherType = WeatherType.CLOUDY
    condition: ConditionWord = ""

    @property
    def display_condition(self) -> str:
        return self.condition or self.type.label


def _default_hourly() -> list[HourlySlot]:
    return [HourlySlot() for _ in range(SLOT_COUNT)]


def _default_daily() -> list[DailySlot]:
    return [DailySlot() for _ in range(SLOT_COUNT)]


class NormalizedWeather(BaseModel):
    """Consolidated weather record consumed by display pages.

    Allocated once with placeholder values and overwritten in place by
    `apply` after every successful refresh. When `valid` is False the other
    fields hold stale or default values and must not be trusted.
    """

    model_config = ConfigDict(validate_assignment=True)

    temperature_f: int = 0
    feels_like_f: int = 0
    rain_chance_pct: int = Field(default=0, ge=0, le=100)
    wind_mph: int = Field(default=0, ge=0)
    gust_mph: int = Field(default=0, ge=0)
    wind_deg: int = Field(default=0, ge=0, le=359)
    type: WeatherType = WeatherType.CLOUDY

    today_high_f: int = 0
    today_low_f: int = 0
    sunrise_hour: int = Field(default=0, ge=0, le=23)
    sunrise_minute: int = Field(default=0, ge=0, le=59)
    sunset_hour: int = Field(default=0, ge=0, le=23)
    sunset_minute: int = Field(default=0, ge=0, le=59)

    advisory: AdvisoryText = NO_ADVISORIES

    hourly: list[HourlySlot] = Field(default_factory=_default_hourly)
    daily: list[DailySlot] = Field(default_factory=_default_daily)

    valid: bool = False

    @field_validator("hourly", "daily")
    @classmethod
    def _exactly_four_slots(cls, slots: list) -> list:
        if len(slots) != SLOT_COUNT:
            raise ValueError(f"expected exactly {SLOT_COUNT} slots, got {len(slots)}")
        return slots

    def apply(self, other: "NormalizedWeather") -> None:
        """Overwrite every field of this record with a copy of `other`'s."""
        fresh = other.model_copy(deep=True)
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))

    def summary_lines(self) -> list[str]:
        """Human-readable dump of the record, one line per section."""
        lines = [
            f"Current: temp={self.temperature_f}F feels={self.feels_like_f}F "
            f"rain={self.rain_chance_pct}% wind={self.wind_mph}mph gust={self.gust_mph}mph "
            f"deg={self.wind_deg} type={self.type.label}",
            f"Today: high={self.today_high_f} low={self.today_low_f} "
            f"sunrise={self.sunrise_hour}:{self.sunrise_minute:02d} "
            f"sunset={self.sunset_hour}:{self.sunset_minute:02d}",
        ]
        for i, slot in enumerate(self.hourly):
            lines.append(
                f"Hourly[{i}]: h={slot.hour24} temp={slot.temperature_f} "
                f"main={slot.condition} type={slot.type.label}"
            )
        for i, slot in enumerate(self.daily):
            lines.append(
                f"Daily[{i}]: dow={slot.day_of_week} high={slot.high_f} low={slot.low_f} "
                f"main={slot.condition} type={slot.type.label}"
            )
        lines.append(f"Advisory: {self.advisory}")
        return lines


class GeocodeResult(BaseModel):
    """Postal code resolved to coordinates and a place label."""

    latitude: float
    longitude: float
    name: PlaceName = DEFAULT_PLACE_NAME


class ForecastResult(BaseModel):
    """Output of one forecast extraction: the record plus the location's UTC offset."""

    weather: NormalizedWeather
    utc_offset_seconds: int = 0
    timezone_name: str = ""


class ClockData(BaseModel):
    """Local clock fields for the top band of the display."""

    hour: int = Field(default=0, ge=0, le=23)
    minute: int = Field(default=0, ge=0, le=59)
    month: int = Field(default=1, ge=1, le=12)
    day: int = Field(default=1, ge=1, le=31)
    valid: bool = False
