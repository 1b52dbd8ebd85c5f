# ABOUTME: Maps provider weather-condition codes to local weather categories.
# ABOUTME: Total over all integers; unknown codes fall back to Cloudy.

from weatherclock.models import WeatherType


def classify(code: int) -> WeatherType:
    """Map an OpenWeather condition id to a WeatherType."""
    if 200 <= code < 300:
        return WeatherType.THUNDERSTORM
    if 300 <= code < 600:
        return WeatherType.RAIN
    if 600 <= code < 700:
        return WeatherType.SNOW
    if code == 800:
        return WeatherType.CLEAR
    if code in (801, 802):
        return WeatherType.PARTLY_CLOUDY
    if code in (803, 804):
        return WeatherType.CLOUDY
    # 741 is fog proper; the whole 7xx atmosphere group renders as fog.
    if 700 <= code < 800:
        return WeatherType.FOG
    return WeatherType.CLOUDY
