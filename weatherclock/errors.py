# ABOUTME: Exception hierarchy for the weather refresh pipeline.
# ABOUTME: Every stage failure is a WeatherError so the orchestrator can treat them uniformly.


class WeatherError(Exception):
    """Base class for every failure that aborts a weather refresh."""


class ConfigMissing(WeatherError):
    """Postal code or API key is empty, or the network is down."""


class TransportError(WeatherError):
    """Connection, timeout, HTTP status, or body-length failure."""


class HTTPStatusFailure(TransportError):
    def __init__(self, status_code: int, body_excerpt: str = ""):
        self.status_code = status_code
        self.body_excerpt = body_excerpt
        message = f"HTTP {status_code}"
        if body_excerpt:
            message = f"{message}: {body_excerpt}"
        super().__init__(message)


class PartialBodyError(TransportError):
    def __init__(self, received: int, expected: int):
        self.received = received
        self.expected = expected
        super().__init__(f"partial payload: got {received} bytes, expected {expected}")


class ParseError(WeatherError):
    """A mandatory field is absent from the payload."""


class InsufficientData(WeatherError):
    """Fewer entries were parsed than the minimum needed to fill the record."""
