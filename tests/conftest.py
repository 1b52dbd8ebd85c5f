# ABOUTME: Shared test fixtures for the weather clock test suite.
# ABOUTME: Provides default settings and a ready-made OneCall payload.

import pytest
from payloads import encode, onecall

from weatherclock.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(zip_code="10001", api_key="test-key", retry_delay_seconds=0.0)


@pytest.fixture
def onecall_payload() -> bytes:
    return encode(onecall())
