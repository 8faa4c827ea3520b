"""
Freeze Alert Test Configuration

Shared fixtures and fakes for pytest.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from freeze_clock import LOCAL_TZ
from freeze_models import ForecastPoint, WeatherSample
from weather_client import FetchError


# =============================================================================
# Helpers
# =============================================================================

def point_at(now, hours, temp_c, precip_mm=None):
    """Forecast point `hours` after now."""
    return ForecastPoint(time=now + timedelta(hours=hours), temp_c=temp_c,
                         precip_mm=precip_mm)


def sample_at(now, temp_c, rain=0.0, snow=0.0, code=800):
    return WeatherSample(temp_c=temp_c, observed_at=now, rain_1h_mm=rain,
                         snow_1h_mm=snow, condition_code=code)


class FakeWeather:
    """Stands in for OpenWeatherClient."""

    def __init__(self, sample=None, forecast=None, error=None):
        self.sample = sample
        self.forecast = forecast or []
        self.error = error
        self.calls = 0

    def fetch_current(self):
        self.calls += 1
        if self.error:
            raise FetchError(self.error)
        return self.sample

    def fetch_forecast(self):
        if self.error:
            raise FetchError(self.error)
        return list(self.forecast)


class FakeNotifier:
    """Stands in for NtfyNotifier; records what would have been pushed."""

    url = "https://ntfy.example/test-topic"

    def __init__(self, succeed=True):
        self.succeed = succeed
        self.sent = []

    def send(self, message, title, priority="default", tags=()):
        self.sent.append({"message": message, "title": title,
                          "priority": priority, "tags": list(tags)})
        return self.succeed

    def send_intent(self, intent):
        return self.send(intent.message, intent.title, intent.priority, intent.tags)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def now():
    """Fixed winter noon in the local zone."""
    return datetime(2026, 1, 15, 12, 0, tzinfo=LOCAL_TZ)


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "freeze_state.json"
