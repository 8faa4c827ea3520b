"""
OpenWeather Client
==================
Fetches current conditions and the 3-hour forecast for the monitored point.
Any transport error, non-2xx status or malformed payload raises FetchError,
which aborts the invocation before state is touched.
"""

import logging

import requests

from freeze_clock import from_unix
from freeze_models import ForecastPoint, WeatherSample

logger = logging.getLogger("FreezeAlertAgent.weather")

API_BASE_URL = "https://api.openweathermap.org/data/2.5"


class FetchError(Exception):
    """Weather or forecast provider unreachable or returned bad data."""


def _amount(block, key):
    """Precipitation amount from a 'rain'/'snow' block, or None if absent."""
    if not isinstance(block, dict):
        return None
    value = block.get(key)
    return float(value) if value is not None else None


def parse_current(data):
    """Build a WeatherSample from an OpenWeather /weather payload."""
    try:
        weather = data.get("weather") or [{}]
        return WeatherSample(
            temp_c=float(data["main"]["temp"]),
            observed_at=from_unix(data["dt"]),
            rain_1h_mm=_amount(data.get("rain"), "1h") or 0.0,
            snow_1h_mm=_amount(data.get("snow"), "1h") or 0.0,
            condition_code=weather[0].get("id"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise FetchError(f"Malformed current weather response: {e!r}") from e


def parse_forecast(data):
    """Build an ordered ForecastPoint list from an OpenWeather /forecast payload."""
    try:
        points = []
        for entry in data["list"]:
            rain = _amount(entry.get("rain"), "3h")
            snow = _amount(entry.get("snow"), "3h")
            if rain is None and snow is None:
                precip = None
            else:
                precip = (rain or 0.0) + (snow or 0.0)
            points.append(ForecastPoint(
                time=from_unix(entry["dt"]),
                temp_c=float(entry["main"]["temp"]),
                precip_mm=precip,
            ))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise FetchError(f"Malformed forecast response: {e!r}") from e

    points.sort(key=lambda p: p.time)
    return points


class OpenWeatherClient:

    def __init__(self, config, session=None):
        self.api_key = config.get("api_key", "")
        self.latitude = config["latitude"]
        self.longitude = config["longitude"]
        self.base_url = config.get("base_url", API_BASE_URL).rstrip("/")
        self.timeout = config.get("timeout", 30)
        self.session = session or requests.Session()

    def _get(self, endpoint):
        if not self.api_key:
            raise FetchError("OPENWEATHER_API_KEY is not configured")

        params = {
            "lat": self.latitude,
            "lon": self.longitude,
            "appid": self.api_key,
            "units": "metric",
        }
        url = f"{self.base_url}/{endpoint}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise FetchError(f"{endpoint} request failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"{endpoint} returned invalid JSON: {e}") from e

    def fetch_current(self):
        """Current conditions as a WeatherSample."""
        sample = parse_current(self._get("weather"))
        logger.debug("Current: %.1fC, rain %.1f mm, snow %.1f mm, code %s",
                     sample.temp_c, sample.rain_1h_mm, sample.snow_1h_mm,
                     sample.condition_code)
        return sample

    def fetch_forecast(self):
        """Forecast points ordered by time."""
        points = parse_forecast(self._get("forecast"))
        logger.debug("Forecast fetched: %d points", len(points))
        return points
