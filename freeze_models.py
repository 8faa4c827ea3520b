"""
Freeze Alert Data Model
=======================
Observations coming in from the weather provider, the persisted alert state,
and the alert intents produced by the decision engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

# OpenWeather condition ids: 2xx thunderstorm, 3xx drizzle, 5xx rain, 6xx snow.
# 7xx (atmosphere) and 800+ (clear/clouds) are dry.
PRECIP_CODE_RANGES = [
    (200, 299),
    (300, 399),
    (500, 599),
    (600, 699),
]


def is_precip_code(code):
    """True if an OpenWeather condition id describes falling precipitation."""
    if code is None:
        return False
    return any(lo <= code <= hi for lo, hi in PRECIP_CODE_RANGES)


@dataclass
class WeatherSample:
    """Current observation at the monitored point."""
    temp_c: float
    observed_at: datetime
    rain_1h_mm: float = 0.0
    snow_1h_mm: float = 0.0
    condition_code: Optional[int] = None

    @property
    def has_precip(self):
        return (
            self.rain_1h_mm > 0
            or self.snow_1h_mm > 0
            or is_precip_code(self.condition_code)
        )


@dataclass
class ForecastPoint:
    """One forecast interval. precip_mm is None when the provider omits it."""
    time: datetime
    temp_c: float
    precip_mm: Optional[float] = None

    @property
    def has_precip(self):
        return self.precip_mm is not None and self.precip_mm > 0


@dataclass
class AlertState:
    """
    Persisted decision state.
    A fresh record is armed: above zero, no alerts sent, no precipitation seen.
    """
    temp_was_above_zero: bool = True
    last_warning_at: Optional[datetime] = None
    last_freeze_alert_at: Optional[datetime] = None
    last_precip_at: Optional[datetime] = None

    @property
    def phase(self):
        """Name of the freeze/thaw cycle position, for logs and status output."""
        if not self.temp_was_above_zero:
            return "FROZEN"
        if self.last_warning_at is not None:
            return "WARNED"
        return "ARMED"


WARNING = "warning"
FREEZE = "freeze"


@dataclass
class AlertIntent:
    """A notification the engine wants sent."""
    kind: str
    title: str
    message: str
    priority: str
    tags: list = field(default_factory=list)
