"""
Precipitation Tracker
=====================
Keeps `last_precip_at` current and turns the time since the last wet spell
into an ice-risk classification.

  < 0.5 days  -> HIGH ice risk (surfaces still wet)
  < 1 day     -> MODERATE risk
  >= 1 day    -> lower risk, reported as days dry
  never seen  -> no data
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from freeze_clock import days_since

logger = logging.getLogger("FreezeAlertAgent.precip")

# Forecast points consulted when seeding dryness tracking (8 x 3h = 24h).
PRECIP_SCAN_POINTS = 8

HIGH_RISK_DAYS = 0.5
MODERATE_RISK_DAYS = 1.0

RISK_UNKNOWN = "unknown"
RISK_HIGH = "high"
RISK_MODERATE = "moderate"
RISK_LOW = "low"


@dataclass
class DrynessRisk:
    level: str
    days_dry: Optional[float]
    message: str

    @property
    def is_high(self):
        return self.level == RISK_HIGH


def update_precipitation(state, sample, forecast, now, scan_points=PRECIP_SCAN_POINTS):
    """
    Return a copy of state with last_precip_at updated.

    Current precipitation always refreshes the timestamp to now. Forecast
    precipitation only seeds it when nothing has been recorded yet.
    """
    if sample.has_precip:
        logger.info("Precipitation detected now. Updating last_precip_at.")
        return replace(state, last_precip_at=now)

    if state.last_precip_at is not None:
        return state

    for point in forecast[:scan_points]:
        if point.has_precip:
            logger.info(
                "Precipitation forecast at %s (%.1f mm). Seeding last_precip_at.",
                point.time.isoformat(), point.precip_mm
            )
            return replace(state, last_precip_at=now)

    return state


def classify_dryness(last_precip_at, now):
    """Classify ice risk from the time since the last precipitation."""
    if last_precip_at is None:
        return DrynessRisk(RISK_UNKNOWN, None, "No recent precipitation data")

    elapsed = days_since(last_precip_at, now)
    days = round(elapsed, 1)

    if elapsed < HIGH_RISK_DAYS:
        return DrynessRisk(
            RISK_HIGH, days, "Rain/snow within last 12 hours - HIGH ICE RISK"
        )
    if elapsed < MODERATE_RISK_DAYS:
        return DrynessRisk(
            RISK_MODERATE, days, f"Precipitation {days:.1f} days ago - MODERATE RISK"
        )
    return DrynessRisk(RISK_LOW, days, f"Dry for {days:.1f} days - lower ice risk")
