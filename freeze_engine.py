"""
Freeze Alert Decision Engine
============================
Pure decision logic for the two alert channels sharing one freeze/thaw cycle:

  1. Freeze Warning: forecast shows <= 0C between 1 and 6 hours out while it
     is still above zero. Sent at most once per 24 hours.
  2. Freeze Alert:   observed temperature crosses from above zero to <= 0C.
     Sent once per sub-zero episode.

Cycle:  ARMED -> WARNED -> FROZEN -> (thaw) -> ARMED

`evaluate` never performs I/O. It returns the evolved state and the alerts
that should be dispatched; the caller records successful sends with
`mark_sent` so a failed dispatch leaves its timestamp untouched.
"""

import logging
from dataclasses import dataclass, field, replace

from freeze_clock import format_clock, hours_since, hours_until
from freeze_models import FREEZE, WARNING, AlertIntent, AlertState
from precip_tracker import classify_dryness

logger = logging.getLogger("FreezeAlertAgent.engine")

FREEZE_TEMP_C = 0.0

ALERT_THRESHOLDS = {
    "warning_points": 3,           # Nearest forecast points (3h steps, ~9h)
    "warning_min_hours": 1.0,      # Closer than this, the freeze alert covers it
    "warning_max_hours": 6.0,      # Actionable lead time
    "warning_ttl_hours": 24.0,     # Unconsummated warning expires after this
}


@dataclass
class Decision:
    state: AlertState
    alerts: list = field(default_factory=list)


def warning_expired(last_warning_at, now, ttl_hours=None):
    """True if a warning was sent more than ttl_hours ago."""
    if last_warning_at is None:
        return False
    if ttl_hours is None:
        ttl_hours = ALERT_THRESHOLDS["warning_ttl_hours"]
    return hours_since(last_warning_at, now) > ttl_hours


def find_freeze_point(forecast, now, thresholds=None):
    """
    First forecast point in the look-ahead window predicting <= 0C with a
    lead time inside [warning_min_hours, warning_max_hours].
    Returns (point, hours_out) or None.
    """
    thresholds = thresholds or ALERT_THRESHOLDS
    upcoming = [p for p in forecast if p.time > now]

    for point in upcoming[:thresholds["warning_points"]]:
        if point.temp_c > FREEZE_TEMP_C:
            continue
        hours_out = hours_until(now, point.time)
        if thresholds["warning_min_hours"] <= hours_out <= thresholds["warning_max_hours"]:
            return point, hours_out
    return None


def build_warning(current_temp, point, hours_out, risk):
    msg = (
        f"FREEZE WARNING\n\n"
        f"Now: {current_temp:.1f}C\n"
        f"Freezing in ~{hours_out:.1f} hours ({format_clock(point.time)}): "
        f"{point.temp_c:.1f}C\n\n"
        f"{risk.message}\n\n"
        f"Salt the sidewalk before it freezes."
    )
    return AlertIntent(
        kind=WARNING,
        title="Freeze Warning",
        message=msg,
        priority="high",
        tags=["warning", "thermometer"],
    )


def build_freeze_alert(current_temp, risk):
    msg = (
        f"FREEZE ALERT\n\n"
        f"Temperature at freezing: {current_temp:.1f}C\n\n"
        f"{risk.message}\n\n"
        f"Time to salt the sidewalk!"
    )
    return AlertIntent(
        kind=FREEZE,
        title="Freeze Alert",
        message=msg,
        priority="urgent",
        tags=["snowflake", "warning"],
    )


def evaluate(state, current_temp, forecast, now, risk=None, first_run=False,
             thresholds=None):
    """
    Run one decision step.

    state       -- AlertState loaded at the start of the invocation
    current_temp -- observed temperature (C)
    forecast    -- ForecastPoint list ordered by time
    now         -- invocation time (aware datetime)
    risk        -- DrynessRisk; derived from state.last_precip_at when omitted
    first_run   -- no persisted state existed; a freeze observed on the very
                   first run is recorded but not alerted

    Returns a Decision. Alert timestamps are NOT set here; see mark_sent().
    """
    thresholds = thresholds or ALERT_THRESHOLDS
    alerts = []
    if risk is None:
        risk = classify_dryness(state.last_precip_at, now)

    # Step 1: warning expiry
    if warning_expired(state.last_warning_at, now, thresholds["warning_ttl_hours"]):
        logger.info("Warning from %s expired. Warning channel re-armed.",
                    state.last_warning_at.isoformat())
        state = replace(state, last_warning_at=None)

    # Step 2: forecast warning
    if current_temp > FREEZE_TEMP_C and state.last_warning_at is None:
        match = find_freeze_point(forecast, now, thresholds)
        if match:
            point, hours_out = match
            logger.info("Freeze forecast in %.1f hours (%.1fC). Warning triggered.",
                        hours_out, point.temp_c)
            alerts.append(build_warning(current_temp, point, hours_out, risk))
    elif current_temp > FREEZE_TEMP_C:
        logger.debug("Warning already sent at %s. Suppressed.",
                     state.last_warning_at.isoformat())

    # Step 3: freeze onset (edge-triggered)
    if current_temp <= FREEZE_TEMP_C:
        if state.temp_was_above_zero:
            if first_run:
                logger.info("First run and already at %.1fC. Freeze alert suppressed.",
                            current_temp)
            else:
                logger.info("Temperature dropped to %.1fC. Freeze alert triggered.",
                            current_temp)
                alerts.append(build_freeze_alert(current_temp, risk))
            state = replace(state, temp_was_above_zero=False)
        else:
            logger.info("Temperature still below freezing (already alerted).")

    # Step 4: re-arm on thaw
    elif not state.temp_was_above_zero:
        logger.info("Temperature back above freezing (%.1fC). Resetting alert state.",
                    current_temp)
        state = replace(
            state,
            temp_was_above_zero=True,
            last_warning_at=None,
            last_freeze_alert_at=None,
        )

    return Decision(state=state, alerts=alerts)


def mark_sent(state, intent, now):
    """Record a successfully dispatched alert."""
    if intent.kind == WARNING:
        return replace(state, last_warning_at=now)
    if intent.kind == FREEZE:
        return replace(state, last_freeze_alert_at=now)
    raise ValueError(f"Unknown alert kind: {intent.kind}")
