"""
Freeze Alert State Store
========================
Reads and writes the AlertState record as JSON.

Absent timestamps are written as explicit nulls. On read, null, {} , [] and ""
all mean "no value" (older state files encoded NULL as an empty object).
Unreadable or malformed files are treated as no prior state.
"""

import json
import logging
import os

from freeze_clock import format_timestamp, parse_timestamp
from freeze_models import AlertState

logger = logging.getLogger("FreezeAlertAgent.state")

TIMESTAMP_FIELDS = ("last_warning_at", "last_freeze_alert_at", "last_precip_at")

# Keys used by state files from the earlier script.
LEGACY_KEYS = {
    "last_alert_time": "last_freeze_alert_at",
    "last_precip_time": "last_precip_at",
}


class StateCorruption(ValueError):
    """Persisted state exists but cannot be interpreted."""


def _is_empty(value):
    return value is None or value == {} or value == [] or value == ""


def state_to_dict(state):
    """Serialize an AlertState to a JSON-ready dict."""
    data = {"temp_was_above_zero": state.temp_was_above_zero}
    for name in TIMESTAMP_FIELDS:
        data[name] = format_timestamp(getattr(state, name))
    return data


def state_from_dict(data):
    """Build an AlertState from a decoded dict. Raises StateCorruption."""
    if not isinstance(data, dict):
        raise StateCorruption(f"Expected an object, got {type(data).__name__}")

    data = dict(data)
    for old, new in LEGACY_KEYS.items():
        if old in data and _is_empty(data.get(new)):
            data[new] = data[old]

    above = data.get("temp_was_above_zero", True)
    if isinstance(above, list) and len(above) == 1:
        above = above[0]
    if not isinstance(above, bool):
        raise StateCorruption(f"temp_was_above_zero is not a boolean: {above!r}")

    values = {"temp_was_above_zero": above}
    for name in TIMESTAMP_FIELDS:
        raw = data.get(name)
        if _is_empty(raw):
            values[name] = None
            continue
        try:
            values[name] = parse_timestamp(raw)
        except ValueError as e:
            raise StateCorruption(f"{name}: {e}") from e

    return AlertState(**values)


class StateStore:
    """JSON file holding a single AlertState."""

    def __init__(self, path):
        self.path = path

    def exists(self):
        return os.path.exists(self.path)

    def load(self):
        """
        Load persisted state.
        Returns (state, existed). existed is False when there was no file or
        it could not be read, in which case a fresh AlertState is returned.
        """
        if not self.exists():
            logger.info("No state file at %s. Starting fresh.", self.path)
            return AlertState(), False

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            state = state_from_dict(data)
        except (json.JSONDecodeError, OSError, StateCorruption) as e:
            logger.warning("Could not load state file: %s. Starting fresh.", e)
            return AlertState(), False

        logger.debug("Loaded state: %s", state_to_dict(state))
        return state, True

    def save(self, state):
        """Overwrite the state file. Returns True on success."""
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(state_to_dict(state), f, indent=2)
        except OSError as e:
            logger.error("Could not save state file: %s", e)
            return False
        logger.debug("State saved to %s", self.path)
        return True
