"""
Freeze Alert Clock
==================
Time helpers for the freeze alert job. All timestamps are timezone-aware and
expressed in the fixed local zone of the monitored location.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo("America/Toronto")

# Format written by the original shell-scheduled script: UTC wall time, no offset.
LEGACY_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_local():
    """Current time in the local zone."""
    return datetime.now(LOCAL_TZ)


def to_local(ts):
    """Attach or convert to the local zone. Naive values are taken as local."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=LOCAL_TZ)
    return ts.astimezone(LOCAL_TZ)


def from_unix(seconds):
    """Convert a provider epoch timestamp (seconds, UTC) to local time."""
    return datetime.fromtimestamp(seconds, LOCAL_TZ)


def format_timestamp(ts):
    """Serialize a timestamp for the state file. None stays None."""
    if ts is None:
        return None
    return to_local(ts).isoformat()


def parse_timestamp(value):
    """
    Parse a persisted timestamp.
    Accepts ISO 8601 (naive values are local) and the legacy
    'YYYY-MM-DD HH:MM:SS' form, which is UTC. Raises ValueError on anything else.
    """
    if isinstance(value, datetime):
        return to_local(value)
    if not isinstance(value, str):
        raise ValueError(f"Not a timestamp: {value!r}")
    try:
        legacy = datetime.strptime(value, LEGACY_FORMAT)
    except ValueError:
        return to_local(datetime.fromisoformat(value))
    return legacy.replace(tzinfo=timezone.utc).astimezone(LOCAL_TZ)


def hours_until(now, ts):
    """Hours from now until ts (negative if ts is in the past)."""
    return (ts - now).total_seconds() / 3600.0


def hours_since(ts, now):
    """Hours elapsed from ts until now."""
    return (now - ts).total_seconds() / 3600.0


def days_since(ts, now):
    """Days elapsed from ts until now, unrounded."""
    return hours_since(ts, now) / 24.0


def format_clock(ts):
    """Short local wall-clock label like '3:00 AM'."""
    local = to_local(ts)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"
