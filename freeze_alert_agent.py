"""
Freeze Alert Agent
==================
Checks current weather and the short-term forecast for Toronto Midtown and
sends ntfy push notifications when sidewalks are about to ice over.

Alert Channels:
  1. Freeze Warning: Forecast <= 0C within 1-6 hours while still above zero
                     (high priority, at most once per 24 hours)
  2. Freeze Alert:   Temperature just dropped to <= 0C
                     (urgent, once per freeze; re-armed when it thaws)

Each message includes an ice-risk line based on how long since the last
rain or snow.

Designed to be run by a scheduler (cron, GitHub Actions) every 15-60 minutes.
State is kept in a JSON file so repeated runs do not resend alerts.

Usage:
  python freeze_alert_agent.py            # Single check, then exit
  python freeze_alert_agent.py --test     # Send a temperature check notification
  python freeze_alert_agent.py --status   # Show conditions + alert state, send nothing
"""

import sys
import os
import logging
import argparse
from dataclasses import dataclass, field

import requests

from freeze_clock import format_clock, hours_until, now_local
from freeze_engine import ALERT_THRESHOLDS, evaluate, find_freeze_point, mark_sent
from freeze_models import AlertState
from notifier import NtfyNotifier
from precip_tracker import classify_dryness, update_precipitation
from state_store import StateStore
from weather_client import FetchError, OpenWeatherClient

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))


# =============================================================================
# CONFIGURATION
# =============================================================================

# --- Location ---
LOCATION = {
    "name": "Toronto Midtown",
    "latitude": 43.65,
    "longitude": -79.38,
}

# --- ntfy push notifications ---
# In cloud mode (GitHub Actions), these come from repository secrets.
NTFY_CONFIG = {
    "server": "https://ntfy.sh",
    "topic": "",
    "timeout": 15,
}

# --- Operational ---
OPERATIONAL = {
    "state_file": "freeze_state.json",
    "log_file": "freeze_alert_agent.log",
    "api_base_url": "https://api.openweathermap.org/data/2.5",
    "api_timeout": 30,
}


def build_config(environ=None):
    """
    Merge the defaults above with environment variables into one config dict.
    Nothing downstream reads the environment directly.
    """
    env = os.environ if environ is None else environ

    latitude = float(env.get("FREEZE_LAT", LOCATION["latitude"]))
    longitude = float(env.get("FREEZE_LON", LOCATION["longitude"]))
    state_file = env.get("FREEZE_STATE_FILE") or os.path.join(
        SCRIPT_DIR, OPERATIONAL["state_file"]
    )

    return {
        "location": dict(LOCATION, latitude=latitude, longitude=longitude),
        "weather": {
            "api_key": env.get("OPENWEATHER_API_KEY", ""),
            "latitude": latitude,
            "longitude": longitude,
            "base_url": OPERATIONAL["api_base_url"],
            "timeout": OPERATIONAL["api_timeout"],
        },
        "ntfy": dict(
            NTFY_CONFIG,
            server=env.get("NTFY_SERVER", NTFY_CONFIG["server"]),
            topic=env.get("NTFY_TOPIC", NTFY_CONFIG["topic"]),
        ),
        "state_file": state_file,
        "log_file": env.get("FREEZE_LOG_FILE") or os.path.join(
            SCRIPT_DIR, OPERATIONAL["log_file"]
        ),
        "thresholds": dict(ALERT_THRESHOLDS),
    }


def setup_logging(log_path=None):
    """Configure logging to both file and console."""
    logger = logging.getLogger("FreezeAlertAgent")
    logger.setLevel(logging.DEBUG)

    # Already configured
    if logger.handlers:
        return logger

    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s",
                                  datefmt="%Y-%m-%d %H:%M:%S")

    if log_path:
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    return logger


# =============================================================================
# FREEZE ALERT AGENT
# =============================================================================

@dataclass
class RunResult:
    state: AlertState
    sent: list = field(default_factory=list)
    failed: list = field(default_factory=list)
    saved: bool = True


class FreezeAlertAgent:
    """
    Fetches conditions from OpenWeather, runs the freeze decision engine and
    pushes alerts through ntfy.
    """

    def __init__(self, config, weather=None, notifier=None, store=None):
        self.config = config
        self.logger = logging.getLogger("FreezeAlertAgent")

        session = None
        if weather is None or notifier is None:
            session = requests.Session()
            session.headers.update({
                'User-Agent': 'FreezeAlertAgent/1.0',
                'Accept': 'application/json',
            })

        self.weather = weather or OpenWeatherClient(config["weather"], session=session)
        self.notifier = notifier or NtfyNotifier(config["ntfy"], session=session)
        self.store = store or StateStore(config["state_file"])

    # -------------------------------------------------------------------------
    # Orchestration
    # -------------------------------------------------------------------------

    def run_once(self, now=None):
        """
        One invocation: fetch -> track precipitation -> decide -> dispatch -> save.
        FetchError propagates before any state is written.
        """
        now = now or now_local()
        self.logger.info("=== Freeze Alert Check: %s ===",
                         self.config["location"]["name"])
        self.logger.info("Time: %s", now.strftime("%Y-%m-%d %H:%M:%S"))

        sample = self.weather.fetch_current()
        forecast = self.weather.fetch_forecast()

        self.logger.info("Current temp: %.1fC", sample.temp_c)
        self.logger.info("Precipitation now: %s", sample.has_precip)

        state, existed = self.store.load()
        state = update_precipitation(state, sample, forecast, now)
        risk = classify_dryness(state.last_precip_at, now)

        decision = evaluate(
            state, sample.temp_c, forecast, now,
            risk=risk,
            first_run=not existed,
            thresholds=self.config.get("thresholds"),
        )
        result = RunResult(state=decision.state)

        if not decision.alerts:
            self.logger.info("No alert conditions detected.")

        for intent in decision.alerts:
            self.logger.info("Alert triggered [%s]: %s", intent.kind,
                             intent.message.replace("\n", " "))
            if self.notifier.send_intent(intent):
                result.state = mark_sent(result.state, intent, now)
                result.sent.append(intent)
            else:
                self.logger.warning("Failed to send alert [%s]", intent.kind)
                result.failed.append(intent)

        result.saved = self.store.save(result.state)
        self.logger.info("Check complete. %d alert(s) sent. Phase: %s",
                         len(result.sent), result.state.phase)
        return result

    def send_test_notification(self, now=None):
        """
        Send a default-priority temperature check, keeping precipitation
        tracking current. The decision engine is not run.
        """
        now = now or now_local()
        sample = self.weather.fetch_current()
        forecast = self.weather.fetch_forecast()

        state, _ = self.store.load()
        state = update_precipitation(state, sample, forecast, now)
        risk = classify_dryness(state.last_precip_at, now)

        message = (
            f"Temperature Check\n\n"
            f"Current: {sample.temp_c:.1f}C\n"
            f"{risk.message}\n\n"
            f"(Freeze alerts fire at 0C)"
        )
        self.logger.info("Sending test notification via ntfy...")
        success = self.notifier.send(message, "Temperature Check", "default",
                                     ["thermometer"])
        if success:
            self.logger.info("Test notification sent successfully!")
        else:
            self.logger.error("Test notification failed. Check configuration and logs.")

        saved = self.store.save(state)
        return success and saved

    def show_status(self, now=None):
        """Print conditions, forecast window and alert state. Sends nothing."""
        now = now or now_local()
        location = self.config["location"]
        thresholds = self.config.get("thresholds") or ALERT_THRESHOLDS

        print(f"\n{'='*60}")
        print(f"  Freeze Alert Agent - Status")
        print(f"  Location: {location['name']} ({location['latitude']}, {location['longitude']})")
        print(f"  Time:     {now.strftime('%Y-%m-%d %H:%M:%S %Z')}")
        print(f"{'='*60}\n")

        print(f"  ntfy:  {self.notifier.url}")
        print(f"  State: {self.store.path}")
        print()

        try:
            sample = self.weather.fetch_current()
            forecast = self.weather.fetch_forecast()
        except FetchError as e:
            print(f"  ERROR: Could not fetch weather: {e}\n")
            return False

        print(f"  Current: {sample.temp_c:.1f}C  Precipitation: {'yes' if sample.has_precip else 'no'}")
        print()

        print(f"  {'Time':<10} {'In':>6} {'Temp':>7} {'Precip':>8}")
        print(f"  {'-'*10} {'-'*6} {'-'*7} {'-'*8}")
        for point in forecast[:8]:
            precip = f"{point.precip_mm:.1f}mm" if point.precip_mm is not None else "-"
            flag = " ***" if point.temp_c <= 0 else ""
            print(f"  {format_clock(point.time):<10} {hours_until(now, point.time):>5.1f}h "
                  f"{point.temp_c:>6.1f}C {precip:>8}{flag}")

        state, existed = self.store.load()
        tracked = update_precipitation(state, sample, forecast, now)
        risk = classify_dryness(tracked.last_precip_at, now)

        print(f"\n  --- Alert State ({'persisted' if existed else 'fresh'}) ---")
        print(f"  Phase:              {state.phase}")
        print(f"  Above zero:         {state.temp_was_above_zero}")
        for name in ("last_warning_at", "last_freeze_alert_at", "last_precip_at"):
            value = getattr(state, name)
            print(f"  {name + ':':<20}{value.isoformat() if value else 'never'}")
        print(f"  Ice risk:           {risk.message}")

        print(f"\n  --- Alert Analysis ---")
        match = find_freeze_point(forecast, now, thresholds)
        if match:
            point, hours_out = match
            print(f"  Forecast freeze in {hours_out:.1f}h ({point.temp_c:.1f}C)")

        decision = evaluate(tracked, sample.temp_c, forecast, now, risk=risk,
                            first_run=not existed, thresholds=thresholds)
        if decision.alerts:
            for intent in decision.alerts:
                print(f"  (WOULD SEND) [{intent.priority}] {intent.title}")
        else:
            print("  No alert conditions detected.")

        print()
        return True


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Freeze Alert Agent - push alerts when sidewalks are about to freeze"
    )
    parser.add_argument(
        "--test", action="store_true",
        help="Send a temperature check notification to verify configuration"
    )
    parser.add_argument(
        "--status", action="store_true",
        help="Show current conditions and alert state without sending"
    )
    args = parser.parse_args(argv)

    config = build_config()
    logger = setup_logging(config["log_file"])
    agent = FreezeAlertAgent(config)

    if args.status:
        return 0 if agent.show_status() else 1

    if not config["ntfy"]["topic"]:
        logger.error("ERROR: NTFY_TOPIC is not configured. Nothing would be delivered.")
        return 1

    try:
        if args.test:
            return 0 if agent.send_test_notification() else 1
        result = agent.run_once()
    except FetchError as e:
        logger.error("ERROR: %s", e)
        return 1

    return 0 if result.saved else 1


if __name__ == "__main__":
    sys.exit(main())
