"""
ntfy Notification Dispatcher
============================
Pushes alert messages to an ntfy topic. Delivery failures are logged and
reported as False; they never abort the run.
"""

import logging

import requests

logger = logging.getLogger("FreezeAlertAgent.notify")

PRIORITIES = ("default", "high", "urgent")


class DispatchError(Exception):
    """Notification provider rejected or could not be reached."""


class NtfyNotifier:

    def __init__(self, config, session=None):
        self.server = config.get("server", "https://ntfy.sh").rstrip("/")
        self.topic = config.get("topic", "")
        self.timeout = config.get("timeout", 15)
        self.session = session or requests.Session()

    @property
    def url(self):
        return f"{self.server}/{self.topic}"

    def _post(self, message, title, priority, tags):
        if not self.topic:
            raise DispatchError("NTFY_TOPIC is not configured")
        if priority not in PRIORITIES:
            raise DispatchError(f"Unsupported priority: {priority}")

        response = self.session.post(
            self.url,
            data=message.encode("utf-8"),
            headers={
                "Title": title,
                "Priority": priority,
                "Tags": ",".join(tags),
            },
            timeout=self.timeout,
        )
        if not 200 <= response.status_code < 300:
            raise DispatchError(f"ntfy returned HTTP {response.status_code}")

    def send(self, message, title, priority="default", tags=()):
        """Send one notification. Returns True if the provider accepted it."""
        try:
            self._post(message, title, priority, list(tags))
        except (requests.RequestException, DispatchError) as e:
            logger.error("Failed to send alert via ntfy: %s", e)
            return False

        logger.info("Alert sent via ntfy [%s]: %s", priority, message[:80].replace("\n", " "))
        return True

    def send_intent(self, intent):
        return self.send(intent.message, intent.title, intent.priority, intent.tags)
