"""
notifier.py
"CHAIN EXPIRING!" banner + out-of-band alert, at most one alert per cooldown.
"""

from __future__ import annotations

import time
import logging
from typing import Callable

ALERT_TITLE = "CHAIN EXPIRING!"
ALERT_BODY  = "The chain timer has reached 2.5 minutes!"

log = logging.getLogger(__name__)


class WarningNotifier:
    def __init__(self, display, alert: Callable[[str, str], None], cooldown: float = 10,
                 clock: Callable[[], float] = time.time,
                 title: str = ALERT_TITLE, body: str = ALERT_BODY):
        self.display = display
        self.alert = alert
        self.cooldown = cooldown
        self.clock = clock
        self.title = title
        self.body = body
        self.last_fired: float | None = None

    def raise_warning(self) -> bool:
        """Show the banner; send an alert unless one went out within the cooldown."""
        self.display.show_warning(self.title)

        now = self.clock()
        if self.last_fired is not None and now - self.last_fired < self.cooldown:
            return False
        self.last_fired = now
        try:
            self.alert(self.title, self.body)
            log.info("Notification sent")
        except Exception as e:
            log.error("Error sending notification: %s", e)
        return True

    def clear(self):
        self.display.hide_warning()
