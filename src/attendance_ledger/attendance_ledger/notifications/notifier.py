from __future__ import annotations

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Push transport. Implementations raise NotificationDeliveryError on failure."""

    def send(self, device_token: str, title: str, body: str, data: Optional[dict] = None) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default transport: records the push message in the application log."""

    def send(self, device_token: str, title: str, body: str, data: Optional[dict] = None) -> None:
        logger.info("push to %s…: %s | %s | %s", device_token[:8], title, body, data or {})
