"""Push transport that only logs. Used for local runs without FCM credentials."""

from __future__ import annotations

import logging

from taskpulse.notifications.channels import DeliveryResult

logger = logging.getLogger(__name__)


class LogTransport:
    """Logs every notification and reports it delivered."""

    @property
    def name(self) -> str:
        return "log"

    async def send_multicast(
        self, tokens: list[str], title: str, body: str
    ) -> list[DeliveryResult]:
        for token in tokens:
            logger.info("Push to %s…: %s | %s", token[:12], title, body)
        return [DeliveryResult(token=t, success=True) for t in tokens]
