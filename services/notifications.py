"""
services/notifications.py
────────────────────────────────────────────────────────────────────────
Delivery of CRITICAL intervention alerts.

Every dispatcher honours the tracker's contract: `notify()` returns
True on delivery, False on failure, and never raises.
"""
from __future__ import annotations

import logging

import httpx

from config import settings
from core.models.intervention import InterventionRecord

_LOG = logging.getLogger(__name__)


def payload(user_id: int, record: InterventionRecord) -> dict:
    return {
        "userId": user_id,
        "interventionId": record.id,
        "nutrient": record.nutrient.value,
        "nutrientName": record.nutrient.label,
        "level": record.level.value if record.level else None,
        "consecutiveDays": record.consecutive_days,
        "message": record.message,
        "date": record.last_evaluated_date.isoformat(),
    }


class WebhookDispatcher:
    """POSTs a JSON alert to a webhook; any non-2xx answer counts as failure."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def notify(self, user_id: int, record: InterventionRecord) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as http:
                r = await http.post(self._url, json=payload(user_id, record))
            r.raise_for_status()
        except httpx.HTTPError as exc:
            _LOG.warning("webhook delivery failed for user %s: %s", user_id, exc)
            return False
        _LOG.info("critical %s alert sent for user %s", record.nutrient.value, user_id)
        return True


class LogDispatcher:
    """Fallback when no webhook is configured: the log line is the delivery."""

    async def notify(self, user_id: int, record: InterventionRecord) -> bool:
        _LOG.warning(
            "CRITICAL intervention for user %s: %s", user_id, record.message
        )
        return True


def dispatcher_from_settings() -> WebhookDispatcher | LogDispatcher:
    if settings.notification_webhook_url:
        return WebhookDispatcher(
            settings.notification_webhook_url, timeout=settings.notification_timeout_s
        )
    return LogDispatcher()
