# tests/test_notifications.py
from __future__ import annotations

import asyncio
import json
from datetime import date, datetime, timezone

import httpx

from core.models.intervention import InterventionLevel, open_record, touch
from core.nutrients import Nutrient
from services.notifications import LogDispatcher, WebhookDispatcher

NOW = datetime(2024, 5, 7, tzinfo=timezone.utc)
RECORD = touch(
    open_record(42, Nutrient.IRON, date(2024, 5, 7), NOW),
    NOW,
    id=3,
    consecutive_days=7,
    level=InterventionLevel.CRITICAL,
    message="URGENT: iron",
)


def _dispatch(handler) -> bool:
    d = WebhookDispatcher("https://hooks.example/alerts", transport=httpx.MockTransport(handler))
    return asyncio.run(d.notify(42, RECORD))


def test_webhook_success_posts_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(202)

    assert _dispatch(handler) is True
    (body,) = seen
    assert body["userId"] == 42
    assert body["nutrient"] == "iron"
    assert body["level"] == "CRITICAL"
    assert body["consecutiveDays"] == 7
    assert body["date"] == "2024-05-07"


def test_webhook_http_error_is_false():
    assert _dispatch(lambda request: httpx.Response(500)) is False


def test_webhook_transport_error_is_false():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert _dispatch(handler) is False


def test_log_dispatcher_always_delivers():
    assert asyncio.run(LogDispatcher().notify(42, RECORD)) is True
