# tests/test_realtime.py
"""Tests for realtime push channels (HTTP layer mocked)."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from jobdispatch.core.engine.domain import (
    CrewRecommendation,
    DispatchNotification,
    NotificationPayload,
    NotificationType,
    Priority,
)
from jobdispatch.infra.metrics import get_metrics_collector
from jobdispatch.infra.realtime import (
    DisabledChannel,
    HttpPushChannel,
    get_realtime_channel,
)

SESSION = "jobdispatch.infra.realtime.get_realtime_session"


def _notification() -> DispatchNotification:
    return DispatchNotification(
        id="7f1c9a52-3f7e-4c3b-9a1e-1b2c3d4e5f60",
        type=NotificationType.NEW_BOOKING,
        title="New Job Assignment - SV-1001",
        message="New job from London to Manchester",
        priority=Priority.MEDIUM,
        driver_id="drv_42",
        booking_id="bk_1001",
        payload=NotificationPayload(booking_id="bk_1001", reference="SV-1001", crew=CrewRecommendation()),
        created_at=datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc),
    )


def _make_post_session(status=200, exc=None):
    resp = AsyncMock()
    resp.status = status
    ctx = AsyncMock()
    if exc is not None:
        ctx.__aenter__ = AsyncMock(side_effect=exc)
    else:
        ctx.__aenter__ = AsyncMock(return_value=resp)
    ctx.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.post = MagicMock(return_value=ctx)
    return session


def _counters() -> dict:
    return get_metrics_collector().get_metrics()["counters"]


class TestHttpPushChannel:

    @pytest.mark.asyncio
    async def test_publish_success(self):
        session = _make_post_session(200)
        channel = HttpPushChannel("https://push.test/events", "push-key")

        with patch(SESSION, return_value=session):
            ok = await channel.publish("drv_42", _notification())

        assert ok is True
        args, kwargs = session.post.call_args
        assert args[0] == "https://push.test/events"
        assert kwargs["json"]["channel"] == "driver-drv_42"
        assert kwargs["json"]["event"] == "notification"
        assert kwargs["json"]["data"]["id"] == "7f1c9a52-3f7e-4c3b-9a1e-1b2c3d4e5f60"
        assert kwargs["json"]["data"]["priority"] == "medium"
        assert kwargs["json"]["data"]["data"]["reference"] == "SV-1001"
        assert kwargs["headers"]["Authorization"] == "Bearer push-key"
        assert _counters()["realtime_push_total{status=sent}"] == 1

    @pytest.mark.asyncio
    async def test_rejected_status(self):
        with patch(SESSION, return_value=_make_post_session(401)):
            ok = await HttpPushChannel("https://push.test/events", "bad").publish("drv_42", _notification())

        assert ok is False
        assert _counters()["realtime_push_total{status=rejected}"] == 1

    @pytest.mark.asyncio
    async def test_timeout_does_not_raise(self):
        with patch(SESSION, return_value=_make_post_session(exc=asyncio.TimeoutError())):
            ok = await HttpPushChannel("https://push.test/events", "k").publish("drv_42", _notification())

        assert ok is False
        assert _counters()["realtime_push_total{status=timeout}"] == 1

    @pytest.mark.asyncio
    async def test_network_error_does_not_raise(self):
        exc = aiohttp.ClientConnectionError("reset")
        with patch(SESSION, return_value=_make_post_session(exc=exc)):
            ok = await HttpPushChannel("https://push.test/events", "k").publish("drv_42", _notification())

        assert ok is False

    @pytest.mark.asyncio
    async def test_not_configured(self):
        session = _make_post_session(200)
        with patch(SESSION, return_value=session):
            ok = await HttpPushChannel(None, None).publish("drv_42", _notification())

        assert ok is False
        session.post.assert_not_called()


class TestDisabledChannel:

    @pytest.mark.asyncio
    async def test_publish_is_noop(self):
        assert await DisabledChannel().publish("drv_42", _notification()) is True


class TestGetRealtimeChannel:

    def _settings(self, enabled=True, url="https://push.test/events", key="k"):
        s = MagicMock()
        s.realtime_enabled = enabled
        s.realtime_push_url = url
        s.realtime_push_key = key
        s.realtime_configured = bool(url and key)
        s.realtime_timeout_seconds = 5.0
        return s

    def test_enabled_and_configured(self):
        channel = get_realtime_channel(self._settings())
        assert isinstance(channel, HttpPushChannel)
        assert channel.is_configured()

    def test_disabled(self):
        assert isinstance(get_realtime_channel(self._settings(enabled=False)), DisabledChannel)

    def test_enabled_but_missing_key(self):
        assert isinstance(get_realtime_channel(self._settings(key=None)), DisabledChannel)
