# tests/test_providers.py
"""
Tests for the weather / traffic / route provider clients.

All tests mock the HTTP layer, no real provider calls.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from jobdispatch.core.engine.domain import CongestionLevel, ImpactLevel
from jobdispatch.infra.providers import (
    HttpRouteProvider,
    HttpTrafficProvider,
    HttpWeatherProvider,
    ProviderError,
)

SESSION = "jobdispatch.infra.providers.base.get_provider_session"

ORIGIN = (51.5237, -0.1585)
DESTINATION = (53.4831, -2.2448)


def _make_mock_response(status=200, json_data=None):
    """Create a mock aiohttp response."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data if json_data is not None else {})
    return resp


def _make_mock_session(response):
    """Create a mock session whose .get() returns the given response."""
    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=ctx)
    return session


def _make_failing_session(exc):
    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(side_effect=exc)
    ctx.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.get = MagicMock(return_value=ctx)
    return session


def _weather_provider(url="https://weather.test/forecast"):
    return HttpWeatherProvider(url, timeout_seconds=2.5, api_key="k-123")


WEATHER_JSON = {
    "condition": "Rain",
    "temperature": 11,
    "precipitation": 6.2,
    "windSpeed": 12,
    "visibility": 9,
}

TRAFFIC_JSON = {
    "congestionLevel": "high",
    "estimatedDelay": 40,
    "roadClosures": [
        {"location": "A40", "reason": "Roadworks", "estimatedDuration": "2 hours", "impact": "high"},
    ],
    "alternativeRoutes": [
        {"route": "via M40", "distance": 210, "time": 230, "fuelCost": 31.5,
         "savings": 4.0, "trafficLevel": "low", "ulezImpact": False},
    ],
}

ROUTE_JSON = {
    "originalRoute": {"distance": 200, "time": 240, "fuelCost": 30.0, "ulezCost": 12.5, "totalCost": 42.5},
    "optimizedRoute": {"distance": 190, "time": 225, "fuelCost": 24.0, "ulezCost": 0,
                       "totalCost": 24.0, "savings": 18.5},
}


class TestWeatherProvider:

    @pytest.mark.asyncio
    async def test_success(self):
        session = _make_mock_session(_make_mock_response(200, WEATHER_JSON))

        with patch(SESSION, return_value=session):
            info = await _weather_provider().fetch(51.5, -0.15, datetime(2026, 3, 14, 10, tzinfo=timezone.utc))

        assert info.condition == "Rain"
        assert info.precipitation_mm == 6.2
        assert info.wind_speed_kph == 12
        assert info.impact is ImpactLevel.HIGH
        assert info.recommendations[0] == "Heavy rain expected - allow extra travel time"

    @pytest.mark.asyncio
    async def test_sends_coordinates_and_bearer_key(self):
        session = _make_mock_session(_make_mock_response(200, WEATHER_JSON))

        with patch(SESSION, return_value=session):
            await _weather_provider().fetch(51.5, -0.15, datetime(2026, 3, 14, 10, tzinfo=timezone.utc))

        args, kwargs = session.get.call_args
        assert args[0] == "https://weather.test/forecast"
        assert kwargs["params"]["lat"] == "51.5"
        assert kwargs["params"]["lng"] == "-0.15"
        assert kwargs["params"]["date"] == "2026-03-14T10:00:00+00:00"
        assert kwargs["headers"]["Authorization"] == "Bearer k-123"
        assert kwargs["timeout"].total == 2.5

    @pytest.mark.asyncio
    async def test_http_error(self):
        session = _make_mock_session(_make_mock_response(503))

        with patch(SESSION, return_value=session):
            with pytest.raises(ProviderError) as exc_info:
                await _weather_provider().fetch(51.5, -0.15, datetime.now(timezone.utc))

        assert exc_info.value.reason == "http_status"
        assert exc_info.value.provider == "weather"

    @pytest.mark.asyncio
    async def test_timeout(self):
        with patch(SESSION, return_value=_make_failing_session(asyncio.TimeoutError())):
            with pytest.raises(ProviderError) as exc_info:
                await _weather_provider().fetch(51.5, -0.15, datetime.now(timezone.utc))

        assert exc_info.value.reason == "timeout"

    @pytest.mark.asyncio
    async def test_network_error(self):
        with patch(SESSION, return_value=_make_failing_session(aiohttp.ClientConnectionError("refused"))):
            with pytest.raises(ProviderError) as exc_info:
                await _weather_provider().fetch(51.5, -0.15, datetime.now(timezone.utc))

        assert exc_info.value.reason == "network"

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        session = _make_mock_session(_make_mock_response(200, {"condition": "Rain"}))

        with patch(SESSION, return_value=session):
            with pytest.raises(ProviderError) as exc_info:
                await _weather_provider().fetch(51.5, -0.15, datetime.now(timezone.utc))

        assert exc_info.value.reason == "parse"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        resp = _make_mock_response(200)
        resp.json = AsyncMock(side_effect=ValueError("not json"))

        with patch(SESSION, return_value=_make_mock_session(resp)):
            with pytest.raises(ProviderError) as exc_info:
                await _weather_provider().fetch(51.5, -0.15, datetime.now(timezone.utc))

        assert exc_info.value.reason == "parse"

    @pytest.mark.asyncio
    async def test_not_configured(self):
        session = _make_mock_session(_make_mock_response(200, WEATHER_JSON))

        with patch(SESSION, return_value=session):
            with pytest.raises(ProviderError) as exc_info:
                await _weather_provider(url=None).fetch(51.5, -0.15, datetime.now(timezone.utc))

        assert exc_info.value.reason == "not_configured"
        session.get.assert_not_called()


class TestTrafficProvider:

    @pytest.mark.asyncio
    async def test_success(self):
        session = _make_mock_session(_make_mock_response(200, TRAFFIC_JSON))
        provider = HttpTrafficProvider("https://traffic.test/route", timeout_seconds=2.5)

        with patch(SESSION, return_value=session):
            traffic = await provider.fetch(ORIGIN, DESTINATION)

        assert traffic.congestion_level is CongestionLevel.HIGH
        assert traffic.estimated_delay_minutes == 40
        assert traffic.road_closures[0].location == "A40"
        assert traffic.road_closures[0].impact is ImpactLevel.HIGH
        assert traffic.alternative_routes[0].distance_miles == 210
        assert traffic.recommendations == [
            "Heavy traffic expected - allow extra travel time",
            "Consider alternative routes if available",
            "Significant delay expected: 40 minutes",
            "Road closures detected - check alternative routes",
            "Alternative routes available - consider fuel efficiency",
        ]

        kwargs = session.get.call_args.kwargs
        assert kwargs["params"] == {"from": "51.5237,-0.1585", "to": "53.4831,-2.2448"}
        assert "Authorization" not in kwargs["headers"]

    @pytest.mark.asyncio
    async def test_unknown_congestion_level_is_parse_error(self):
        bad = {**TRAFFIC_JSON, "congestionLevel": "gridlock"}
        provider = HttpTrafficProvider("https://traffic.test/route", timeout_seconds=2.5)

        with patch(SESSION, return_value=_make_mock_session(_make_mock_response(200, bad))):
            with pytest.raises(ProviderError) as exc_info:
                await provider.fetch(ORIGIN, DESTINATION)

        assert exc_info.value.reason == "parse"


class TestRouteProvider:

    @pytest.mark.asyncio
    async def test_success(self):
        session = _make_mock_session(_make_mock_response(200, ROUTE_JSON))
        provider = HttpRouteProvider("https://routes.test/optimize", timeout_seconds=3.0)

        with patch(SESSION, return_value=session):
            route = await provider.fetch(ORIGIN, DESTINATION)

        assert route.original.zone_cost == 12.5
        assert route.original.savings == 0
        assert route.optimized.savings == 18.5
        assert route.recommendations == [
            "Route optimization saves £18.50",
            "Fuel savings: £6.00",
            "Time savings: 15.0 minutes",
        ]
        assert session.get.call_args.kwargs["params"]["fuelEfficiency"] == "true"

    @pytest.mark.asyncio
    async def test_missing_leg_is_parse_error(self):
        provider = HttpRouteProvider("https://routes.test/optimize", timeout_seconds=3.0)

        with patch(SESSION, return_value=_make_mock_session(_make_mock_response(200, {"originalRoute": {}}))):
            with pytest.raises(ProviderError) as exc_info:
                await provider.fetch(ORIGIN, DESTINATION)

        assert exc_info.value.reason == "parse"
