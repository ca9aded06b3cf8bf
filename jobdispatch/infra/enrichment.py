# jobdispatch/infra/enrichment.py
"""
Environmental enrichment: weather, traffic and route for one booking.

The three provider lookups run concurrently.  Each branch owns its own
timeout and its own failure handling, so a slow or broken provider only
ever costs its own budget and never cancels a sibling.

Outcomes per branch:
- coordinates missing  → ``None`` (not applicable, no call, no fallback)
- provider succeeded   → scored domain object
- provider failed      → deterministic fallback + warning + metric
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar
from zoneinfo import ZoneInfo

from jobdispatch.core.dispatch.fallbacks import (
    fallback_route,
    fallback_traffic,
    fallback_weather,
)
from jobdispatch.core.engine.domain import (
    Booking,
    RouteOptimization,
    TrafficInfo,
    WeatherInfo,
)
from jobdispatch.core.engine.ports import RouteProvider, TrafficProvider, WeatherProvider
from jobdispatch.infra.logging_config import get_logger
from jobdispatch.infra.metrics import DispatchMetrics
from jobdispatch.infra.providers import (
    HttpRouteProvider,
    HttpTrafficProvider,
    HttpWeatherProvider,
    ProviderError,
)

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class Enrichment:
    weather: Optional[WeatherInfo] = None
    traffic: Optional[TrafficInfo] = None
    route: Optional[RouteOptimization] = None


class EnvironmentalEnricher:
    def __init__(
        self,
        weather: WeatherProvider,
        traffic: TrafficProvider,
        route: RouteProvider,
        *,
        weather_timeout: float = 2.5,
        traffic_timeout: float = 2.5,
        route_timeout: float = 2.5,
        local_timezone: str = "Europe/London",
    ):
        self.weather = weather
        self.traffic = traffic
        self.route = route
        self.weather_timeout = weather_timeout
        self.traffic_timeout = traffic_timeout
        self.route_timeout = route_timeout
        # unknown zones fail at construction
        ZoneInfo(local_timezone)
        self.local_timezone = local_timezone

    async def enrich(self, booking: Booking) -> Enrichment:
        weather, traffic, route = await asyncio.gather(
            self._weather(booking),
            self._traffic(booking),
            self._route(booking),
        )
        return Enrichment(weather=weather, traffic=traffic, route=route)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _weather(self, booking: Booking) -> Optional[WeatherInfo]:
        pickup = booking.pickup
        if not pickup.has_coordinates():
            DispatchMetrics.provider_skipped("weather")
            return None

        return await self._guarded(
            "weather",
            booking,
            lambda: self.weather.fetch(pickup.lat, pickup.lng, booking.scheduled_at),
            self.weather_timeout,
            lambda: fallback_weather(booking.scheduled_at, self.local_timezone),
        )

    async def _traffic(self, booking: Booking) -> Optional[TrafficInfo]:
        if not (booking.pickup.has_coordinates() and booking.dropoff.has_coordinates()):
            DispatchMetrics.provider_skipped("traffic")
            return None

        origin, destination = _endpoints(booking)
        return await self._guarded(
            "traffic",
            booking,
            lambda: self.traffic.fetch(origin, destination),
            self.traffic_timeout,
            fallback_traffic,
        )

    async def _route(self, booking: Booking) -> Optional[RouteOptimization]:
        if not (booking.pickup.has_coordinates() and booking.dropoff.has_coordinates()):
            DispatchMetrics.provider_skipped("route")
            return None

        origin, destination = _endpoints(booking)
        return await self._guarded(
            "route",
            booking,
            lambda: self.route.fetch(origin, destination),
            self.route_timeout,
            lambda: fallback_route(booking.distance_miles),
        )

    async def _guarded(
        self,
        provider: str,
        booking: Booking,
        call: Callable[[], Awaitable[T]],
        timeout: float,
        fallback: Callable[[], T],
    ) -> T:
        """Run one provider call under its own timeout; fall back on any failure."""
        try:
            with DispatchMetrics.track_provider_latency(provider):
                return await asyncio.wait_for(call(), timeout=timeout)

        except ProviderError as exc:
            reason = exc.reason
            logger.warning(
                "%s provider failed (%s), using fallback: %s",
                provider, reason, exc,
                extra={"booking_id": booking.id},
            )

        except TimeoutError:
            reason = "timeout"
            logger.warning(
                "%s provider timed out after %.1fs, using fallback",
                provider, timeout,
                extra={"booking_id": booking.id},
            )

        except Exception as exc:
            reason = "unexpected"
            logger.warning(
                "%s provider unexpected error, using fallback: %s",
                provider, exc,
                exc_info=True,
                extra={"booking_id": booking.id},
            )

        DispatchMetrics.provider_fallback(provider, reason)
        return fallback()


def _endpoints(booking: Booking) -> tuple[tuple[float, float], tuple[float, float]]:
    return (
        (booking.pickup.lat, booking.pickup.lng),
        (booking.dropoff.lat, booking.dropoff.lng),
    )


def build_enricher(settings) -> EnvironmentalEnricher:
    """Wire HTTP provider clients from application settings."""
    return EnvironmentalEnricher(
        weather=HttpWeatherProvider(
            settings.weather_api_url,
            timeout_seconds=settings.weather_timeout_seconds,
            api_key=settings.provider_api_key,
        ),
        traffic=HttpTrafficProvider(
            settings.traffic_api_url,
            timeout_seconds=settings.traffic_timeout_seconds,
            api_key=settings.provider_api_key,
        ),
        route=HttpRouteProvider(
            settings.route_api_url,
            timeout_seconds=settings.route_timeout_seconds,
            api_key=settings.provider_api_key,
        ),
        weather_timeout=settings.weather_timeout_seconds,
        traffic_timeout=settings.traffic_timeout_seconds,
        route_timeout=settings.route_timeout_seconds,
        local_timezone=settings.local_timezone,
    )
