"""
Deterministic substitute data for when a live provider cannot be reached.

Only used on provider failure (timeout, non-2xx, malformed payload).
Missing coordinates are a "not applicable" case and never reach here.
"""
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from jobdispatch.core.dispatch.route_cost import optimize_route
from jobdispatch.core.engine.domain import (
    CongestionLevel,
    ImpactLevel,
    RouteCost,
    RouteOptimization,
    TrafficInfo,
    WeatherInfo,
)

DAYTIME_START_HOUR = 6
DAYTIME_END_HOUR = 20  # inclusive

DEFAULT_DISTANCE_MILES = 10.0
MINUTES_PER_MILE = 3.0
FUEL_COST_PER_MILE = 0.15

# Optimized leg relative to the baseline
OPTIMIZED_DISTANCE_RATIO = 0.90
OPTIMIZED_TIME_RATIO = 0.95
OPTIMIZED_FUEL_RATIO = 0.85


def fallback_weather(scheduled_at: datetime, local_timezone: str = "Europe/London") -> WeatherInfo:
    """Mild weather, day or night depending on the local scheduled hour."""
    local = scheduled_at
    if scheduled_at.tzinfo is not None:
        local = scheduled_at.astimezone(ZoneInfo(local_timezone))

    is_daytime = DAYTIME_START_HOUR <= local.hour <= DAYTIME_END_HOUR

    return WeatherInfo(
        condition="Clear" if is_daytime else "Cloudy",
        temperature_c=18 if is_daytime else 12,
        precipitation_mm=0,
        wind_speed_kph=5,
        visibility_km=10,
        impact=ImpactLevel.LOW,
        recommendations=["Normal driving conditions expected"],
    )


def fallback_traffic() -> TrafficInfo:
    return TrafficInfo(
        congestion_level=CongestionLevel.MEDIUM,
        estimated_delay_minutes=15,
        road_closures=[],
        alternative_routes=[],
        recommendations=["Check route before departure", "Allow extra travel time"],
    )


def fallback_route(distance_miles: float | None = None) -> RouteOptimization:
    """Estimate route economics from the straight-line distance."""
    distance = distance_miles or DEFAULT_DISTANCE_MILES
    base_time = distance * MINUTES_PER_MILE
    fuel_cost = distance * FUEL_COST_PER_MILE
    zone_cost = 0.0

    original = RouteCost(
        distance_miles=distance,
        time_minutes=base_time,
        fuel_cost=fuel_cost,
        zone_cost=zone_cost,
        total_cost=fuel_cost + zone_cost,
    )
    optimized_fuel = fuel_cost * OPTIMIZED_FUEL_RATIO
    optimized = RouteCost(
        distance_miles=distance * OPTIMIZED_DISTANCE_RATIO,
        time_minutes=base_time * OPTIMIZED_TIME_RATIO,
        fuel_cost=optimized_fuel,
        zone_cost=zone_cost,
        total_cost=optimized_fuel + zone_cost,
        savings=fuel_cost * (1 - OPTIMIZED_FUEL_RATIO),
    )
    return optimize_route(original, optimized)
