"""
Priority, title and message composition for driver notifications.

Message lines are appended in a fixed order, each only when its
condition holds:

1. route line (always)
2. charging zone
3. severe weather
4. heavy traffic
5. road closures
"""
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from jobdispatch.core.dispatch.impact import is_heavy_congestion
from jobdispatch.core.engine.domain import (
    Booking,
    CongestionLevel,
    ImpactLevel,
    Priority,
    TrafficInfo,
    WeatherInfo,
    ZoneVerdict,
)

UNKNOWN_CITY = "Unknown"


def compose_priority(
    zone: ZoneVerdict | None,
    weather: WeatherInfo | None,
    traffic: TrafficInfo | None,
) -> Priority:
    impact = weather.impact if weather else None
    congestion = traffic.congestion_level if traffic else None

    if impact is ImpactLevel.HIGH or congestion is CongestionLevel.SEVERE:
        return Priority.HIGH

    if (
        (zone is not None and zone.applies)
        or impact is ImpactLevel.MEDIUM
        or congestion is CongestionLevel.HIGH
    ):
        return Priority.MEDIUM

    return Priority.LOW


def compose_title(booking: Booking) -> str:
    return f"New Job Assignment - {booking.display_reference}"


def compose_message(
    booking: Booking,
    zone: ZoneVerdict | None,
    weather: WeatherInfo | None,
    traffic: TrafficInfo | None,
) -> str:
    pickup_city = booking.pickup.city or UNKNOWN_CITY
    dropoff_city = booking.dropoff.city or UNKNOWN_CITY

    lines = [f"New job from {pickup_city} to {dropoff_city}"]

    if zone is not None and zone.applies:
        lines.append(f"⚠️ {zone.type.label} zone - £{zone.charge} charge applies")

    if weather is not None and weather.impact is ImpactLevel.HIGH:
        lines.append(f"🌧️ Weather alert: {weather.condition} - extra care required")

    if traffic is not None and is_heavy_congestion(traffic.congestion_level):
        lines.append("🚦 Heavy traffic expected - allow extra time")

    if traffic is not None and traffic.road_closures:
        lines.append("🚧 Road closures detected - check alternative routes")

    return "\n".join(lines)


def time_slot_for(scheduled_at: datetime, local_timezone: str = "Europe/London") -> str:
    """Booking time slot label derived from the local scheduled hour.

    Aware datetimes are converted to ``local_timezone`` first; naive ones
    are taken as already local.
    """
    local = scheduled_at
    if scheduled_at.tzinfo is not None:
        local = scheduled_at.astimezone(ZoneInfo(local_timezone))

    hour = local.hour
    if hour < 12:
        return "09:00-12:00"
    if hour < 17:
        return "12:00-17:00"
    return "17:00-21:00"
