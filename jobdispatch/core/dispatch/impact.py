"""
Weather and traffic impact scoring for driver notifications.

Pure functions: callers pass raw provider readings in, get an impact
level and ordered recommendation strings out.
"""
from __future__ import annotations

from jobdispatch.core.engine.domain import (
    CongestionLevel,
    ImpactLevel,
    TrafficInfo,
    WeatherInfo,
)

# Weather thresholds
HEAVY_RAIN_MM = 5
MODERATE_RAIN_MM = 2
LOW_VISIBILITY_KM = 5
REDUCED_VISIBILITY_KM = 8
STRONG_WIND_KPH = 20
HIGH_WIND_KPH = 15
COLD_TEMPERATURE_C = 5

# Traffic thresholds
SIGNIFICANT_DELAY_MINUTES = 30

_HEAVY_CONGESTION = (CongestionLevel.HIGH, CongestionLevel.SEVERE)


def weather_impact(
    precipitation_mm: float,
    visibility_km: float,
    wind_speed_kph: float,
) -> ImpactLevel:
    if (
        precipitation_mm > HEAVY_RAIN_MM
        or visibility_km < LOW_VISIBILITY_KM
        or wind_speed_kph > STRONG_WIND_KPH
    ):
        return ImpactLevel.HIGH
    if (
        precipitation_mm > MODERATE_RAIN_MM
        or visibility_km < REDUCED_VISIBILITY_KM
        or wind_speed_kph > HIGH_WIND_KPH
    ):
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def weather_recommendations(
    precipitation_mm: float,
    visibility_km: float,
    wind_speed_kph: float,
    temperature_c: float,
) -> list[str]:
    recommendations: list[str] = []

    if precipitation_mm > HEAVY_RAIN_MM:
        recommendations.append("Heavy rain expected - allow extra travel time")
        recommendations.append("Use windshield wipers and maintain safe distance")

    if visibility_km < REDUCED_VISIBILITY_KM:
        recommendations.append("Reduced visibility - use headlights and drive carefully")

    if wind_speed_kph > HIGH_WIND_KPH:
        recommendations.append("High winds - secure loose items and drive cautiously")

    if temperature_c < COLD_TEMPERATURE_C:
        recommendations.append("Cold weather - check vehicle fluids and tire pressure")

    if not recommendations:
        recommendations.append("Good weather conditions for travel")

    return recommendations


def evaluate_weather(
    *,
    condition: str,
    temperature_c: float,
    precipitation_mm: float,
    wind_speed_kph: float,
    visibility_km: float,
) -> WeatherInfo:
    """Build a scored ``WeatherInfo`` from raw readings."""
    return WeatherInfo(
        condition=condition,
        temperature_c=temperature_c,
        precipitation_mm=precipitation_mm,
        wind_speed_kph=wind_speed_kph,
        visibility_km=visibility_km,
        impact=weather_impact(precipitation_mm, visibility_km, wind_speed_kph),
        recommendations=weather_recommendations(
            precipitation_mm, visibility_km, wind_speed_kph, temperature_c,
        ),
    )


def traffic_recommendations(traffic: TrafficInfo) -> list[str]:
    """Ordered traffic advice.  Congestion level is taken as reported."""
    recommendations: list[str] = []

    if traffic.congestion_level in _HEAVY_CONGESTION:
        recommendations.append("Heavy traffic expected - allow extra travel time")
        recommendations.append("Consider alternative routes if available")

    if traffic.estimated_delay_minutes > SIGNIFICANT_DELAY_MINUTES:
        recommendations.append(
            f"Significant delay expected: {traffic.estimated_delay_minutes:g} minutes"
        )

    if traffic.road_closures:
        recommendations.append("Road closures detected - check alternative routes")

    if traffic.alternative_routes:
        recommendations.append("Alternative routes available - consider fuel efficiency")

    if not recommendations:
        recommendations.append("Normal traffic conditions expected")

    return recommendations


def is_heavy_congestion(level: CongestionLevel | None) -> bool:
    return level in _HEAVY_CONGESTION
