"""
Route economics: baseline vs. optimized route and the advice derived from it.

Monetary values stay unrounded in ``RouteCost``; they are rounded to
two decimals only when formatted into recommendation strings.
"""
from __future__ import annotations

from jobdispatch.core.engine.domain import RouteCost, RouteOptimization

NOTABLE_SAVINGS_GBP = 5


def route_recommendations(original: RouteCost, optimized: RouteCost) -> list[str]:
    recommendations: list[str] = []

    if optimized.savings > NOTABLE_SAVINGS_GBP:
        recommendations.append(f"Route optimization saves £{optimized.savings:.2f}")

    if optimized.fuel_cost < original.fuel_cost:
        fuel_savings = original.fuel_cost - optimized.fuel_cost
        recommendations.append(f"Fuel savings: £{fuel_savings:.2f}")

    if optimized.zone_cost > 0:
        recommendations.append("Zone charges apply - ensure vehicle compliance")

    if optimized.time_minutes < original.time_minutes:
        time_savings = original.time_minutes - optimized.time_minutes
        recommendations.append(f"Time savings: {time_savings:.1f} minutes")

    if not recommendations:
        recommendations.append("Route is already optimized")

    return recommendations


def optimize_route(original: RouteCost, optimized: RouteCost) -> RouteOptimization:
    """Attach recommendations to a pair of route costs."""
    return RouteOptimization(
        original=original,
        optimized=optimized,
        recommendations=route_recommendations(original, optimized),
    )
