# jobdispatch/infra/providers/route.py
"""Route optimizer provider client."""
from __future__ import annotations

from jobdispatch.core.dispatch.route_cost import optimize_route
from jobdispatch.core.engine.domain import RouteCost, RouteOptimization
from jobdispatch.infra.providers.base import fetch_json, parse_model
from jobdispatch.infra.providers.schemas import RouteLegOut, RouteOptimizeOut

PROVIDER = "route"


def _cost(leg: RouteLegOut, *, with_savings: bool) -> RouteCost:
    return RouteCost(
        distance_miles=leg.distance,
        time_minutes=leg.time,
        fuel_cost=leg.fuel_cost,
        zone_cost=leg.ulez_cost,
        total_cost=leg.total_cost,
        savings=leg.savings if with_savings else 0.0,
    )


class HttpRouteProvider:
    """``GET {url}?from=..&to=..&fuelEfficiency=true`` returning baseline and optimized legs."""

    def __init__(self, url: str | None, *, timeout_seconds: float, api_key: str | None = None):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.api_key = api_key

    async def fetch(self, origin: tuple[float, float], destination: tuple[float, float]) -> RouteOptimization:
        data = await fetch_json(
            PROVIDER,
            self.url,
            {
                "from": f"{origin[0]},{origin[1]}",
                "to": f"{destination[0]},{destination[1]}",
                "fuelEfficiency": "true",
            },
            timeout_seconds=self.timeout_seconds,
            api_key=self.api_key,
        )
        raw = parse_model(PROVIDER, RouteOptimizeOut, data)

        # savings is only meaningful on the optimized leg
        return optimize_route(
            _cost(raw.original_route, with_savings=False),
            _cost(raw.optimized_route, with_savings=True),
        )
