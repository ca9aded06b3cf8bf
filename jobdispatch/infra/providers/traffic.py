# jobdispatch/infra/providers/traffic.py
"""Traffic conditions provider client."""
from __future__ import annotations

from jobdispatch.core.dispatch.impact import traffic_recommendations
from jobdispatch.core.engine.domain import RoadClosure, RouteOption, TrafficInfo
from jobdispatch.infra.providers.base import fetch_json, parse_model
from jobdispatch.infra.providers.schemas import TrafficRouteOut

PROVIDER = "traffic"


def _point(coords: tuple[float, float]) -> str:
    return f"{coords[0]},{coords[1]}"


class HttpTrafficProvider:
    """``GET {url}?from=lat,lng&to=lat,lng`` returning congestion along the route."""

    def __init__(self, url: str | None, *, timeout_seconds: float, api_key: str | None = None):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.api_key = api_key

    async def fetch(self, origin: tuple[float, float], destination: tuple[float, float]) -> TrafficInfo:
        data = await fetch_json(
            PROVIDER,
            self.url,
            {"from": _point(origin), "to": _point(destination)},
            timeout_seconds=self.timeout_seconds,
            api_key=self.api_key,
        )
        raw = parse_model(PROVIDER, TrafficRouteOut, data)

        traffic = TrafficInfo(
            congestion_level=raw.congestion_level,
            estimated_delay_minutes=raw.estimated_delay,
            road_closures=[
                RoadClosure(
                    location=c.location,
                    reason=c.reason,
                    estimated_duration=c.estimated_duration,
                    impact=c.impact,
                )
                for c in raw.road_closures
            ],
            alternative_routes=[
                RouteOption(
                    route=r.route,
                    distance_miles=r.distance,
                    time_minutes=r.time,
                    fuel_cost=r.fuel_cost,
                    savings=r.savings,
                    traffic_level=r.traffic_level,
                    zone_impact=r.ulez_impact,
                )
                for r in raw.alternative_routes
            ],
        )
        traffic.recommendations = traffic_recommendations(traffic)
        return traffic
