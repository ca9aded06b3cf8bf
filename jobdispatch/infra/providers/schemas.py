# jobdispatch/infra/providers/schemas.py
"""
Pydantic models for provider response payloads.

Field aliases follow the providers' camelCase JSON; validation errors
are turned into ``ProviderError("parse")`` by the clients.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from jobdispatch.core.engine.domain import CongestionLevel, ImpactLevel


class _ProviderModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

class WeatherForecastOut(_ProviderModel):
    condition: str
    temperature: float
    precipitation: float = Field(ge=0)
    wind_speed: float = Field(alias="windSpeed", ge=0)
    visibility: float = Field(ge=0)


# ---------------------------------------------------------------------------
# Traffic
# ---------------------------------------------------------------------------

class RoadClosureOut(_ProviderModel):
    location: str
    reason: str = ""
    estimated_duration: str = Field(default="", alias="estimatedDuration")
    impact: ImpactLevel = ImpactLevel.LOW


class AlternativeRouteOut(_ProviderModel):
    route: str
    distance: float = 0
    time: float = 0
    fuel_cost: float = Field(default=0, alias="fuelCost")
    savings: float = 0
    traffic_level: ImpactLevel = Field(default=ImpactLevel.LOW, alias="trafficLevel")
    ulez_impact: bool = Field(default=False, alias="ulezImpact")


class TrafficRouteOut(_ProviderModel):
    congestion_level: CongestionLevel = Field(alias="congestionLevel")
    estimated_delay: float = Field(default=0, alias="estimatedDelay", ge=0)
    road_closures: list[RoadClosureOut] = Field(default_factory=list, alias="roadClosures")
    alternative_routes: list[AlternativeRouteOut] = Field(default_factory=list, alias="alternativeRoutes")


# ---------------------------------------------------------------------------
# Route optimization
# ---------------------------------------------------------------------------

class RouteLegOut(_ProviderModel):
    distance: float
    time: float
    fuel_cost: float = Field(alias="fuelCost")
    ulez_cost: float = Field(default=0, alias="ulezCost")
    total_cost: float = Field(alias="totalCost")
    savings: float = 0


class RouteOptimizeOut(_ProviderModel):
    original_route: RouteLegOut = Field(alias="originalRoute")
    optimized_route: RouteLegOut = Field(alias="optimizedRoute")
