# jobdispatch/infra/providers/weather.py
"""Weather forecast provider client."""
from __future__ import annotations

from datetime import datetime

from jobdispatch.core.dispatch.impact import evaluate_weather
from jobdispatch.core.engine.domain import WeatherInfo
from jobdispatch.infra.logging_config import get_logger, mask_coordinates
from jobdispatch.infra.providers.base import fetch_json, parse_model
from jobdispatch.infra.providers.schemas import WeatherForecastOut

logger = get_logger(__name__)

PROVIDER = "weather"


class HttpWeatherProvider:
    """``GET {url}?lat=..&lng=..&date=..`` returning a forecast for the pickup point."""

    def __init__(self, url: str | None, *, timeout_seconds: float, api_key: str | None = None):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.api_key = api_key

    async def fetch(self, lat: float, lng: float, scheduled_at: datetime) -> WeatherInfo:
        data = await fetch_json(
            PROVIDER,
            self.url,
            {"lat": str(lat), "lng": str(lng), "date": scheduled_at.isoformat()},
            timeout_seconds=self.timeout_seconds,
            api_key=self.api_key,
        )
        forecast = parse_model(PROVIDER, WeatherForecastOut, data)

        logger.debug(
            "Weather for (%s): %s, %.1f mm",
            mask_coordinates(lat, lng), forecast.condition, forecast.precipitation,
        )

        return evaluate_weather(
            condition=forecast.condition,
            temperature_c=forecast.temperature,
            precipitation_mm=forecast.precipitation,
            wind_speed_kph=forecast.wind_speed,
            visibility_km=forecast.visibility,
        )
