# jobdispatch/infra/providers/__init__.py
"""
Enrichment provider clients.

One client per remote service (weather, traffic, route optimizer).
All clients share the ``providers`` aiohttp session and raise
``ProviderError`` on any failure; the enricher decides what to do next.
"""
from jobdispatch.infra.providers.base import ProviderError
from jobdispatch.infra.providers.route import HttpRouteProvider
from jobdispatch.infra.providers.traffic import HttpTrafficProvider
from jobdispatch.infra.providers.weather import HttpWeatherProvider

__all__ = [
    "ProviderError",
    "HttpRouteProvider",
    "HttpTrafficProvider",
    "HttpWeatherProvider",
]
