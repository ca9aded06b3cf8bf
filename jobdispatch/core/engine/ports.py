from __future__ import annotations
from datetime import datetime
from typing import Protocol, Optional

from jobdispatch.core.engine.domain import (
    DispatchNotification,
    PushPreferences,
    RouteOptimization,
    TrafficInfo,
    WeatherInfo,
)


# ============================================================================
# STORAGE
# ============================================================================

class AsyncNotificationStore(Protocol):
    async def insert(self, notification: DispatchNotification) -> str: ...
    async def mark_read(self, notification_id: str) -> bool: ...
    async def mark_all_read(self, driver_id: str, notification_ids: Optional[list[str]] = None) -> int: ...
    async def list_unread(self, driver_id: str, limit: int = 50) -> list[DispatchNotification]: ...
    async def list_history(self, driver_id: str, limit: int = 100) -> list[DispatchNotification]: ...
    async def count_unread(self, driver_id: str) -> int: ...
    async def get_push_preferences(self, driver_id: str) -> Optional[PushPreferences]: ...


# ============================================================================
# REALTIME
# ============================================================================

class RealtimePublisher(Protocol):
    async def publish(self, driver_id: str, notification: DispatchNotification) -> bool: ...


# ============================================================================
# ENRICHMENT PROVIDERS
# ============================================================================

class WeatherProvider(Protocol):
    async def fetch(self, lat: float, lng: float, scheduled_at: datetime) -> WeatherInfo:
        """Raise ``ProviderError`` on timeout, non-2xx or malformed payload."""
        ...


class TrafficProvider(Protocol):
    async def fetch(self, origin: tuple[float, float], destination: tuple[float, float]) -> TrafficInfo: ...


class RouteProvider(Protocol):
    async def fetch(self, origin: tuple[float, float], destination: tuple[float, float]) -> RouteOptimization: ...
