"""
Core engine -- provider-agnostic domain types and protocols.

This package contains the pure domain models (bookings, enrichment bundles,
notifications) and the abstract protocols (ports) implemented by the
infrastructure layer.

Canonical imports:
    from jobdispatch.core.engine import Booking, DispatchNotification
    from jobdispatch.core.engine.ports import AsyncNotificationStore
"""
from jobdispatch.core.engine.domain import (  # noqa: F401
    NotificationType,
    Priority,
    ImpactLevel,
    CongestionLevel,
    ZoneType,
    CrewSize,
    Confidence,
    Address,
    PropertyDetails,
    Item,
    Booking,
    ZoneVerdict,
    WeatherInfo,
    RoadClosure,
    RouteOption,
    TrafficInfo,
    RouteCost,
    RouteOptimization,
    CrewRecommendation,
    PushPreferences,
    NotificationPayload,
    DispatchNotification,
    payload_from_dict,
)
from jobdispatch.core.engine.ports import (  # noqa: F401
    AsyncNotificationStore,
    RealtimePublisher,
    WeatherProvider,
    TrafficProvider,
    RouteProvider,
)
