from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Any, Dict


# ============================================================================
# ENUMS
# ============================================================================

class NotificationType(str, Enum):
    NEW_BOOKING = "new_booking"
    BOOKING_UPDATED = "booking_updated"
    BOOKING_CANCELLED = "booking_cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ImpactLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CongestionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"


class ZoneType(str, Enum):
    ULEZ = "ULEZ"
    LEZ = "LEZ"
    CONGESTION_CHARGE = "CongestionCharge"
    NONE = "None"

    @property
    def label(self) -> str:
        """Human-readable zone name used in driver messages"""
        if self is ZoneType.CONGESTION_CHARGE:
            return "Congestion Charge"
        return self.value


class CrewSize(str, Enum):
    ONE = "ONE"
    TWO = "TWO"
    THREE = "THREE"
    FOUR = "FOUR"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ============================================================================
# BOOKING (read-only input, owned by the booking store)
# ============================================================================

@dataclass(frozen=True)
class Address:
    label: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None


@dataclass(frozen=True)
class PropertyDetails:
    property_type: Optional[str] = None
    floors: int = 0
    access_type: Optional[str] = None  # "stairs", "elevator", "ground", ...
    notes: Optional[str] = None


@dataclass(frozen=True)
class Item:
    name: str
    category: Optional[str] = None
    volume_m3: float = 0.0
    requires_two_person: bool = False
    is_fragile: bool = False
    requires_disassembly: bool = False


@dataclass(frozen=True)
class Booking:
    """
    Snapshot of a confirmed booking.
    The engine holds it for the duration of one dispatch call and never mutates it.
    """
    id: str
    reference: str
    scheduled_at: datetime
    pickup: Address = field(default_factory=Address)
    dropoff: Address = field(default_factory=Address)
    pickup_property: PropertyDetails = field(default_factory=PropertyDetails)
    dropoff_property: PropertyDetails = field(default_factory=PropertyDetails)
    items: tuple[Item, ...] = ()
    total_price: Decimal = Decimal("0")
    unified_booking_id: Optional[str] = None
    distance_miles: Optional[float] = None
    estimated_duration_minutes: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    special_requirements: str = ""
    pricing_breakdown: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_reference(self) -> str:
        """Reference shown to drivers (unified id wins when present)"""
        return self.unified_booking_id or self.reference


# ============================================================================
# ENRICHMENT BUNDLES
# ============================================================================

@dataclass(frozen=True)
class ZoneVerdict:
    applies: bool = False
    type: ZoneType = ZoneType.NONE
    charge: Decimal = Decimal("0")
    requirements: str = ""
    exemptions: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "applies": self.applies,
            "type": self.type.value,
            "charge": str(self.charge),
            "requirements": self.requirements,
            "exemptions": list(self.exemptions),
        }


@dataclass
class WeatherInfo:
    condition: str
    temperature_c: float
    precipitation_mm: float
    wind_speed_kph: float
    visibility_km: float
    impact: ImpactLevel = ImpactLevel.LOW
    recommendations: list[str] = field(default_factory=list)


@dataclass
class RoadClosure:
    location: str
    reason: str = ""
    estimated_duration: str = ""
    impact: ImpactLevel = ImpactLevel.LOW


@dataclass
class RouteOption:
    route: str
    distance_miles: float = 0.0
    time_minutes: float = 0.0
    fuel_cost: float = 0.0
    savings: float = 0.0
    traffic_level: ImpactLevel = ImpactLevel.LOW
    zone_impact: bool = False


@dataclass
class TrafficInfo:
    congestion_level: CongestionLevel
    estimated_delay_minutes: float = 0
    road_closures: list[RoadClosure] = field(default_factory=list)
    alternative_routes: list[RouteOption] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class RouteCost:
    distance_miles: float
    time_minutes: float
    fuel_cost: float
    zone_cost: float = 0.0
    total_cost: float = 0.0
    savings: float = 0.0


@dataclass
class RouteOptimization:
    original: RouteCost
    optimized: RouteCost
    recommendations: list[str] = field(default_factory=list)


@dataclass
class CrewRecommendation:
    suggested_crew_size: CrewSize = CrewSize.ONE
    confidence: Confidence = Confidence.LOW
    reason: str = ""
    factors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PushPreferences:
    """Per-driver realtime push switches. Missing preferences mean push everything."""
    push_job_offers: bool = True
    push_job_updates: bool = True

    def allows(self, notification_type: NotificationType) -> bool:
        if notification_type is NotificationType.NEW_BOOKING:
            return self.push_job_offers
        return self.push_job_updates


# ============================================================================
# NOTIFICATION
# ============================================================================

def _jsonable(value: Any) -> Any:
    """Convert dataclass dicts (enums, decimals, datetimes) to JSON-safe values"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass
class NotificationPayload:
    """
    Structured enrichment bundle attached to a driver notification.

    ``zone`` is ``None`` when neither address falls in a charging zone;
    ``weather`` / ``traffic`` / ``route`` are ``None`` when coordinates were
    missing.  ``crew`` is always present.
    """
    booking_id: str
    reference: str
    crew: CrewRecommendation
    unified_booking_id: Optional[str] = None
    customer: Dict[str, Optional[str]] = field(default_factory=dict)
    addresses: Dict[str, Address] = field(default_factory=dict)
    properties: Dict[str, PropertyDetails] = field(default_factory=dict)
    schedule: Dict[str, Any] = field(default_factory=dict)
    items: list[Item] = field(default_factory=list)
    pricing: Dict[str, Any] = field(default_factory=dict)
    special_requirements: str = ""
    zone: Optional[ZoneVerdict] = None
    weather: Optional[WeatherInfo] = None
    traffic: Optional[TrafficInfo] = None
    route: Optional[RouteOptimization] = None

    def to_dict(self) -> dict:
        return _jsonable(asdict(self))


@dataclass
class DispatchNotification:
    id: str
    type: NotificationType
    title: str
    message: str
    priority: Priority
    driver_id: str
    booking_id: str
    payload: NotificationPayload
    created_at: datetime
    read: bool = False
    read_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "priority": self.priority.value,
            "driver_id": self.driver_id,
            "booking_id": self.booking_id,
            "payload": self.payload.to_dict(),
            "read": self.read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DispatchNotification":
        created_at = data["created_at"]
        read_at = data.get("read_at")
        return cls(
            id=str(data["id"]),
            type=NotificationType(data["type"]),
            title=data["title"],
            message=data["message"],
            priority=Priority(data["priority"]),
            driver_id=data["driver_id"],
            booking_id=data["booking_id"],
            payload=payload_from_dict(data.get("payload") or {}),
            created_at=datetime.fromisoformat(created_at) if isinstance(created_at, str) else created_at,
            read=bool(data.get("read", False)),
            read_at=datetime.fromisoformat(read_at) if isinstance(read_at, str) else read_at,
        )


# ============================================================================
# PAYLOAD DESERIALIZATION (store rows → typed payload)
# ============================================================================

def _weather_from_dict(data: dict | None) -> Optional[WeatherInfo]:
    if not data:
        return None
    return WeatherInfo(
        condition=data["condition"],
        temperature_c=data["temperature_c"],
        precipitation_mm=data["precipitation_mm"],
        wind_speed_kph=data["wind_speed_kph"],
        visibility_km=data["visibility_km"],
        impact=ImpactLevel(data.get("impact", "low")),
        recommendations=list(data.get("recommendations", [])),
    )


def _traffic_from_dict(data: dict | None) -> Optional[TrafficInfo]:
    if not data:
        return None
    return TrafficInfo(
        congestion_level=CongestionLevel(data["congestion_level"]),
        estimated_delay_minutes=data.get("estimated_delay_minutes", 0),
        road_closures=[
            RoadClosure(**{**c, "impact": ImpactLevel(c.get("impact", "low"))})
            for c in data.get("road_closures", [])
        ],
        alternative_routes=[
            RouteOption(**{**r, "traffic_level": ImpactLevel(r.get("traffic_level", "low"))})
            for r in data.get("alternative_routes", [])
        ],
        recommendations=list(data.get("recommendations", [])),
    )


def _route_from_dict(data: dict | None) -> Optional[RouteOptimization]:
    if not data:
        return None
    return RouteOptimization(
        original=RouteCost(**data["original"]),
        optimized=RouteCost(**data["optimized"]),
        recommendations=list(data.get("recommendations", [])),
    )


def _zone_from_dict(data: dict | None) -> Optional[ZoneVerdict]:
    if not data:
        return None
    return ZoneVerdict(
        applies=bool(data.get("applies", False)),
        type=ZoneType(data.get("type", ZoneType.NONE.value)),
        charge=Decimal(str(data.get("charge", "0"))),
        requirements=data.get("requirements", ""),
        exemptions=tuple(data.get("exemptions", ())),
    )


def payload_from_dict(data: dict) -> NotificationPayload:
    """Rebuild a ``NotificationPayload`` from its ``to_dict()`` form."""
    crew = data.get("crew") or {}
    return NotificationPayload(
        booking_id=data.get("booking_id", ""),
        reference=data.get("reference", ""),
        unified_booking_id=data.get("unified_booking_id"),
        crew=CrewRecommendation(
            suggested_crew_size=CrewSize(crew.get("suggested_crew_size", CrewSize.ONE.value)),
            confidence=Confidence(crew.get("confidence", Confidence.LOW.value)),
            reason=crew.get("reason", ""),
            factors=list(crew.get("factors", [])),
        ),
        customer=dict(data.get("customer") or {}),
        addresses={k: Address(**v) for k, v in (data.get("addresses") or {}).items()},
        properties={k: PropertyDetails(**v) for k, v in (data.get("properties") or {}).items()},
        schedule=dict(data.get("schedule") or {}),
        items=[Item(**i) for i in data.get("items", [])],
        pricing=dict(data.get("pricing") or {}),
        special_requirements=data.get("special_requirements", ""),
        zone=_zone_from_dict(data.get("zone")),
        weather=_weather_from_dict(data.get("weather")),
        traffic=_traffic_from_dict(data.get("traffic")),
        route=_route_from_dict(data.get("route")),
    )
