# jobdispatch/transport/schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from jobdispatch.core.engine.domain import (
    Address,
    Booking,
    DispatchNotification,
    Item,
    NotificationType,
    PropertyDetails,
)


class AddressIn(BaseModel):
    label: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=120)
    postcode: str | None = Field(default=None, max_length=16)
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)

    def to_domain(self) -> Address:
        return Address(**self.model_dump())


class PropertyIn(BaseModel):
    property_type: str | None = None
    floors: int = Field(default=0, ge=0, le=200)
    access_type: str | None = None
    notes: str | None = Field(default=None, max_length=1000)

    def to_domain(self) -> PropertyDetails:
        return PropertyDetails(**self.model_dump())


class ItemIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: str | None = None
    volume_m3: float = Field(default=0.0, ge=0)
    requires_two_person: bool = False
    is_fragile: bool = False
    requires_disassembly: bool = False

    def to_domain(self) -> Item:
        return Item(**self.model_dump())


class BookingIn(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    reference: str = Field(min_length=1, max_length=64)
    scheduled_at: datetime
    unified_booking_id: str | None = Field(default=None, max_length=64)
    pickup: AddressIn = Field(default_factory=AddressIn)
    dropoff: AddressIn = Field(default_factory=AddressIn)
    pickup_property: PropertyIn = Field(default_factory=PropertyIn)
    dropoff_property: PropertyIn = Field(default_factory=PropertyIn)
    items: list[ItemIn] = Field(default_factory=list, max_length=500)
    total_price: Decimal = Field(default=Decimal("0"), ge=0)
    distance_miles: float | None = Field(default=None, ge=0)
    estimated_duration_minutes: int | None = Field(default=None, ge=0)
    customer_name: str | None = Field(default=None, max_length=200)
    customer_phone: str | None = Field(default=None, max_length=32)
    special_requirements: str = Field(default="", max_length=2000)
    pricing_breakdown: dict[str, Any] = Field(default_factory=dict)

    def to_domain(self) -> Booking:
        return Booking(
            id=self.id,
            reference=self.reference,
            scheduled_at=self.scheduled_at,
            unified_booking_id=self.unified_booking_id,
            pickup=self.pickup.to_domain(),
            dropoff=self.dropoff.to_domain(),
            pickup_property=self.pickup_property.to_domain(),
            dropoff_property=self.dropoff_property.to_domain(),
            items=tuple(i.to_domain() for i in self.items),
            total_price=self.total_price,
            distance_miles=self.distance_miles,
            estimated_duration_minutes=self.estimated_duration_minutes,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            special_requirements=self.special_requirements,
            pricing_breakdown=dict(self.pricing_breakdown),
        )


class DispatchIn(BaseModel):
    driver_id: str = Field(min_length=1, max_length=64)
    type: NotificationType = NotificationType.NEW_BOOKING
    booking: BookingIn


class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: str
    priority: str
    driver_id: str
    booking_id: str
    payload: dict[str, Any]
    read: bool
    read_at: str | None
    created_at: str

    @classmethod
    def from_domain(cls, notification: DispatchNotification) -> "NotificationOut":
        return cls(**notification.to_dict())


class MarkReadIn(BaseModel):
    notification_ids: list[str] | None = Field(default=None, max_length=500)


class MarkReadOut(BaseModel):
    updated: int


class UnreadCountOut(BaseModel):
    driver_id: str
    unread: int
