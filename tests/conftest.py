# tests/conftest.py
"""Pytest configuration and fixtures"""
import pytest
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from jobdispatch.core.engine.domain import (  # noqa: E402
    Address,
    Booking,
    Item,
    PropertyDetails,
)
from jobdispatch.infra.metrics import get_metrics_collector  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    """Each test starts with empty counters"""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()


@pytest.fixture
def pickup_address():
    return Address(
        label="221B Baker Street",
        city="London",
        postcode="NW1 6XE",
        lat=51.5237,
        lng=-0.1585,
    )


@pytest.fixture
def dropoff_address():
    return Address(
        label="1 Deansgate",
        city="Manchester",
        postcode="M3 1AZ",
        lat=53.4831,
        lng=-2.2448,
    )


@pytest.fixture
def booking(pickup_address, dropoff_address):
    """Booking with coordinates on both ends"""
    return Booking(
        id="bk_1001",
        reference="SV-1001",
        scheduled_at=datetime(2026, 3, 14, 10, 30, tzinfo=timezone.utc),
        pickup=pickup_address,
        dropoff=dropoff_address,
        pickup_property=PropertyDetails(property_type="flat", floors=2, access_type="elevator"),
        dropoff_property=PropertyDetails(property_type="house", floors=0, access_type="ground"),
        items=(
            Item(name="Sofa", category="furniture", volume_m3=2.5),
            Item(name="Boxes", category="boxes", volume_m3=1.0),
        ),
        total_price=Decimal("245.00"),
        distance_miles=200.0,
        estimated_duration_minutes=240,
        customer_name="Alex Morgan",
        customer_phone="+447700900123",
        special_requirements="Parking permit required at pickup",
        pricing_breakdown={"base": "200.00", "vat": "45.00"},
    )


@pytest.fixture
def booking_without_coordinates():
    """Booking whose addresses were never geocoded"""
    return Booking(
        id="bk_2002",
        reference="SV-2002",
        scheduled_at=datetime(2026, 3, 14, 15, 0, tzinfo=timezone.utc),
        pickup=Address(city="Bristol", postcode="BS1 4DJ"),
        dropoff=Address(city="Bath", postcode="BA1 1LT"),
    )
