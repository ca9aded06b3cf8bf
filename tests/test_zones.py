# tests/test_zones.py
"""
Tests for regulatory zone classification.

Pure functions, no I/O.
"""
from __future__ import annotations

from decimal import Decimal

import pytest

from jobdispatch.core.dispatch.zones import (
    NOT_APPLICABLE,
    classify_booking_zone,
    classify_postcode,
)
from jobdispatch.core.engine.domain import ZoneType


class TestClassifyPostcode:

    @pytest.mark.parametrize("postcode", ["SW1A 1AA", "sw1a 1aa", "SW11 6QP", "  sw19 5ae  "])
    def test_sw_postcodes_are_ulez_not_congestion_charge(self, postcode):
        verdict = classify_postcode(postcode)
        assert verdict.applies is True
        assert verdict.type is ZoneType.ULEZ
        assert verdict.charge == Decimal("12.50")

    def test_ec_postcode_is_ulez(self):
        """EC1 is listed for the congestion charge but ULEZ is checked first"""
        assert classify_postcode("EC1A 1BB").type is ZoneType.ULEZ

    @pytest.mark.parametrize("postcode", ["", "   ", None, "123 456", "??", "#"])
    def test_empty_or_malformed_not_applicable(self, postcode):
        verdict = classify_postcode(postcode)
        assert verdict.applies is False
        assert verdict.type is ZoneType.NONE
        assert verdict.charge == Decimal("0")

    @pytest.mark.parametrize("postcode", ["B1 1AA", "M3 1AZ", "LS1 4DY", "G1 1XQ", "CF10 1EP"])
    def test_other_cities_are_lez(self, postcode):
        verdict = classify_postcode(postcode)
        assert verdict.type is ZoneType.LEZ
        assert verdict.charge == Decimal("8.00")

    def test_ulez_requirements_and_exemptions(self):
        verdict = classify_postcode("HA1 1AA")
        assert verdict.requirements == "Euro 6 diesel or Euro 4 petrol vehicle required"
        assert verdict.exemptions == ("Electric vehicles", "Hybrid vehicles meeting standards")

    @pytest.mark.parametrize("postcode", ["OX1 2JD", "RG1 1AA", "YO1 7HH", "PL1 1EA"])
    def test_outside_any_zone(self, postcode):
        assert classify_postcode(postcode) == NOT_APPLICABLE

    def test_congestion_charge_is_shadowed_by_earlier_rules(self):
        """Every congestion charge prefix also starts with a ULEZ prefix"""
        for postcode in ("E1 6AN", "E1W 1AA", "EC4M 7RF", "SE1 9GF", "W1D 3QF", "WC2N 5DU"):
            assert classify_postcode(postcode).type is not ZoneType.CONGESTION_CHARGE


class TestClassifyBookingZone:

    def test_neither_applies(self):
        assert classify_booking_zone("OX1 2JD", "YO1 7HH").applies is False

    def test_missing_postcodes(self):
        assert classify_booking_zone(None, "").applies is False

    def test_only_dropoff_applies(self):
        verdict = classify_booking_zone("OX1 2JD", "M3 1AZ")
        assert verdict.type is ZoneType.LEZ

    def test_higher_priority_rule_wins(self):
        """Pickup LEZ + dropoff ULEZ → ULEZ"""
        verdict = classify_booking_zone("M3 1AZ", "SW1A 1AA")
        assert verdict.type is ZoneType.ULEZ
        assert verdict.charge == Decimal("12.50")

    def test_tie_reports_pickup(self):
        verdict = classify_booking_zone("B1 1AA", "LS1 4DY")
        assert verdict.type is ZoneType.LEZ

    def test_to_dict(self):
        data = classify_booking_zone("SW1A 1AA", None).to_dict()
        assert data == {
            "applies": True,
            "type": "ULEZ",
            "charge": "12.50",
            "requirements": "Euro 6 diesel or Euro 4 petrol vehicle required",
            "exemptions": ["Electric vehicles", "Hybrid vehicles meeting standards"],
        }
