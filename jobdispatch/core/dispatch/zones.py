"""
Regulatory zone classification for dispatch.

Text-based postcode classifier: deterministic, no external APIs.
Three rule sets are checked in a fixed order (ULEZ, LEZ, Congestion
Charge) against the uppercased postcode; the first rule set with a
matching prefix wins.

The rule sets overlap (``SW1A 1AA`` matches both ULEZ via ``SW`` and the
Congestion Charge via ``SW1``).  Only the first match is ever reported,
so central-London postcodes come back as ULEZ.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from jobdispatch.core.engine.domain import ZoneType, ZoneVerdict

__all__ = [
    "ZoneRule", "ZONE_RULES",
    "ULEZ_PREFIXES", "LEZ_PREFIXES", "CONGESTION_CHARGE_PREFIXES",
    "NOT_APPLICABLE",
    "classify_postcode", "classify_booking_zone",
]


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------

# Greater London outward-code areas
ULEZ_PREFIXES: tuple[str, ...] = (
    "E", "EC", "N", "NW", "SE", "SW", "W", "WC",
    "BR", "CR", "DA", "EN", "HA", "IG", "KT", "RM", "SM", "TN", "TW", "UB", "WD",
)

# Other UK cities (B: Birmingham, M: Manchester, L: Leeds/Liverpool,
# S: Sheffield/Southampton, N: Newcastle, G: Glasgow, E: Edinburgh, C: Cardiff)
LEZ_PREFIXES: tuple[str, ...] = ("B", "M", "L", "S", "N", "G", "E", "C")

# Central London charging zone
CONGESTION_CHARGE_PREFIXES: tuple[str, ...] = (
    "E1", "E1W", "EC1", "EC2", "EC3", "EC4", "SE1", "SW1", "W1", "WC1", "WC2",
)

_EMISSIONS_REQUIREMENTS = "Euro 6 diesel or Euro 4 petrol vehicle required"
_EMISSIONS_EXEMPTIONS = ("Electric vehicles", "Hybrid vehicles meeting standards")


@dataclass(frozen=True)
class ZoneRule:
    zone_type: ZoneType
    prefixes: tuple[str, ...]
    charge: Decimal
    requirements: str
    exemptions: tuple[str, ...]

    def matches(self, postcode: str) -> bool:
        return any(postcode.startswith(prefix) for prefix in self.prefixes)

    def verdict(self) -> ZoneVerdict:
        return ZoneVerdict(
            applies=True,
            type=self.zone_type,
            charge=self.charge,
            requirements=self.requirements,
            exemptions=self.exemptions,
        )


# Priority order matters: earlier rules shadow later ones.
ZONE_RULES: tuple[ZoneRule, ...] = (
    ZoneRule(
        zone_type=ZoneType.ULEZ,
        prefixes=ULEZ_PREFIXES,
        charge=Decimal("12.50"),
        requirements=_EMISSIONS_REQUIREMENTS,
        exemptions=_EMISSIONS_EXEMPTIONS,
    ),
    ZoneRule(
        zone_type=ZoneType.LEZ,
        prefixes=LEZ_PREFIXES,
        charge=Decimal("8.00"),
        requirements=_EMISSIONS_REQUIREMENTS,
        exemptions=_EMISSIONS_EXEMPTIONS,
    ),
    ZoneRule(
        zone_type=ZoneType.CONGESTION_CHARGE,
        prefixes=CONGESTION_CHARGE_PREFIXES,
        charge=Decimal("15.00"),
        requirements="Payment required for driving in zone",
        exemptions=("Electric vehicles", "Residents", "Blue badge holders"),
    ),
)

NOT_APPLICABLE = ZoneVerdict()

_RULE_RANK: dict[ZoneType, int] = {rule.zone_type: i for i, rule in enumerate(ZONE_RULES)}


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_postcode(postcode: str | None) -> ZoneVerdict:
    """Classify a single postcode.  Empty / unknown → ``applies=False``."""
    if not postcode:
        return NOT_APPLICABLE

    normalized = postcode.strip().upper()
    if not normalized:
        return NOT_APPLICABLE

    for rule in ZONE_RULES:
        if rule.matches(normalized):
            return rule.verdict()

    return NOT_APPLICABLE


def classify_booking_zone(
    pickup_postcode: str | None,
    dropoff_postcode: str | None,
) -> ZoneVerdict:
    """Classify a move by both of its postcodes.

    Each end is classified independently.  If either applies, the
    higher-priority verdict is reported (pickup wins a tie).
    """
    candidates = [
        v for v in (classify_postcode(pickup_postcode), classify_postcode(dropoff_postcode))
        if v.applies
    ]
    if not candidates:
        return NOT_APPLICABLE

    return min(candidates, key=lambda v: _RULE_RANK[v.type])
