"""
Crew size recommendation for a moving job.

Factors are evaluated in a fixed order.  The first factor that raises the
crew above ONE sets confidence and reason; later factors only add to the
``factors`` list, they never lower the size or overwrite the reason.
"""
from __future__ import annotations

from typing import Iterable

from jobdispatch.core.engine.domain import (
    Confidence,
    CrewRecommendation,
    CrewSize,
    Item,
    PropertyDetails,
)
from jobdispatch.infra.logging_config import get_logger

logger = get_logger(__name__)

HIGH_VOLUME_M3 = 20
MANY_ITEMS = 15
STAIRS_ACCESS = "stairs"


def _uses_stairs(prop: PropertyDetails) -> bool:
    return (prop.access_type or "").strip().lower() == STAIRS_ACCESS


def _escalate(
    rec: CrewRecommendation,
    size: CrewSize,
    confidence: Confidence,
    reason: str,
) -> None:
    if rec.suggested_crew_size is CrewSize.ONE:
        rec.suggested_crew_size = size
        rec.confidence = confidence
        rec.reason = reason


def _analyze(
    items: list[Item],
    pickup: PropertyDetails,
    dropoff: PropertyDetails,
) -> CrewRecommendation:
    rec = CrewRecommendation()

    # 1. Two-person items (high confidence)
    if any(item.requires_two_person for item in items):
        _escalate(rec, CrewSize.TWO, Confidence.HIGH, "Items require two-person handling")
        rec.factors.append("Two-person items detected")

    # 2. Volume
    total_volume = sum(item.volume_m3 or 0 for item in items)
    if total_volume > HIGH_VOLUME_M3:
        _escalate(rec, CrewSize.TWO, Confidence.MEDIUM, "High volume job")
        rec.factors.append(f"Total volume: {total_volume:.1f} m³")

    # 3. Stairs with more than one floor on either side
    pickup_floors = pickup.floors or 0
    dropoff_floors = dropoff.floors or 0
    if (
        (_uses_stairs(pickup) and pickup_floors > 1)
        or (_uses_stairs(dropoff) and dropoff_floors > 1)
    ):
        _escalate(rec, CrewSize.TWO, Confidence.MEDIUM, "Multiple floors with stairs")
        rec.factors.append(f"Stairs: {pickup_floors} pickup, {dropoff_floors} dropoff floors")

    # 4. Item count (low confidence)
    if len(items) > MANY_ITEMS:
        _escalate(rec, CrewSize.TWO, Confidence.LOW, "Many individual items")
        rec.factors.append(f"Item count: {len(items)}")

    # 5. Informational only
    fragile = sum(1 for item in items if item.is_fragile)
    if fragile:
        rec.factors.append(f"{fragile} fragile items")

    disassembly = sum(1 for item in items if item.requires_disassembly)
    if disassembly:
        rec.factors.append(f"{disassembly} items need disassembly")

    if not rec.reason and rec.factors:
        rec.reason = f"Based on {', '.join(rec.factors)}"

    return rec


def recommend_crew(
    items: Iterable[Item],
    pickup: PropertyDetails,
    dropoff: PropertyDetails,
) -> CrewRecommendation:
    """
    Recommend a crew size for the job.

    Never raises: any unexpected fault yields a cautious TWO/low
    recommendation so the dispatch pipeline can continue.
    """
    try:
        return _analyze(list(items or ()), pickup, dropoff)
    except Exception:
        logger.error("Crew recommendation failed, using safe default", exc_info=True)
        return CrewRecommendation(
            suggested_crew_size=CrewSize.TWO,
            confidence=Confidence.LOW,
            reason="Unable to analyze job requirements",
            factors=["Analysis failed"],
        )
