# jobdispatch/core/dispatch/orchestrator.py
"""
Dispatch enrichment pipeline: booking + driver → persisted driver notification.

Stages, in order:

    classify zone → enrich (weather / traffic / route in parallel) →
    crew recommendation → priority + title + message → persist → push

Only ``persist`` can make ``dispatch()`` return ``None``.  Provider
failures degrade to fallback data inside the enricher, the crew
recommender never raises, and realtime push runs in the background after
the notification is safely stored.

The orchestrator keeps no per-call state and is safe to share between
concurrent callers.
"""
from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Protocol
from zoneinfo import ZoneInfo

from jobdispatch.core.dispatch.composer import (
    compose_message,
    compose_priority,
    compose_title,
    time_slot_for,
)
from jobdispatch.core.dispatch.crew import recommend_crew
from jobdispatch.core.dispatch.zones import classify_booking_zone
from jobdispatch.core.engine.domain import (
    Booking,
    CrewRecommendation,
    DispatchNotification,
    NotificationPayload,
    NotificationType,
    ZoneVerdict,
)
from jobdispatch.core.engine.ports import AsyncNotificationStore, RealtimePublisher
from jobdispatch.infra.logging_config import LogContext, get_logger
from jobdispatch.infra.metrics import DispatchMetrics

if TYPE_CHECKING:
    from jobdispatch.infra.enrichment import Enrichment

logger = get_logger(__name__)


class Enricher(Protocol):
    async def enrich(self, booking: Booking) -> Enrichment: ...


def build_payload(
    booking: Booking,
    zone: ZoneVerdict,
    enrichment: Enrichment,
    crew: CrewRecommendation,
    local_timezone: str = "Europe/London",
) -> NotificationPayload:
    """Assemble the structured payload.  The customer's email is never included."""
    return NotificationPayload(
        booking_id=booking.id,
        reference=booking.reference,
        unified_booking_id=booking.unified_booking_id,
        crew=crew,
        customer={
            "name": booking.customer_name,
            "phone": booking.customer_phone,
        },
        addresses={"pickup": booking.pickup, "dropoff": booking.dropoff},
        properties={"pickup": booking.pickup_property, "dropoff": booking.dropoff_property},
        schedule={
            "date": booking.scheduled_at.isoformat(),
            "time_slot": time_slot_for(booking.scheduled_at, local_timezone),
            "estimated_duration_minutes": booking.estimated_duration_minutes,
        },
        items=list(booking.items),
        pricing={
            "total": str(booking.total_price),
            "breakdown": dict(booking.pricing_breakdown),
        },
        special_requirements=booking.special_requirements,
        zone=zone if zone.applies else None,
        weather=enrichment.weather,
        traffic=enrichment.traffic,
        route=enrichment.route,
    )


class DispatchEnrichmentOrchestrator:
    def __init__(
        self,
        store: AsyncNotificationStore,
        enricher: Enricher,
        realtime: RealtimePublisher,
        *,
        store_timeout_seconds: float = 2.0,
        local_timezone: str = "Europe/London",
    ):
        self.store = store
        self.enricher = enricher
        self.realtime = realtime
        self.store_timeout_seconds = store_timeout_seconds
        ZoneInfo(local_timezone)  # unknown zones fail at construction
        self.local_timezone = local_timezone
        self._push_tasks: set[asyncio.Task] = set()

    async def dispatch(
        self,
        booking: Booking,
        driver_id: str,
        notification_type: NotificationType = NotificationType.NEW_BOOKING,
    ) -> Optional[DispatchNotification]:
        """
        Build, persist and push one driver notification.

        Returns the stored notification, or ``None`` if it could not be
        persisted.  Never raises.
        """
        log = LogContext(logger, driver_id=driver_id, booking_id=booking.id)

        try:
            with DispatchMetrics.track_dispatch_time():
                notification = await self._build(booking, driver_id, notification_type)
                log = log.bind(notification_id=notification.id)

                if not await self._persist(notification, log):
                    return None

            DispatchMetrics.notification_created(notification.type.value, notification.priority.value)
            log.info(
                "Driver notification created: priority=%s, crew=%s",
                notification.priority.value,
                notification.payload.crew.suggested_crew_size.value,
            )

            self._schedule_push(notification)
            return notification

        except Exception:
            log.error("Dispatch enrichment failed", exc_info=True)
            return None

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight realtime pushes (call at shutdown)."""
        if not self._push_tasks:
            return
        pending = list(self._push_tasks)
        logger.info("Draining %d realtime push task(s)", len(pending))
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning("Cancelling %d realtime push task(s) still running", len(not_done))
            for task in not_done:
                task.cancel()
            await asyncio.gather(*not_done, return_exceptions=True)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _build(
        self,
        booking: Booking,
        driver_id: str,
        notification_type: NotificationType,
    ) -> DispatchNotification:
        zone = classify_booking_zone(booking.pickup.postcode, booking.dropoff.postcode)
        enrichment = await self.enricher.enrich(booking)
        crew = recommend_crew(booking.items, booking.pickup_property, booking.dropoff_property)

        return DispatchNotification(
            id=str(uuid.uuid4()),
            type=notification_type,
            title=compose_title(booking),
            message=compose_message(booking, zone, enrichment.weather, enrichment.traffic),
            priority=compose_priority(zone, enrichment.weather, enrichment.traffic),
            driver_id=driver_id,
            booking_id=booking.id,
            payload=build_payload(booking, zone, enrichment, crew, self.local_timezone),
            created_at=datetime.now(timezone.utc),
        )

    async def _persist(self, notification: DispatchNotification, log: LogContext) -> bool:
        try:
            await asyncio.wait_for(self.store.insert(notification), timeout=self.store_timeout_seconds)
            return True
        except TimeoutError:
            log.error("Notification insert timed out after %.1fs", self.store_timeout_seconds)
        except Exception:
            log.error("Notification insert failed", exc_info=True)
        DispatchMetrics.persist_failed()
        return False

    def _schedule_push(self, notification: DispatchNotification) -> None:
        task = asyncio.create_task(
            self._push(notification),
            name=f"realtime_push:{notification.id}",
        )
        self._push_tasks.add(task)
        task.add_done_callback(self._push_tasks.discard)

    async def _push(self, notification: DispatchNotification) -> None:
        log = LogContext(
            logger,
            driver_id=notification.driver_id,
            notification_id=notification.id,
        )
        try:
            prefs = await self.store.get_push_preferences(notification.driver_id)
            if prefs is not None and not prefs.allows(notification.type):
                log.debug("Realtime push skipped by driver preferences")
                DispatchMetrics.realtime_push("opted_out")
                return

            await self.realtime.publish(notification.driver_id, notification)
        except Exception as exc:
            log.warning("Realtime push failed: %s", exc, exc_info=True)
            DispatchMetrics.realtime_push("error")
