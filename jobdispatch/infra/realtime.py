# jobdispatch/infra/realtime.py
"""
Realtime channel abstraction for pushing notifications to a driver's live session.

Supports:
- HTTP push gateway (Pusher-style trigger: channel ``driver-{id}``, event ``notification``)
- Disabled (no-op) when realtime delivery is switched off or not configured

Delivery is best-effort: ``publish`` never raises, it returns ``False`` on
failure and the caller moves on.  The persisted notification remains the
source of truth; drivers that miss a push see it on their next unread fetch.

Usage:
    channel = get_realtime_channel()
    await channel.publish(driver_id, notification)
"""
from __future__ import annotations

import abc

import aiohttp

from jobdispatch.config import Settings, settings as default_settings
from jobdispatch.core.engine.domain import DispatchNotification
from jobdispatch.infra.http_client import get_realtime_session
from jobdispatch.infra.logging_config import get_logger
from jobdispatch.infra.metrics import DispatchMetrics

logger = get_logger(__name__)

REALTIME_EVENT = "notification"


def driver_channel(driver_id: str) -> str:
    return f"driver-{driver_id}"


class RealtimeChannel(abc.ABC):
    """Abstract base class for realtime channels"""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Channel name for logging/metrics"""
        pass

    @abc.abstractmethod
    async def publish(self, driver_id: str, notification: DispatchNotification) -> bool:
        """
        Push notification to the driver's live session.

        Returns:
            True if the gateway accepted the event, False otherwise
        """
        pass

    @abc.abstractmethod
    def is_configured(self) -> bool:
        """Check if channel is properly configured"""
        pass


def _event_data(notification: DispatchNotification) -> dict:
    """Subset of the notification the driver app renders immediately."""
    return {
        "id": notification.id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "priority": notification.priority.value,
        "data": notification.payload.to_dict(),
        "createdAt": notification.created_at.isoformat(),
    }


class HttpPushChannel(RealtimeChannel):
    """
    Push gateway channel.
    POSTs ``{channel, event, data}`` with a bearer key; any 2xx counts as delivered.
    """

    def __init__(self, push_url: str | None, push_key: str | None, timeout_seconds: float = 5.0):
        self._push_url = push_url
        self._push_key = push_key
        self._timeout_seconds = timeout_seconds

    @property
    def name(self) -> str:
        return "http_push"

    def is_configured(self) -> bool:
        return bool(self._push_url and self._push_key)

    async def publish(self, driver_id: str, notification: DispatchNotification) -> bool:
        if not self.is_configured():
            logger.warning("Realtime push channel not configured")
            DispatchMetrics.realtime_push("not_configured")
            return False

        body = {
            "channel": driver_channel(driver_id),
            "event": REALTIME_EVENT,
            "data": _event_data(notification),
        }
        headers = {"Authorization": f"Bearer {self._push_key}"}
        log_extra = {"driver_id": driver_id, "notification_id": notification.id}

        try:
            session = get_realtime_session()
            async with session.post(
                self._push_url,
                json=body,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    logger.warning(
                        "Realtime push rejected: status=%d", resp.status,
                        extra=log_extra,
                    )
                    DispatchMetrics.realtime_push("rejected")
                    return False

            DispatchMetrics.realtime_push("sent")
            logger.info("Realtime push sent", extra=log_extra)
            return True

        except TimeoutError:
            logger.warning("Realtime push timed out", extra=log_extra)
            DispatchMetrics.realtime_push("timeout")
            return False

        except aiohttp.ClientError as exc:
            logger.warning("Realtime push network error: %s", exc, extra=log_extra)
            DispatchMetrics.realtime_push("error")
            return False

        except Exception as exc:
            logger.error(
                "Realtime push failed: %s", type(exc).__name__,
                extra=log_extra,
                exc_info=True,
            )
            DispatchMetrics.realtime_push("error")
            return False


class DisabledChannel(RealtimeChannel):
    """Dummy channel when realtime push is disabled"""

    @property
    def name(self) -> str:
        return "disabled"

    def is_configured(self) -> bool:
        return True  # Always "configured"

    async def publish(self, driver_id: str, notification: DispatchNotification) -> bool:
        logger.debug(
            "Realtime push disabled, skipping: notification_id=%s", notification.id,
            extra={"driver_id": driver_id},
        )
        DispatchMetrics.realtime_push("disabled")
        return True


def get_realtime_channel(s: Settings | None = None) -> RealtimeChannel:
    """
    Get the configured realtime channel.

    Returns DisabledChannel if realtime push is disabled or the gateway
    is not configured.
    """
    s = s or default_settings

    if not s.realtime_enabled:
        logger.info("Realtime push disabled")
        return DisabledChannel()

    if not s.realtime_configured:
        logger.warning("Realtime push enabled but gateway not configured, push disabled")
        return DisabledChannel()

    return HttpPushChannel(
        s.realtime_push_url,
        s.realtime_push_key,
        timeout_seconds=s.realtime_timeout_seconds,
    )
