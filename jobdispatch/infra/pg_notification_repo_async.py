# jobdispatch/infra/pg_notification_repo_async.py
"""
Async PostgreSQL notification store (asyncpg).

Every operation is a single statement on one pooled connection.  Errors
are logged, counted and re-raised: the dispatch orchestrator decides
whether a failure is fatal (it never is for ``insert``), the HTTP layer
turns read-side failures into 5xx responses.
"""
from __future__ import annotations

import json
from typing import Optional

from jobdispatch.core.engine.domain import (
    DispatchNotification,
    NotificationType,
    Priority,
    PushPreferences,
    payload_from_dict,
)
from jobdispatch.core.engine.ports import AsyncNotificationStore
from jobdispatch.infra.db_async import db_conn
from jobdispatch.infra.logging_config import get_logger
from jobdispatch.infra.metrics import DispatchMetrics

logger = get_logger(__name__)

_COLUMNS = "id, driver_id, booking_id, type, title, message, priority, payload, read, read_at, created_at"


def _row_to_notification(row) -> DispatchNotification:
    """Convert an asyncpg Record to a DispatchNotification."""
    payload = row["payload"]
    if isinstance(payload, str):
        payload = json.loads(payload)
    return DispatchNotification(
        id=str(row["id"]),
        type=NotificationType(row["type"]),
        title=row["title"],
        message=row["message"],
        priority=Priority(row["priority"]),
        driver_id=row["driver_id"],
        booking_id=row["booking_id"],
        payload=payload_from_dict(payload or {}),
        created_at=row["created_at"],
        read=row["read"],
        read_at=row["read_at"],
    )


def _affected(status: str) -> int:
    """Row count from an asyncpg command status such as ``"UPDATE 3"``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


class AsyncPostgresNotificationStore(AsyncNotificationStore):
    """Async implementation of AsyncNotificationStore using asyncpg"""

    async def insert(self, notification: DispatchNotification) -> str:
        try:
            async with db_conn() as conn:
                row = await conn.fetchrow(
                    """
                    INSERT INTO driver_notifications
                        (id, driver_id, booking_id, type, title, message, priority, payload, read, created_at)
                    VALUES ($1::uuid, $2, $3, $4, $5, $6, $7, $8::jsonb, $9, $10)
                    RETURNING id
                    """,
                    notification.id,
                    notification.driver_id,
                    notification.booking_id,
                    notification.type.value,
                    notification.title,
                    notification.message,
                    notification.priority.value,
                    json.dumps(notification.payload.to_dict()),
                    notification.read,
                    notification.created_at,
                )
                return str(row["id"])
        except Exception:
            logger.error(
                "Failed to insert notification",
                extra={"notification_id": notification.id, "driver_id": notification.driver_id},
                exc_info=True,
            )
            DispatchMetrics.database_error("notification_insert")
            raise

    async def mark_read(self, notification_id: str) -> bool:
        """Set read markers.  Returns False when the notification does not exist."""
        try:
            async with db_conn() as conn:
                status = await conn.execute(
                    """
                    UPDATE driver_notifications
                    SET read = true, read_at = COALESCE(read_at, now())
                    WHERE id = $1::uuid
                    """,
                    notification_id,
                )
                return _affected(status) > 0
        except Exception:
            logger.error(
                "Failed to mark notification read",
                extra={"notification_id": notification_id},
                exc_info=True,
            )
            DispatchMetrics.database_error("notification_mark_read")
            raise

    async def mark_all_read(self, driver_id: str, notification_ids: Optional[list[str]] = None) -> int:
        """Mark the driver's unread notifications (optionally only ``notification_ids``) as read."""
        try:
            async with db_conn() as conn:
                status = await conn.execute(
                    """
                    UPDATE driver_notifications
                    SET read = true, read_at = now()
                    WHERE driver_id = $1
                      AND read = false
                      AND ($2::uuid[] IS NULL OR id = ANY($2::uuid[]))
                    """,
                    driver_id,
                    notification_ids,
                )
                return _affected(status)
        except Exception:
            logger.error(
                "Failed to mark notifications read",
                extra={"driver_id": driver_id},
                exc_info=True,
            )
            DispatchMetrics.database_error("notification_mark_all_read")
            raise

    async def list_unread(self, driver_id: str, limit: int = 50) -> list[DispatchNotification]:
        try:
            async with db_conn() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_COLUMNS} FROM driver_notifications
                    WHERE driver_id = $1 AND read = false
                    ORDER BY created_at DESC
                    LIMIT $2
                    """,
                    driver_id,
                    limit,
                )
                return [_row_to_notification(row) for row in rows]
        except Exception:
            logger.error("Failed to list unread notifications", extra={"driver_id": driver_id}, exc_info=True)
            DispatchMetrics.database_error("notification_list_unread")
            raise

    async def list_history(self, driver_id: str, limit: int = 100) -> list[DispatchNotification]:
        try:
            async with db_conn() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_COLUMNS} FROM driver_notifications
                    WHERE driver_id = $1
                    ORDER BY created_at DESC
                    LIMIT $2
                    """,
                    driver_id,
                    limit,
                )
                return [_row_to_notification(row) for row in rows]
        except Exception:
            logger.error("Failed to list notification history", extra={"driver_id": driver_id}, exc_info=True)
            DispatchMetrics.database_error("notification_list_history")
            raise

    async def count_unread(self, driver_id: str) -> int:
        try:
            async with db_conn() as conn:
                count = await conn.fetchval(
                    "SELECT count(*) FROM driver_notifications WHERE driver_id = $1 AND read = false",
                    driver_id,
                )
                return int(count or 0)
        except Exception:
            logger.error("Failed to count unread notifications", extra={"driver_id": driver_id}, exc_info=True)
            DispatchMetrics.database_error("notification_count_unread")
            raise

    async def get_push_preferences(self, driver_id: str) -> Optional[PushPreferences]:
        try:
            async with db_conn() as conn:
                row = await conn.fetchrow(
                    """
                    SELECT push_job_offers, push_job_updates
                    FROM driver_notification_preferences
                    WHERE driver_id = $1
                    """,
                    driver_id,
                )
                if not row:
                    return None
                return PushPreferences(
                    push_job_offers=row["push_job_offers"],
                    push_job_updates=row["push_job_updates"],
                )
        except Exception:
            logger.error("Failed to load push preferences", extra={"driver_id": driver_id}, exc_info=True)
            DispatchMetrics.database_error("preferences_get")
            raise
