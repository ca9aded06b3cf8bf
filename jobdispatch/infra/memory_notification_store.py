# jobdispatch/infra/memory_notification_store.py
"""In-memory notification store for development and tests (``notification_store=memory``)."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Optional

from jobdispatch.core.engine.domain import DispatchNotification, PushPreferences


class InMemoryNotificationStore:
    """Thread-safe in-memory notification storage."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._records: dict[str, DispatchNotification] = {}
            self._preferences: dict[str, PushPreferences] = {}

    def set_push_preferences(self, driver_id: str, preferences: PushPreferences) -> None:
        with self._lock:
            self._preferences[driver_id] = preferences

    def _for_driver(self, driver_id: str) -> list[DispatchNotification]:
        with self._lock:
            records = [n for n in self._records.values() if n.driver_id == driver_id]
        return sorted(records, key=lambda n: n.created_at, reverse=True)

    async def insert(self, notification: DispatchNotification) -> str:
        with self._lock:
            if notification.id in self._records:
                raise ValueError(f"Notification {notification.id} already exists")
            self._records[notification.id] = notification
        return notification.id

    async def mark_read(self, notification_id: str) -> bool:
        with self._lock:
            current = self._records.get(notification_id)
            if current is None:
                return False
            if not current.read:
                self._records[notification_id] = replace(
                    current, read=True, read_at=datetime.now(timezone.utc),
                )
            return True

    async def mark_all_read(self, driver_id: str, notification_ids: Optional[list[str]] = None) -> int:
        wanted = set(notification_ids) if notification_ids is not None else None
        now = datetime.now(timezone.utc)
        updated = 0
        with self._lock:
            for nid, n in self._records.items():
                if n.driver_id != driver_id or n.read:
                    continue
                if wanted is not None and nid not in wanted:
                    continue
                self._records[nid] = replace(n, read=True, read_at=now)
                updated += 1
        return updated

    async def list_unread(self, driver_id: str, limit: int = 50) -> list[DispatchNotification]:
        return [n for n in self._for_driver(driver_id) if not n.read][:limit]

    async def list_history(self, driver_id: str, limit: int = 100) -> list[DispatchNotification]:
        return self._for_driver(driver_id)[:limit]

    async def count_unread(self, driver_id: str) -> int:
        return sum(1 for n in self._for_driver(driver_id) if not n.read)

    async def get_push_preferences(self, driver_id: str) -> Optional[PushPreferences]:
        with self._lock:
            return self._preferences.get(driver_id)
