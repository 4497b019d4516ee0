"""In-memory event store keyed by collection path, used for tests and local runs."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, AsyncIterator, Dict, List

from sleeplog.app.sleep_core import SleepEvent, sleep_times_path
from sleeplog.db.watch import SnapshotWatchers

logger = logging.getLogger(__name__)


class MemoryEventStore:
    """Documents live at ``accounts/<user>/sleepTimes/<id>``; writing an existing id replaces it."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._watchers = SnapshotWatchers()

    def _collection(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(sleep_times_path(user_id), {})

    def _existing(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.get(sleep_times_path(user_id), {})

    async def list_events(self, user_id: str) -> List[SleepEvent]:
        docs = sorted(self._existing(user_id).values(), key=lambda doc: doc["startTimestamp"])
        return [SleepEvent.from_document(doc) for doc in docs]

    async def get_event(self, user_id: str, event_id: str) -> SleepEvent | None:
        doc = self._existing(user_id).get(event_id)
        return SleepEvent.from_document(doc) if doc else None

    async def set_event(self, user_id: str, event: SleepEvent) -> None:
        self._collection(user_id)[event.event_id] = event.to_document()
        await self._watchers.notify(user_id, self.list_events)

    async def delete_event(self, user_id: str, event_id: str) -> None:
        self._existing(user_id).pop(event_id, None)
        await self._watchers.notify(user_id, self.list_events)

    def watch_events(self, user_id: str) -> AbstractAsyncContextManager[AsyncIterator[List[SleepEvent]]]:
        return self._watchers.watch(user_id, self.list_events)

    def watching(self, user_id: str) -> int:
        return self._watchers.watching(user_id)


__all__ = ["MemoryEventStore"]
