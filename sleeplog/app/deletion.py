"""Bulk removal of a user's sleep events."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from sleeplog.app.errors import DeletionError
from sleeplog.app.sleep_core import sleep_times_path

if TYPE_CHECKING:
    from sleeplog.db.backend import EventStore

logger = logging.getLogger(__name__)


class DeleteOrchestrator:
    """
    Deletes every event of a user as one unit of work.

    - One-shot read of the collection, then one delete per event.
    - Deletes run concurrently; completion waits for every one to settle.
    - Any failure turns the whole call into a ``DeletionError`` carrying the first cause.
    """

    def __init__(self, store: "EventStore") -> None:
        self._store = store

    async def delete_all(self, user_id: str) -> int:
        path = sleep_times_path(user_id)
        events = await self._store.list_events(user_id)
        if not events:
            logger.info("There are no sleep times to delete from %s", path)
            return 0

        failures: list[Exception] = []

        async def delete(event_id: str) -> None:
            try:
                await self._store.delete_event(user_id, event_id)
            except Exception as exc:
                failures.append(exc)

        # Failures are recorded in the order they settle.
        await asyncio.gather(*(delete(event.event_id) for event in events))
        if failures:
            logger.error("Failed to delete %d of %d sleep times from %s", len(failures), len(events), path)
            raise DeletionError(failures[0], failed=len(failures), total=len(events)) from failures[0]

        logger.info("Deleted all %d sleep times from %s", len(events), path)
        return len(events)


__all__ = ["DeleteOrchestrator"]
