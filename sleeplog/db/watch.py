"""Per-user snapshot subscriptions shared by the store backends."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Set, Union

from sleeplog.app.errors import StoreError
from sleeplog.app.sleep_core import SleepEvent

logger = logging.getLogger(__name__)

Snapshot = List[SleepEvent]
Loader = Callable[[str], Awaitable[Snapshot]]
_Item = Union[Snapshot, StoreError]


async def _drain(queue: "asyncio.Queue[_Item]") -> AsyncIterator[Snapshot]:
    while True:
        item = await queue.get()
        if isinstance(item, StoreError):
            raise item
        yield item


class SnapshotWatchers:
    """Fan out full collection snapshots to everyone watching a user."""

    def __init__(self) -> None:
        self._queues: Dict[str, Set["asyncio.Queue[_Item]"]] = {}

    def watching(self, user_id: str) -> int:
        return len(self._queues.get(user_id, ()))

    @asynccontextmanager
    async def watch(self, user_id: str, load: Loader) -> AsyncIterator[AsyncIterator[Snapshot]]:
        queue: "asyncio.Queue[_Item]" = asyncio.Queue()
        self._queues.setdefault(user_id, set()).add(queue)
        logger.debug("Watching sleep times for %s", user_id)
        try:
            queue.put_nowait(await load(user_id))
            yield _drain(queue)
        finally:
            queues = self._queues.get(user_id)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    del self._queues[user_id]
            logger.debug("Stopped watching sleep times for %s", user_id)

    async def notify(self, user_id: str, load: Loader) -> None:
        queues = self._queues.get(user_id)
        if not queues:
            return
        item: _Item
        try:
            item = await load(user_id)
        except StoreError as exc:
            item = exc
        for queue in list(queues):
            queue.put_nowait(list(item) if isinstance(item, list) else item)


__all__ = ["Snapshot", "SnapshotWatchers"]
