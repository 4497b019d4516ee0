"""
Sleep-time operations for the signed-in user.

Every operation resolves identity through the session gate before it
touches the store. One-shot operations raise ``NoIdentityError`` when
nobody is signed in; live reads emit an empty snapshot instead.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import aclosing, asynccontextmanager
from datetime import datetime, tzinfo
from typing import AsyncIterator, Awaitable, List, TypeVar

from sleeplog import config
from sleeplog.app.deletion import DeleteOrchestrator
from sleeplog.app.errors import StoreError
from sleeplog.app.sample_data import load_sample_sleep
from sleeplog.app.session import SessionGate, SignedIn, require_user_id
from sleeplog.app.sleep_core import SleepEvent, SleepState, parse_event_id, sleep_times_path
from sleeplog.app.timeline import ChartRow, compile_chart_rows
from sleeplog.db.backend import EventStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _logged(success: str, failure: str, operation: Awaitable[T]) -> T:
    try:
        result = await operation
    except Exception as exc:
        logger.error("%s: %s", failure, exc)
        raise
    logger.info(success)
    return result


async def _cancel(task: "asyncio.Task[None]") -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


async def _iterate(queue: "asyncio.Queue[List[SleepEvent]]") -> AsyncIterator[List[SleepEvent]]:
    while True:
        yield await queue.get()


class SleepTimeService:
    """Coordinates session gate, event store and timeline compiler."""

    def __init__(self, store: EventStore, session: SessionGate, timezone: tzinfo | None = None) -> None:
        self._store = store
        self._session = session
        self._timezone = timezone or config.display_timezone()
        self._deleter = DeleteOrchestrator(store)

    def _normalize(self, start: datetime) -> datetime:
        if start.tzinfo is None:
            return start.replace(tzinfo=self._timezone)
        return start

    def _localize(self, events: List[SleepEvent]) -> List[SleepEvent]:
        return [SleepEvent(event.start_timestamp.astimezone(self._timezone), event.sleep_state) for event in events]

    async def set_sleep_time(self, start: datetime, sleep_state: SleepState) -> SleepEvent:
        logger.debug("set_sleep_time(start=%s, sleep_state=%s)", start, sleep_state)
        user_id = await require_user_id(self._session)
        event = SleepEvent(self._normalize(start), SleepState(sleep_state))
        path = f"{sleep_times_path(user_id)}/{event.event_id}"
        await _logged(
            f"Set sleep time {path}",
            f"Failed to set sleep time {path}",
            self._store.set_event(user_id, event),
        )
        return event

    async def delete_sleep_time(self, event_id: str) -> None:
        logger.debug("delete_sleep_time(event_id=%s)", event_id)
        user_id = await require_user_id(self._session)
        parse_event_id(event_id)
        path = f"{sleep_times_path(user_id)}/{event_id}"
        await _logged(
            f"Deleted sleep time {path}",
            f"Failed to delete sleep time {path}",
            self._store.delete_event(user_id, event_id),
        )

    async def delete_all_sleep_times(self) -> int:
        logger.debug("delete_all_sleep_times()")
        user_id = await require_user_id(self._session)
        return await self._deleter.delete_all(user_id)

    async def get_sleep_times(self) -> List[SleepEvent]:
        user_id = await require_user_id(self._session)
        events = await self._store.list_events(user_id)
        return self._localize(events)

    async def get_chart_rows(self) -> List[ChartRow]:
        return compile_chart_rows(await self.get_sleep_times())

    async def add_sample_sleep(self) -> int:
        await require_user_id(self._session)
        samples = load_sample_sleep()
        for start, sleep_state in samples:
            await self.set_sleep_time(start, sleep_state)
        logger.info("Added %d sample sleep times", len(samples))
        return len(samples)

    async def _pump(self, user_id: str, snapshots: "asyncio.Queue[List[SleepEvent]]") -> None:
        path = sleep_times_path(user_id)
        try:
            async with self._store.watch_events(user_id) as events:
                async for batch in events:
                    logger.debug("Got sleep times from %s", path)
                    snapshots.put_nowait(self._localize(batch))
        except StoreError as exc:
            logger.error("Couldn't get sleep times from %s: %s", path, exc)
            snapshots.put_nowait([])

    async def _follow_identity(self, snapshots: "asyncio.Queue[List[SleepEvent]]") -> None:
        pump: asyncio.Task[None] | None = None
        try:
            async with aclosing(self._session.identity_changes()) as identities:
                async for identity in identities:
                    if pump is not None:
                        await _cancel(pump)
                        pump = None
                    if isinstance(identity, SignedIn):
                        pump = asyncio.create_task(self._pump(identity.user_id, snapshots), name="sleep-times-pump")
                    else:
                        snapshots.put_nowait([])
            # The gate stopped publishing changes; keep streaming the last user's events.
            if pump is not None:
                await pump
        except Exception as exc:
            logger.error("Couldn't follow identity changes: %s", exc)
            snapshots.put_nowait([])
        finally:
            if pump is not None and not pump.done():
                await _cancel(pump)

    @asynccontextmanager
    async def watch_sleep_times(self) -> AsyncIterator[AsyncIterator[List[SleepEvent]]]:
        """
        Live, ascending event snapshots for whoever is signed in.

        Follows identity changes: signing out emits ``[]`` and signing in as
        someone else switches to their events. Store read failures are logged
        and emitted as ``[]``. Leaving the context releases the subscription.
        """
        snapshots: asyncio.Queue[List[SleepEvent]] = asyncio.Queue()
        follower = asyncio.create_task(self._follow_identity(snapshots), name="sleep-times-follower")
        try:
            yield _iterate(snapshots)
        finally:
            await _cancel(follower)

    @asynccontextmanager
    async def watch_chart_rows(self) -> AsyncIterator[AsyncIterator[List[ChartRow]]]:
        async def rows(events: AsyncIterator[List[SleepEvent]]) -> AsyncIterator[List[ChartRow]]:
            async for batch in events:
                yield compile_chart_rows(batch)

        async with self.watch_sleep_times() as events:
            yield rows(events)


__all__ = ["SleepTimeService"]
