"""SQLite-backed event store. Blocking calls run in a worker thread."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import AsyncIterator, List

from sleeplog import config
from sleeplog.app.errors import StoreError
from sleeplog.app.sleep_core import SleepEvent, parse_event_id, sleep_times_path
from sleeplog.db.connection import db_lock, get_conn, init_db
from sleeplog.db.watch import SnapshotWatchers

logger = logging.getLogger(__name__)


def _row_to_event(row: sqlite3.Row) -> SleepEvent:
    return SleepEvent.from_document({"startTimestamp": row["start_ts"], "sleepState": row["sleep_state"]})


class SQLiteEventStore:
    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else config.db_path()
        init_db(self.path)
        self._watchers = SnapshotWatchers()

    def _list(self, user_id: str) -> List[SleepEvent]:
        with db_lock, get_conn(self.path) as conn:
            rows = conn.execute(
                "SELECT start_ts, sleep_state FROM sleep_times WHERE user_id = ? ORDER BY start_ts",
                (user_id,),
            ).fetchall()
        return [_row_to_event(row) for row in rows]

    def _get(self, user_id: str, start_ts: int) -> SleepEvent | None:
        with db_lock, get_conn(self.path) as conn:
            row = conn.execute(
                "SELECT start_ts, sleep_state FROM sleep_times WHERE user_id = ? AND start_ts = ?",
                (user_id, start_ts),
            ).fetchone()
        return _row_to_event(row) if row else None

    def _set(self, user_id: str, event: SleepEvent) -> None:
        now = time.time()
        doc = event.to_document()
        with db_lock, get_conn(self.path) as conn:
            conn.execute(
                """
                INSERT INTO sleep_times (user_id, start_ts, sleep_state, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, start_ts) DO UPDATE SET
                    sleep_state=excluded.sleep_state,
                    updated_at=excluded.updated_at
                """,
                (user_id, doc["startTimestamp"], doc["sleepState"], now, now),
            )

    def _delete(self, user_id: str, start_ts: int) -> None:
        with db_lock, get_conn(self.path) as conn:
            conn.execute("DELETE FROM sleep_times WHERE user_id = ? AND start_ts = ?", (user_id, start_ts))

    async def list_events(self, user_id: str) -> List[SleepEvent]:
        try:
            return await asyncio.to_thread(self._list, user_id)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read {sleep_times_path(user_id)}", exc) from exc

    async def get_event(self, user_id: str, event_id: str) -> SleepEvent | None:
        start_ts = parse_event_id(event_id)
        try:
            return await asyncio.to_thread(self._get, user_id, start_ts)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read {sleep_times_path(user_id)}/{event_id}", exc) from exc

    async def set_event(self, user_id: str, event: SleepEvent) -> None:
        try:
            await asyncio.to_thread(self._set, user_id, event)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not write {sleep_times_path(user_id)}/{event.event_id}", exc) from exc
        await self._watchers.notify(user_id, self.list_events)

    async def delete_event(self, user_id: str, event_id: str) -> None:
        start_ts = parse_event_id(event_id)
        try:
            await asyncio.to_thread(self._delete, user_id, start_ts)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not delete {sleep_times_path(user_id)}/{event_id}", exc) from exc
        await self._watchers.notify(user_id, self.list_events)

    def watch_events(self, user_id: str) -> AbstractAsyncContextManager[AsyncIterator[List[SleepEvent]]]:
        return self._watchers.watch(user_id, self.list_events)

    def watching(self, user_id: str) -> int:
        return self._watchers.watching(user_id)


__all__ = ["SQLiteEventStore"]
