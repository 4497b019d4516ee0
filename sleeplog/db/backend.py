"""Event-store contract and backend selection.

Callers depend on ``EventStore`` only, so storage can be swapped via
configuration without touching the app. Every backend orders reads by
start timestamp and treats a write to an existing id as a replacement.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import AsyncIterator, List, Protocol, runtime_checkable

from sleeplog import config
from sleeplog.app.sleep_core import SleepEvent
from sleeplog.db.memory_store import MemoryEventStore
from sleeplog.db.sqlite_store import SQLiteEventStore


@runtime_checkable
class EventStore(Protocol):
    """Per-user, timestamp-keyed collection of sleep events."""

    async def list_events(self, user_id: str) -> List[SleepEvent]: ...

    async def get_event(self, user_id: str, event_id: str) -> SleepEvent | None: ...

    async def set_event(self, user_id: str, event: SleepEvent) -> None: ...

    async def delete_event(self, user_id: str, event_id: str) -> None: ...

    def watch_events(self, user_id: str) -> AbstractAsyncContextManager[AsyncIterator[List[SleepEvent]]]: ...


_backend: EventStore | None = None


def configure_backend(backend: EventStore | None) -> None:
    """Override the current backend (useful for tests). ``None`` resets to configuration."""

    global _backend
    _backend = backend


def get_backend(name: str | None = None) -> EventStore:
    global _backend
    if _backend is not None:
        return _backend

    backend_name = name or config.backend_name()
    if backend_name == "sqlite":
        _backend = SQLiteEventStore()
        return _backend
    if backend_name == "memory":
        _backend = MemoryEventStore()
        return _backend

    raise ValueError(f"Unsupported event store backend: {backend_name}")


__all__ = [
    "EventStore",
    "configure_backend",
    "get_backend",
]
