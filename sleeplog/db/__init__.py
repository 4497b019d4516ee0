"""DB package exposing the event-store contract and its backends."""

from .backend import EventStore, configure_backend, get_backend
from .memory_store import MemoryEventStore
from .sqlite_store import SQLiteEventStore

__all__ = [
    "EventStore",
    "MemoryEventStore",
    "SQLiteEventStore",
    "configure_backend",
    "get_backend",
]
