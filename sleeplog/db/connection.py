"""SQLite connection + initialization utilities."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Iterator

db_lock = Lock()

SCHEMA = """
CREATE TABLE IF NOT EXISTS sleep_times (
    user_id TEXT NOT NULL,
    start_ts INTEGER NOT NULL,          -- epoch ms (UTC), also the document id
    sleep_state TEXT NOT NULL,
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL,
    PRIMARY KEY (user_id, start_ts)
);
"""


@contextmanager
def get_conn(path: Path) -> Iterator[sqlite3.Connection]:
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def init_db(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with db_lock, get_conn(path) as conn:
        conn.executescript(SCHEMA)


__all__ = ["SCHEMA", "db_lock", "get_conn", "init_db"]
