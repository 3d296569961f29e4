"""A persistent, channel-based work queue stored in a single file."""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS channels (
    name TEXT PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS items (
    channel TEXT NOT NULL REFERENCES channels(name) ON DELETE CASCADE,
    id TEXT NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (channel, id)
);
"""


@dataclass
class Work(Generic[T]):
    """A unit of work: an identifier and its data."""

    id: str
    data: T = None  # type: ignore[assignment]


class QueueClosedError(RuntimeError):
    """Raised when a closed queue is used."""

    def __init__(self) -> None:
        super().__init__("database is not open")


class ChannelNotFoundError(KeyError):
    """Raised when resetting a channel that does not exist."""


class Queue:
    """Work items grouped into channels; each channel pops in key order."""

    def __init__(self, path: str) -> None:
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = sqlite3.connect(
            str(path), isolation_level=None, check_same_thread=False
        )
        try:
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_SCHEMA)
        except sqlite3.DatabaseError:
            self._conn.close()
            self._conn = None
            raise

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> Queue:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def _transaction(self, write: bool) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self._conn
            if conn is None:
                raise QueueClosedError()
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    @staticmethod
    def _channel_exists(conn: sqlite3.Connection, channel: str) -> bool:
        row = conn.execute(
            "SELECT 1 FROM channels WHERE name = ?", (channel,)
        ).fetchone()
        return row is not None

    def push(self, channel: str, work: Work[Any]) -> None:
        """Store ``work`` in ``channel``, replacing any item with the same id."""
        if self._conn is None:
            raise QueueClosedError()
        if not work.id:
            raise ValueError("work ID cannot be empty")
        if not channel:
            raise ValueError("bucket name required")
        encoded = json.dumps(work.data, separators=(",", ":"))
        with self._transaction(write=True) as conn:
            conn.execute(
                "INSERT OR IGNORE INTO channels (name) VALUES (?)", (channel,)
            )
            conn.execute(
                "INSERT OR REPLACE INTO items (channel, id, data) VALUES (?, ?, ?)",
                (channel, work.id, encoded),
            )

    def list_channels(self) -> list[str]:
        with self._transaction(write=False) as conn:
            rows = conn.execute("SELECT name FROM channels ORDER BY name").fetchall()
        return [name for (name,) in rows]

    def list_channels_with_count(self) -> dict[str, int]:
        with self._transaction(write=False) as conn:
            rows = conn.execute(
                "SELECT c.name, COUNT(i.id) FROM channels c "
                "LEFT JOIN items i ON i.channel = c.name "
                "GROUP BY c.name ORDER BY c.name"
            ).fetchall()
        return dict(rows)

    def reset_channel(self, channel: str) -> None:
        """Delete a channel and everything in it."""
        with self._transaction(write=True) as conn:
            if not self._channel_exists(conn, channel):
                raise ChannelNotFoundError(channel)
            conn.execute("DELETE FROM items WHERE channel = ?", (channel,))
            conn.execute("DELETE FROM channels WHERE name = ?", (channel,))

    def count(self, channel: str) -> int:
        with self._transaction(write=False) as conn:
            (total,) = conn.execute(
                "SELECT COUNT(*) FROM items WHERE channel = ?", (channel,)
            ).fetchone()
        return total

    def pop_many(self, channel: str, count: int) -> list[Work[Any]]:
        """Remove and return up to ``count`` items with the lowest ids."""
        if count <= 0:
            if self._conn is None:
                raise QueueClosedError()
            return []
        with self._transaction(write=True) as conn:
            rows = conn.execute(
                "SELECT id, data FROM items WHERE channel = ? ORDER BY id LIMIT ?",
                (channel, count),
            ).fetchall()
            works = [Work(id=key, data=json.loads(data)) for key, data in rows]
            conn.executemany(
                "DELETE FROM items WHERE channel = ? AND id = ?",
                [(channel, work.id) for work in works],
            )
        return works

    def pop(self, channel: str) -> Work[Any] | None:
        """Remove and return the item with the lowest id, or None if empty."""
        works = self.pop_many(channel, 1)
        return works[0] if works else None