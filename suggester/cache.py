"""Key-value stores with expiry for language detection results.

Values may legitimately be None ("no language detected"), so a miss is
signalled with the MISSING sentinel instead.
"""

import logging
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

MISSING = object()

Clock = Callable[[], float]


class DetectionCache(ABC):
    """Cache interface used by the language detector."""

    @abstractmethod
    def get(self, key: str) -> object:
        """Return the stored value, or MISSING if absent or expired."""
        ...

    @abstractmethod
    def set(self, key: str, value: str | None, ttl_seconds: float) -> None:
        """Store a value for ttl_seconds. Overwrites any existing entry."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    def close(self) -> None:
        """Release resources held by the store."""
        return None


class MemoryDetectionCache(DetectionCache):
    """Thread-safe in-process cache."""

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str | None, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> object:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISSING
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return MISSING
            return value

    def set(self, key: str, value: str | None, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SqliteDetectionCache(DetectionCache):
    """Cache persisted in a sqlite file, shared between processes.

    Concurrent writers for the same key race; the last write wins.

    Args:
        path: Database file. Parent directories are created.
        clock: Time source (seconds since epoch).
        timeout: Seconds to wait on a locked database.
    """

    def __init__(self, path: str | Path, clock: Clock = time.time, timeout: float = 5.0) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            str(self.path), timeout=timeout, check_same_thread=False, isolation_level=None
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS detection_cache ("
            " key TEXT PRIMARY KEY,"
            " value TEXT,"
            " expires_at REAL NOT NULL)"
        )
        logger.debug("Detection cache opened at %s", self.path)

    def get(self, key: str) -> object:
        with self._lock:
            row = self._conn.execute(
                "SELECT value, expires_at FROM detection_cache WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return MISSING
            value, expires_at = row
            if expires_at <= self._clock():
                self._conn.execute(
                    "DELETE FROM detection_cache WHERE key = ? AND expires_at <= ?",
                    (key, self._clock()),
                )
                return MISSING
            return value

    def set(self, key: str, value: str | None, ttl_seconds: float) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO detection_cache (key, value, expires_at) VALUES (?, ?, ?)",
                (key, value, self._clock() + ttl_seconds),
            )

    def delete(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM detection_cache WHERE key = ?", (key,))

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM detection_cache")

    def close(self) -> None:
        with self._lock:
            self._conn.close()
