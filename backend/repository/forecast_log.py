"""Append-only audit sinks for forecasting stage events."""

from __future__ import annotations

import json
import sqlite3
from collections import deque
from datetime import datetime, timezone
from itertools import count
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Mapping, Optional, Protocol

from backend.domain.constraints import ForecastingError
from backend.domain.models import ForecastingLogEntry
from backend.utils.logger import get_logger


logger = get_logger(__name__)

Clock = Callable[[], str]


class ForecastLogError(ForecastingError):
    """Raised when a log sink cannot persist or read entries."""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ForecastLogSink(Protocol):
    def append(
        self,
        category: str,
        message: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ForecastingLogEntry: ...

    def recent(self, limit: int) -> list[ForecastingLogEntry]: ...

    def filter(self, category: str) -> list[ForecastingLogEntry]: ...

    def clear(self) -> None: ...


class InMemoryForecastLog:
    """Bounded ring buffer; the oldest entries are evicted once full."""

    def __init__(self, capacity: int = 500, clock: Optional[Clock] = None) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._entries: deque[ForecastingLogEntry] = deque(maxlen=capacity)
        self._sequence = count(1)
        self._clock = clock or utc_now_iso
        self._lock = RLock()

    @property
    def capacity(self) -> int:
        return int(self._entries.maxlen or 0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(
        self,
        category: str,
        message: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ForecastingLogEntry:
        with self._lock:
            entry = ForecastingLogEntry(
                entry_id=f"flog-{next(self._sequence)}",
                timestamp=self._clock(),
                category=category,
                message=message,
                context=dict(context or {}),
            )
            self._entries.append(entry)
            return entry

    def recent(self, limit: int) -> list[ForecastingLogEntry]:
        if limit <= 0:
            return []
        with self._lock:
            return list(reversed(self._entries))[:limit]

    def filter(self, category: str) -> list[ForecastingLogEntry]:
        with self._lock:
            return [entry for entry in self._entries if entry.category == category]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SqliteForecastLog:
    """SQLite-backed sink; keeps at most `capacity` rows."""

    def __init__(
        self,
        database_path: Path | str,
        capacity: int = 500,
        clock: Optional[Clock] = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._db_path = Path(database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._capacity = capacity
        self._clock = clock or utc_now_iso
        self._lock = RLock()
        self.initialize_database()

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        return connection

    def initialize_database(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS ForecastLogs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        category TEXT NOT NULL,
                        message TEXT NOT NULL,
                        context TEXT NOT NULL DEFAULT '{}'
                    );
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_forecast_logs_category
                    ON ForecastLogs(category);
                    """
                )
                conn.commit()
            logger.info("Forecast log initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise ForecastLogError(f"Forecast log initialization failed: {exc}") from exc

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> ForecastingLogEntry:
        return ForecastingLogEntry(
            entry_id=f"flog-{row['id']}",
            timestamp=str(row["timestamp"]),
            category=str(row["category"]),
            message=str(row["message"]),
            context=json.loads(row["context"]),
        )

    def append(
        self,
        category: str,
        message: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ForecastingLogEntry:
        payload = dict(context or {})
        timestamp = self._clock()
        with self._lock:
            try:
                with self._connect() as conn:
                    cursor = conn.execute(
                        """
                        INSERT INTO ForecastLogs (timestamp, category, message, context)
                        VALUES (?, ?, ?, ?);
                        """,
                        (timestamp, category, message, json.dumps(payload, sort_keys=True)),
                    )
                    entry_id = int(cursor.lastrowid)
                    conn.execute(
                        "DELETE FROM ForecastLogs WHERE id <= ?;",
                        (entry_id - self._capacity,),
                    )
                    conn.commit()
            except (sqlite3.Error, TypeError, ValueError) as exc:
                raise ForecastLogError(f"Failed to append forecast log entry: {exc}") from exc
        return ForecastingLogEntry(
            entry_id=f"flog-{entry_id}",
            timestamp=timestamp,
            category=category,
            message=message,
            context=payload,
        )

    def recent(self, limit: int) -> list[ForecastingLogEntry]:
        if limit <= 0:
            return []
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM ForecastLogs ORDER BY id DESC LIMIT ?;",
                    (min(limit, self._capacity),),
                ).fetchall()
        except sqlite3.Error as exc:
            raise ForecastLogError(f"Failed to read forecast log: {exc}") from exc
        return [self._row_to_entry(row) for row in rows]

    def filter(self, category: str) -> list[ForecastingLogEntry]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM ForecastLogs WHERE category = ? ORDER BY id ASC;",
                    (category,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise ForecastLogError(f"Failed to read forecast log: {exc}") from exc
        return [self._row_to_entry(row) for row in rows]

    def clear(self) -> None:
        with self._lock:
            try:
                with self._connect() as conn:
                    conn.execute("DELETE FROM ForecastLogs;")
                    conn.commit()
            except sqlite3.Error as exc:
                raise ForecastLogError(f"Failed to clear forecast log: {exc}") from exc


def build_forecast_log(
    database_path: Optional[Path] = None,
    capacity: int = 500,
) -> ForecastLogSink:
    if database_path is not None:
        return SqliteForecastLog(database_path, capacity=capacity)
    return InMemoryForecastLog(capacity=capacity)
