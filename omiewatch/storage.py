"""SQLite persistence for price records and the alert threshold."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Protocol

from omiewatch.errors import PersistError, QueryError
from omiewatch.models import PriceRecord

logger = logging.getLogger(__name__)

# Seconds a writer waits for a concurrent run to release the database lock
BUSY_TIMEOUT = 30.0


class RecordStore(Protocol):
    """Store port used by the pipeline."""

    def upsert_if_absent(self, record: PriceRecord) -> bool: ...

    def select_avg_in_range(self, start: date, end: date) -> list[float]: ...


class PriceStore:
    """RecordStore backed by a SQLite file."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)

    @contextmanager
    def get_connection(self):
        """Context manager for SQLite connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=BUSY_TIMEOUT)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS entries (
                    id TEXT PRIMARY KEY,
                    fecha TEXT NOT NULL,
                    min TEXT NOT NULL,
                    avg TEXT NOT NULL,
                    max TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_entries_fecha
                ON entries(fecha)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS config (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    data TEXT NOT NULL
                )
            """)

    def upsert_if_absent(self, record: PriceRecord) -> bool:
        """
        Insert `record` unless its identity is already stored.

        Returns True if a row was written. The first write for an identity
        wins; later ones leave the stored row untouched.
        """
        try:
            with self.get_connection() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO entries (id, fecha, min, avg, max, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO NOTHING
                    """,
                    (
                        record.identity,
                        record.date.isoformat(),
                        str(record.min),
                        str(record.avg),
                        str(record.max),
                        record.observed_at.isoformat(),
                    ),
                )
                return cur.rowcount == 1
        except sqlite3.Error as e:
            raise PersistError(f"error saving entry {record.identity[:12]}: {e}") from e

    def select_avg_in_range(self, start: date, end: date) -> list[float]:
        """Average prices with start <= date <= end, oldest first."""
        try:
            with self.get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT avg FROM entries
                    WHERE fecha BETWEEN ? AND ?
                    ORDER BY fecha ASC
                    """,
                    (start.isoformat(), end.isoformat()),
                ).fetchall()
        except sqlite3.Error as e:
            raise QueryError(f"error reading averages {start}..{end}: {e}") from e
        return [float(row["avg"]) for row in rows]

    def count(self) -> int:
        with self.get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]

    def load_threshold(self, default: float) -> float:
        """Stored alert ceiling; stores `default` first if none is saved yet."""
        with self.get_connection() as conn:
            row = conn.execute("SELECT data FROM config WHERE id = 1").fetchone()
            if row is None:
                logger.info("No saved threshold, storing default %.2f", default)
                conn.execute(
                    "INSERT OR IGNORE INTO config (id, data) VALUES (1, ?)",
                    (json.dumps({"max_value": default}),),
                )
                return default
        try:
            return float(json.loads(row["data"])["max_value"])
        except (ValueError, KeyError, TypeError) as e:
            raise QueryError(f"error loading config: {e}") from e

    def save_threshold(self, value: float) -> None:
        try:
            with self.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO config (id, data) VALUES (1, ?)
                    ON CONFLICT(id) DO UPDATE SET data = excluded.data
                    """,
                    (json.dumps({"max_value": value}),),
                )
        except sqlite3.Error as e:
            raise PersistError(f"error saving config: {e}") from e
