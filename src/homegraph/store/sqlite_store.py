from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from .base import RECENCY_FIELDS, RECORD_KINDS


SCHEMA_VERSION = 1

# kind -> ordered columns. Every table also has `id` and `household_id`.
COLUMNS: dict[str, tuple[str, ...]] = {
    "people": (
        "full_name",
        "preferred_name",
        "role",
        "birthday",
        "allergies",
        "dietary_rules",
        "clothing_size",
        "shoe_size",
    ),
    "vendors": ("name", "category", "phone", "email", "can_enter_alone", "preferred_times", "notes"),
    "tasks": ("title", "status", "category", "urgency", "due_at", "recurrence", "created_at"),
    "preferences": ("category", "key", "value", "is_no_go", "tags"),
    "learned_preferences": ("category", "key", "value", "confidence", "source", "use_count"),
    "calendar_events": ("title", "start_at", "end_at", "location", "description"),
    "important_dates": ("title", "type", "date", "notes", "person_id"),
    "spending_items": (
        "title",
        "note",
        "amount_cents",
        "category",
        "vendor",
        "date",
        "status",
        "related_task_id",
    ),
    "locations": ("name", "type", "address", "notes"),
    "service_visits": ("scheduled_at", "completed_at", "status", "total_price_cents"),
}

# Stored as JSON text, decoded on read.
JSON_COLUMNS = {"allergies", "dietary_rules", "preferred_times", "tags"}
BOOL_COLUMNS = {"can_enter_alone", "is_no_go"}


def connect(db_path: str | os.PathLike[str]) -> sqlite3.Connection:
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    # Reads are fanned out over a thread pool; SqliteRecordStore serializes them.
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if str(db_path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS meta (
          key TEXT PRIMARY KEY,
          value TEXT NOT NULL
        );
        """
    )
    for kind in RECORD_KINDS:
        cols = ",\n          ".join(f'"{c}"' for c in COLUMNS[kind])
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {kind} (
              id TEXT PRIMARY KEY,
              household_id TEXT NOT NULL,
              {cols}
            );
            """
        )
        conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{kind}_household ON {kind}(household_id);")

    conn.execute(
        "INSERT OR REPLACE INTO meta(key, value) VALUES(?, ?)",
        ("schema_version", str(SCHEMA_VERSION)),
    )
    conn.commit()


def _check_kind(kind: str) -> None:
    if kind not in COLUMNS:
        raise ValueError(f"Unknown record kind: {kind!r}")


def insert_records(conn: sqlite3.Connection, kind: str, rows: Iterable[dict[str, Any]]) -> int:
    """Insert or replace records of one kind. Returns the number written."""
    _check_kind(kind)
    cols = ("id", "household_id") + COLUMNS[kind]
    placeholders = ",".join(["?"] * len(cols))
    col_sql = ",".join(f'"{c}"' for c in cols)

    values = []
    for r in rows:
        values.append(tuple(_encode(c, r.get(c)) for c in cols))

    conn.executemany(f"INSERT OR REPLACE INTO {kind}({col_sql}) VALUES ({placeholders})", values)
    return len(values)


def list_by_household(
    conn: sqlite3.Connection,
    kind: str,
    household_id: str,
    *,
    since: datetime | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    _check_kind(kind)
    sql = f"SELECT * FROM {kind} WHERE household_id = ?"
    params: list[Any] = [household_id]

    recency = RECENCY_FIELDS.get(kind)
    if recency is not None:
        if since is not None:
            # ISO text compares lexically; compare on the day.
            sql += f' AND "{recency}" >= ?'
            params.append(since.date().isoformat())
        sql += f' ORDER BY "{recency}" DESC'
    else:
        sql += " ORDER BY rowid"

    if limit is not None:
        sql += " LIMIT ?"
        params.append(int(limit))

    return [_decode(row) for row in conn.execute(sql, params).fetchall()]


def count_by_household(conn: sqlite3.Connection, household_id: str) -> dict[str, int]:
    out: dict[str, int] = {}
    for kind in RECORD_KINDS:
        row = conn.execute(f"SELECT COUNT(*) AS n FROM {kind} WHERE household_id = ?", (household_id,)).fetchone()
        out[kind] = int(row["n"])
    return out


def _encode(col: str, value: Any) -> Any:
    if value is None:
        return None
    if col in JSON_COLUMNS:
        return json.dumps(value, ensure_ascii=True)
    if col in BOOL_COLUMNS:
        return 1 if value else 0
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for col in row.keys():
        v = row[col]
        if v is not None and col in JSON_COLUMNS:
            v = json.loads(v)
        elif v is not None and col in BOOL_COLUMNS:
            v = bool(v)
        out[col] = v
    return out


class SqliteRecordStore:
    """RecordStore over one SQLite connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.Lock()

    def list_by_household(
        self,
        kind: str,
        household_id: str,
        *,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        with self._lock:
            return list_by_household(self.conn, kind, household_id, since=since, limit=limit)
