from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..store import sqlite_store
from ..store.base import RECORD_KINDS


@dataclass(frozen=True)
class IngestOptions:
    input_path: Path
    # Overrides the file's household_id when set.
    household_id: str | None = None


def load_export(path: Path) -> dict[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object with one list per record kind")
    return data


def ingest_into_db(*, conn, options: IngestOptions) -> dict[str, Any]:
    """Write a household JSON export into the record store.

    Unknown top-level keys are ignored. Records without an id get a random
    one; records without a household_id belong to the export's household.
    """
    sqlite_store.init_db(conn)
    data = load_export(options.input_path)

    household_id = options.household_id or data.get("household_id")
    if not household_id:
        raise ValueError("No household_id in the export; pass one explicitly.")

    counts: dict[str, int] = {}
    for kind in RECORD_KINDS:
        rows = data.get(kind) or []
        if not isinstance(rows, list):
            raise ValueError(f"{kind}: expected a list, got {type(rows).__name__}")
        prepared = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", uuid.uuid4().hex)
            if options.household_id or not row.get("household_id"):
                row["household_id"] = household_id
            prepared.append(row)
        counts[kind] = sqlite_store.insert_records(conn, kind, prepared)

    conn.commit()
    return {"household_id": str(household_id), "records": counts}
