from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol


# Entity kinds, in the order the loader requests them.
RECORD_KINDS: tuple[str, ...] = (
    "people",
    "vendors",
    "tasks",
    "preferences",
    "learned_preferences",
    "calendar_events",
    "important_dates",
    "spending_items",
    "locations",
    "service_visits",
)

# Kinds read through a recency window, and the column the window applies to.
RECENCY_FIELDS: dict[str, str] = {
    "tasks": "created_at",
    "calendar_events": "start_at",
    "spending_items": "date",
    "service_visits": "scheduled_at",
}


class RecordStore(Protocol):
    """Read side of the household record store.

    `since` and `limit` are only passed for kinds listed in RECENCY_FIELDS;
    implementations return those newest-first.
    """

    def list_by_household(
        self,
        kind: str,
        household_id: str,
        *,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...
