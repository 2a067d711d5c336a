from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ..store.base import RECENCY_FIELDS, RECORD_KINDS, RecordStore


logger = logging.getLogger(__name__)


class DependencyUnavailable(RuntimeError):
    """The record store could not serve a read; no graph is built."""


@dataclass(frozen=True)
class LoadOptions:
    window_days: int = 180
    task_limit: int = 200
    event_limit: int = 100
    spending_limit: int = 200
    visit_limit: int = 100
    max_workers: int = len(RECORD_KINDS)

    def limit_for(self, kind: str) -> int | None:
        return {
            "tasks": self.task_limit,
            "calendar_events": self.event_limit,
            "spending_items": self.spending_limit,
            "service_visits": self.visit_limit,
        }.get(kind)


@dataclass(frozen=True)
class HouseholdRecords:
    household_id: str
    people: list[dict[str, Any]] = field(default_factory=list)
    vendors: list[dict[str, Any]] = field(default_factory=list)
    tasks: list[dict[str, Any]] = field(default_factory=list)
    preferences: list[dict[str, Any]] = field(default_factory=list)
    learned_preferences: list[dict[str, Any]] = field(default_factory=list)
    calendar_events: list[dict[str, Any]] = field(default_factory=list)
    important_dates: list[dict[str, Any]] = field(default_factory=list)
    spending_items: list[dict[str, Any]] = field(default_factory=list)
    locations: list[dict[str, Any]] = field(default_factory=list)
    service_visits: list[dict[str, Any]] = field(default_factory=list)

    def total(self) -> int:
        return sum(len(getattr(self, k)) for k in RECORD_KINDS)


def load_household(
    *,
    store: RecordStore,
    household_id: str,
    options: LoadOptions | None = None,
    now: datetime | None = None,
) -> HouseholdRecords:
    """Read every record kind for one household concurrently.

    All reads are submitted before any result is awaited. If one of them
    fails the whole load fails with DependencyUnavailable.
    """
    options = options or LoadOptions()
    since = (now or datetime.now()) - timedelta(days=int(options.window_days))

    results: dict[str, list[dict[str, Any]]] = {}
    with ThreadPoolExecutor(max_workers=max(1, int(options.max_workers))) as pool:
        futures = {}
        for kind in RECORD_KINDS:
            if kind in RECENCY_FIELDS:
                fut = pool.submit(
                    store.list_by_household,
                    kind,
                    household_id,
                    since=since,
                    limit=options.limit_for(kind),
                )
            else:
                fut = pool.submit(store.list_by_household, kind, household_id)
            futures[kind] = fut

        for kind, fut in futures.items():
            try:
                results[kind] = list(fut.result())
            except Exception as e:
                logger.error("Loading %s for household %s failed: %s", kind, household_id, e)
                raise DependencyUnavailable(f"Record store failed while loading {kind}: {e}") from e

    return HouseholdRecords(household_id=household_id, **results)
