from __future__ import annotations

from typing import Any, Iterator, Protocol, Sequence

from .extract import _day, _dollars, norm, parse_when, spending_node
from .load import HouseholdRecords
from .models import GraphEdge, NodeKey


class EdgeRule(Protocol):
    """A strategy that infers one relation from the loaded records.

    Rules must be pure: same records in, same edges out, and no rule may
    depend on edges produced by another.
    """

    relation: str

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]: ...


def _first_vendor(vendors: Sequence[dict[str, Any]], pred) -> dict[str, Any] | None:
    for v in vendors:
        if pred(v):
            return v
    return None


class DateBelongsToPerson:
    relation = "belongs_to"

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]:
        for d in records.important_dates:
            if d.get("person_id"):
                yield GraphEdge(
                    src=NodeKey("date", str(d["id"])),
                    dst=NodeKey("person", str(d["person_id"])),
                    relation=self.relation,
                )


class SpendingPaidToVendor:
    relation = "paid_to"

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]:
        for s in records.spending_items:
            name = norm(s.get("vendor"))
            if not name:
                continue
            vendor = _first_vendor(records.vendors, lambda v: norm(v.get("name")) == name)
            if vendor is None:
                continue
            amount = spending_node(s).attributes["amount"]
            yield GraphEdge(
                src=NodeKey("spending", str(s["id"])),
                dst=NodeKey("vendor", str(vendor["id"])),
                relation=self.relation,
                metadata={"amount": amount},
            )


class SpendingExpenseForTask:
    relation = "expense_for"

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]:
        for s in records.spending_items:
            if s.get("related_task_id"):
                yield GraphEdge(
                    src=NodeKey("spending", str(s["id"])),
                    dst=NodeKey("task", str(s["related_task_id"])),
                    relation=self.relation,
                )


class EventAtLocation:
    relation = "at_location"

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]:
        for ev in records.calendar_events:
            where = norm(ev.get("location"))
            if not where:
                continue
            for loc in records.locations:
                name = norm(loc.get("name"))
                address = norm(loc.get("address"))
                if (name and name == where) or (address and address in where):
                    yield GraphEdge(
                        src=NodeKey("event", str(ev["id"])),
                        dst=NodeKey("location", str(loc["id"])),
                        relation=self.relation,
                    )
                    break


class VendorPerformedService:
    """Every service visit goes to the first vendor whose category mentions cleaning."""

    relation = "performed_service"

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]:
        cleaner = _first_vendor(records.vendors, lambda v: "clean" in norm(v.get("category")))
        if cleaner is None:
            return
        for visit in records.service_visits:
            price = visit.get("total_price_cents")
            yield GraphEdge(
                src=NodeKey("vendor", str(cleaner["id"])),
                dst=NodeKey("visit", str(visit["id"])),
                relation=self.relation,
                metadata={
                    "scheduled_at": _day(parse_when(visit.get("scheduled_at"))),
                    "status": visit.get("status"),
                    "price": _dollars(price) or None,
                },
            )


class TaskInvolvesVendor:
    relation = "involves_vendor"

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]:
        for t in records.tasks:
            title = norm(t.get("title"))
            category = norm(t.get("category"))

            def matches(v: dict[str, Any]) -> bool:
                name = norm(v.get("name"))
                vcat = norm(v.get("category"))
                return bool((title and name and name in title) or (category and vcat and category in vcat))

            vendor = _first_vendor(records.vendors, matches)
            if vendor is not None:
                yield GraphEdge(
                    src=NodeKey("task", str(t["id"])),
                    dst=NodeKey("vendor", str(vendor["id"])),
                    relation=self.relation,
                )


class PreferenceReferencesVendor:
    relation = "references_vendor"

    def infer(self, records: HouseholdRecords) -> Iterator[GraphEdge]:
        for pref in records.preferences:
            value = norm(pref.get("value"))
            if not value:
                continue

            def matches(v: dict[str, Any]) -> bool:
                name = norm(v.get("name"))
                return bool(name) and (name in value or value in name)

            vendor = _first_vendor(records.vendors, matches)
            if vendor is not None:
                yield GraphEdge(
                    src=NodeKey("pref", str(pref["id"])),
                    dst=NodeKey("vendor", str(vendor["id"])),
                    relation=self.relation,
                )


DEFAULT_RULES: tuple[EdgeRule, ...] = (
    DateBelongsToPerson(),
    SpendingPaidToVendor(),
    SpendingExpenseForTask(),
    EventAtLocation(),
    VendorPerformedService(),
    TaskInvolvesVendor(),
    PreferenceReferencesVendor(),
)
