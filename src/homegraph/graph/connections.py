from __future__ import annotations

from datetime import date

from .extract import parse_when, short_date
from .models import HouseholdGraph, NodeKey


# Cents; totals are compared exactly.
SPEND_THRESHOLD_CENTS = 50000
UPCOMING_DAYS = 30
FREQUENT_VENDOR_COUNT = 5


def find_connections(graph: HouseholdGraph, *, today: date | None = None) -> list[str]:
    """Mine the edges for patterns worth surfacing unprompted."""
    today = today or date.today()
    index = graph.node_index()
    out: list[str] = []

    # Total spend per vendor.
    spend: dict[NodeKey, int] = {}
    for e in graph.edges:
        if e.relation != "paid_to" or e.dst not in index:
            continue
        amount = (e.metadata or {}).get("amount")
        if not isinstance(amount, (int, float)):
            amount = 0
        spend[e.dst] = spend.get(e.dst, 0) + round(amount * 100)
    for key, cents in spend.items():
        if cents > SPEND_THRESHOLD_CENTS:
            out.append(f"You've spent ${cents / 100:.0f} with {index[key].label} in the last 6 months.")

    # Personal dates coming up.
    for e in graph.edges:
        if e.relation != "belongs_to":
            continue
        date_node = index.get(e.src)
        person = index.get(e.dst)
        if date_node is None or person is None:
            continue
        when = parse_when(date_node.attributes.get("date"))
        if when is None:
            continue
        days = (when.date() - today).days
        if 0 < days <= UPCOMING_DAYS:
            out.append(f"{person.label}'s {date_node.label} is in {days} days ({short_date(when)}).")

    # Vendors that keep showing up.
    counts: dict[NodeKey, int] = {}
    for e in graph.edges:
        if e.relation == "involves_vendor":
            counts[e.dst] = counts.get(e.dst, 0) + 1
        elif e.relation == "performed_service":
            counts[e.src] = counts.get(e.src, 0) + 1
    for key, n in counts.items():
        if n >= FREQUENT_VENDOR_COUNT and key in index:
            out.append(f"{index[key].label} has been involved in {n} tasks/visits recently.")

    return out
