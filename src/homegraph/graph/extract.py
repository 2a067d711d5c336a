from __future__ import annotations

from datetime import date, datetime
from typing import Any

from .load import HouseholdRecords
from .models import GraphNode, NodeKey


def norm(text: Any) -> str:
    # Case-insensitive comparisons only; whitespace is significant.
    if text is None:
        return ""
    return str(text).lower()


def parse_when(value: Any) -> datetime | None:
    """Parse a stored date/datetime value; None when missing or malformed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.strip()).replace(tzinfo=None)
    except ValueError:
        return None


def short_date(d: date) -> str:
    # "Oct 3"
    return f"{d:%b} {d.day}"


def _day(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    return value


def _minute(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return _day(value)


def _dollars(cents: Any) -> float | None:
    if cents is None or cents == "":
        return None
    try:
        return float(cents) / 100
    except (TypeError, ValueError):
        return None


def person_node(p: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("person", str(p["id"])),
        type="person",
        label=str(p.get("preferred_name") or p.get("full_name") or ""),
        attributes={
            "role": p.get("role"),
            "birthday": _day(p.get("birthday")),
            "allergies": p.get("allergies"),
            "dietary_rules": p.get("dietary_rules"),
            "clothing_size": p.get("clothing_size"),
            "shoe_size": p.get("shoe_size"),
        },
    )


def vendor_node(v: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("vendor", str(v["id"])),
        type="vendor",
        label=str(v.get("name") or ""),
        attributes={
            "category": v.get("category"),
            "phone": v.get("phone"),
            "email": v.get("email"),
            "can_enter_alone": v.get("can_enter_alone"),
            "preferred_times": v.get("preferred_times"),
            "notes": v.get("notes"),
        },
    )


def task_node(t: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("task", str(t["id"])),
        type="task",
        label=str(t.get("title") or ""),
        attributes={
            "status": t.get("status"),
            "category": t.get("category"),
            "urgency": t.get("urgency"),
            "due_at": _day(t.get("due_at")),
            "recurrence": t.get("recurrence"),
            "created_at": _day(t.get("created_at")),
        },
    )


def preference_node(pref: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("pref", str(pref["id"])),
        type="preference",
        label=f"{pref.get('category')}: {pref.get('key')}",
        attributes={
            "category": pref.get("category"),
            "key": pref.get("key"),
            "value": pref.get("value"),
            "is_no_go": pref.get("is_no_go"),
            "tags": pref.get("tags"),
        },
    )


def learned_preference_node(lp: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("learned_pref", str(lp["id"])),
        type="preference",
        label=f"Learned: {lp.get('key')}",
        attributes={
            "category": lp.get("category"),
            "key": lp.get("key"),
            "value": lp.get("value"),
            "confidence": lp.get("confidence"),
            "source": lp.get("source"),
            "use_count": lp.get("use_count"),
        },
    )


def event_node(ev: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("event", str(ev["id"])),
        type="event",
        label=str(ev.get("title") or ""),
        attributes={
            "start_at": _minute(ev.get("start_at")),
            "end_at": _minute(ev.get("end_at")),
            "location": ev.get("location"),
            "description": ev.get("description"),
        },
    )


def date_node(d: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("date", str(d["id"])),
        type="date",
        label=str(d.get("title") or ""),
        attributes={
            "type": d.get("type"),
            "date": _day(d.get("date")),
            "notes": d.get("notes"),
            "person_id": d.get("person_id"),
        },
    )


def spending_node(s: dict[str, Any]) -> GraphNode:
    amount = _dollars(s.get("amount_cents"))
    label = s.get("note") or s.get("title") or f"{s.get('category')} ${(amount or 0.0):.2f}"
    return GraphNode(
        key=NodeKey("spending", str(s["id"])),
        type="spending",
        label=str(label),
        attributes={
            "amount": amount,
            "category": s.get("category"),
            "vendor": s.get("vendor"),
            "date": _day(s.get("date")),
            "status": s.get("status"),
        },
    )


def location_node(loc: dict[str, Any]) -> GraphNode:
    return GraphNode(
        key=NodeKey("location", str(loc["id"])),
        type="location",
        label=str(loc.get("name") or ""),
        attributes={
            "type": loc.get("type"),
            "address": loc.get("address"),
            "notes": loc.get("notes"),
        },
    )


def visit_node(v: dict[str, Any]) -> GraphNode:
    when = parse_when(v.get("scheduled_at"))
    return GraphNode(
        key=NodeKey("visit", str(v["id"])),
        type="task",
        label=f"Cleaning visit {short_date(when) if when else ''}".rstrip(),
        attributes={
            "scheduled_at": _day(v.get("scheduled_at")),
            "completed_at": _day(v.get("completed_at")),
            "status": v.get("status"),
            "price": _dollars(v.get("total_price_cents")) or None,
            "category": "CLEANING",
        },
    )


def extract_nodes(records: HouseholdRecords) -> list[GraphNode]:
    """One node per loaded record, grouped by kind in loader order."""
    nodes: list[GraphNode] = []
    nodes.extend(person_node(p) for p in records.people)
    nodes.extend(vendor_node(v) for v in records.vendors)
    nodes.extend(task_node(t) for t in records.tasks)
    nodes.extend(preference_node(p) for p in records.preferences)
    nodes.extend(learned_preference_node(lp) for lp in records.learned_preferences)
    nodes.extend(event_node(ev) for ev in records.calendar_events)
    nodes.extend(date_node(d) for d in records.important_dates)
    nodes.extend(spending_node(s) for s in records.spending_items)
    nodes.extend(location_node(loc) for loc in records.locations)
    nodes.extend(visit_node(v) for v in records.service_visits)
    return nodes
