from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from ..graph.extract import parse_when
from ..graph.models import GraphNode


NOTHING_FOUND = (
    "I couldn't find specific information about that in your household records. "
    "Try asking about people, vendors, tasks, spending, events, or preferences."
)

# Checked in this order; the first present value dates a node.
RECENCY_ATTRS = ("scheduled_at", "completed_at", "created_at", "start_at", "date")


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" + ("" if n == 1 else "s")


def _as_list(value: Any) -> list[Any]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _when(node: GraphNode) -> tuple[Any, datetime | None]:
    for attr in RECENCY_ATTRS:
        raw = node.attributes.get(attr)
        if raw:
            return raw, parse_when(raw)
    return None, None


def _most_recent(nodes: Sequence[GraphNode]) -> tuple[GraphNode, Any]:
    """Newest node by RECENCY_ATTRS; undated nodes rank last, unparseable ones are skipped."""
    dated: list[tuple[datetime, int, GraphNode, Any]] = []
    undated: list[GraphNode] = []
    for i, n in enumerate(nodes):
        raw, parsed = _when(n)
        if raw is None:
            undated.append(n)
        elif parsed is not None:
            dated.append((parsed, -i, n, raw))
    if dated:
        _, _, node, raw = max(dated, key=lambda t: (t[0], t[1]))
        return node, raw
    return (undated[0] if undated else nodes[0]), None


def _answer_last(q: str, relevant: Sequence[GraphNode]) -> str | None:
    if "when" not in q or not ("last" in q or "recent" in q):
        return None
    matches = [n for n in relevant if n.type in ("task", "event", "spending")]
    if not matches:
        return None
    latest, when = _most_recent(matches)
    on = f" on {when}" if when else ""
    return (
        f'The most recent match is "{latest.label}"{on}. '
        f"Found {_plural(len(matches), 'related item')} in your household records."
    )


def _answer_spend(q: str, relevant: Sequence[GraphNode]) -> str | None:
    if not ("how much" in q or "spend" in q or "cost" in q):
        return None
    matches = [n for n in relevant if n.type == "spending"]
    if not matches:
        return None
    total = 0.0
    for n in matches:
        amount = n.attributes.get("amount")
        if isinstance(amount, (int, float)):
            total += float(amount)
    latest, _ = _most_recent(matches)
    return (
        f"Found {_plural(len(matches), 'spending record')} totaling ${total:.2f}. "
        f'Most recent: "{latest.label}".'
    )


def _answer_who(q: str, relevant: Sequence[GraphNode]) -> str | None:
    if not ("who" in q or "contact" in q or "vendor" in q):
        return None
    matches = [n for n in relevant if n.type in ("person", "vendor")]
    if not matches:
        return None
    lines = []
    for n in matches[:5]:
        a = n.attributes
        parts = [n.label]
        if a.get("role"):
            parts.append(f"({a['role']})")
            if a.get("category"):
                parts.append(str(a["category"]))
        elif a.get("category"):
            parts.append(f"({a['category']})")
        if a.get("phone"):
            parts.append(f"phone: {a['phone']}")
        if a.get("email"):
            parts.append(f"email: {a['email']}")
        lines.append(" ".join(parts))
    return "\n".join(lines)


def _answer_food(q: str, relevant: Sequence[GraphNode]) -> str | None:
    if not ("allerg" in q or "diet" in q or "food" in q):
        return None
    parts: list[str] = []
    for p in relevant:
        if p.type != "person":
            continue
        allergies = _as_list(p.attributes.get("allergies"))
        diet = _as_list(p.attributes.get("dietary_rules"))
        bits = []
        if allergies:
            bits.append(f"allergies: {', '.join(map(str, allergies))}")
        if diet:
            bits.append(f" diet: {', '.join(map(str, diet))}")
        if bits:
            parts.append(f"{p.label}: " + "".join(bits))
    for pref in relevant:
        if pref.type != "preference":
            continue
        a = pref.attributes
        flag = " (NO-GO)" if a.get("is_no_go") else ""
        parts.append(f"Preference: {a.get('key')} = {a.get('value')}{flag}")
    return "\n".join(parts) if parts else None


def _answer_upcoming(q: str, relevant: Sequence[GraphNode]) -> str | None:
    if not ("upcoming" in q or "next" in q or "schedule" in q or "calendar" in q):
        return None
    # Relevance order, not chronological.
    combined = [n for n in relevant if n.type in ("event", "date")]
    combined += [n for n in relevant if n.type == "task" and n.attributes.get("due_at")]
    if not combined:
        return None
    lines = []
    for n in combined[:7]:
        a = n.attributes
        when = a.get("start_at") or a.get("date") or a.get("due_at") or a.get("scheduled_at") or ""
        line = n.label + (f" - {when}" if when else "")
        if a.get("location"):
            line += f" at {a['location']}"
        lines.append(line)
    return "Upcoming:\n" + "\n".join(lines)


BRANCHES = (_answer_last, _answer_spend, _answer_who, _answer_food, _answer_upcoming)


def rule_based_answer(question: str, relevant: Sequence[GraphNode]) -> str:
    """Deterministic answer from the relevant nodes.

    Branches are tried in order; one whose cue words match but which has no
    nodes of the right type falls through to the next.
    """
    q = question.lower()
    for branch in BRANCHES:
        text = branch(q, relevant)
        if text:
            return text

    if relevant:
        items = [f"• {n.label} ({n.type})" for n in relevant[:5]]
        return "Here's what I found related to your question:\n" + "\n".join(items)
    return NOTHING_FOUND
