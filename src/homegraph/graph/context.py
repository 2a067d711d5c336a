from __future__ import annotations

import json
from typing import Any

from .models import GraphNode, HouseholdGraph


SECTION_TITLES: dict[str, str] = {
    "person": "People",
    "vendor": "Vendors & Service Providers",
    "task": "Tasks & Activities",
    "preference": "Preferences & Rules",
    "event": "Calendar Events",
    "spending": "Spending & Expenses",
    "location": "Locations",
    "date": "Important Dates",
}


def _is_empty(v: Any) -> bool:
    return v is None or v == "" or (isinstance(v, (list, tuple)) and len(v) == 0)


def _render_node(n: GraphNode) -> str:
    attrs = ", ".join(
        f"{k}={json.dumps(v, ensure_ascii=False, default=str)}" for k, v in n.attributes.items() if not _is_empty(v)
    )
    return f"  - {n.label}" + (f" ({attrs})" if attrs else "")


def graph_to_context(graph: HouseholdGraph, *, max_per_type: int = 50, max_edges: int = 80) -> str:
    """Render the graph as the plain-text block handed to the language model."""
    by_type: dict[str, list[GraphNode]] = {}
    for n in graph.nodes:
        by_type.setdefault(n.type, []).append(n)

    sections: list[str] = []
    for node_type, title in SECTION_TITLES.items():
        items = by_type.get(node_type)
        if not items:
            continue
        lines = [_render_node(n) for n in items[:max_per_type]]
        sections.append(f"## {title}\n" + "\n".join(lines))

    if graph.edges:
        index = graph.node_index()
        rel_lines = []
        for e in graph.edges[:max_edges]:
            src = index.get(e.src)
            dst = index.get(e.dst)
            meta = f" ({json.dumps(e.metadata, ensure_ascii=False, default=str)})" if e.metadata else ""
            rel_lines.append(
                f"  - {src.label if src else e.src} → [{e.relation}] → {dst.label if dst else e.dst}{meta}"
            )
        sections.append("## Relationships\n" + "\n".join(rel_lines))

    return "\n\n".join(sections)
