from __future__ import annotations

import logging
from typing import Sequence

from .extract import extract_nodes
from .load import HouseholdRecords
from .models import GraphEdge, GraphNode, HouseholdGraph
from .rules import DEFAULT_RULES, EdgeRule


logger = logging.getLogger(__name__)


def infer_edges(
    records: HouseholdRecords,
    nodes: Sequence[GraphNode],
    rules: Sequence[EdgeRule] = DEFAULT_RULES,
) -> list[GraphEdge]:
    """Run every rule and keep edges whose endpoints are both in `nodes`.

    A spending item can point at a task outside the loaded window, for
    example; such edges are dropped rather than left dangling.
    """
    keys = {n.key for n in nodes}
    seen: set = set()
    edges: list[GraphEdge] = []
    for rule in rules:
        for edge in rule.infer(records):
            if edge.src not in keys or edge.dst not in keys:
                continue
            ident = edge.identity()
            if ident in seen:
                continue
            seen.add(ident)
            edges.append(edge)
    return edges


def summarize(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]) -> str:
    counts: dict[str, int] = {}
    for n in nodes:
        counts[n.type] = counts.get(n.type, 0) + 1
    return ", ".join(
        [
            f"{counts.get('person', 0)} people",
            f"{counts.get('vendor', 0)} vendors",
            f"{counts.get('task', 0)} tasks",
            f"{counts.get('preference', 0)} preferences",
            f"{counts.get('event', 0)} events",
            f"{counts.get('spending', 0)} spending items",
            f"{counts.get('location', 0)} locations",
            f"{counts.get('date', 0)} important dates",
            f"{len(edges)} relationships",
        ]
    )


def build_graph(records: HouseholdRecords, *, rules: Sequence[EdgeRule] = DEFAULT_RULES) -> HouseholdGraph:
    """Build a fresh graph snapshot from loaded records."""
    nodes = extract_nodes(records)
    edges = infer_edges(records, nodes, rules)
    logger.debug("Built graph for household %s: %d nodes, %d edges", records.household_id, len(nodes), len(edges))
    return HouseholdGraph(nodes=nodes, edges=edges, summary=summarize(nodes, edges))
