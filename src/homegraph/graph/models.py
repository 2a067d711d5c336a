from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


NODE_TYPES = ("person", "vendor", "task", "preference", "event", "spending", "location", "date")


@dataclass(frozen=True, order=True)
class NodeKey:
    """Identity of a node: the record namespace plus the source record id.

    Rendered as `kind:source_id`; equality is on the fields, so ids that
    contain ':' cannot collide.
    """

    kind: str
    source_id: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.source_id}"


@dataclass(frozen=True)
class GraphNode:
    key: NodeKey
    type: str
    label: str
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return str(self.key)


@dataclass(frozen=True)
class GraphEdge:
    src: NodeKey
    dst: NodeKey
    relation: str
    weight: float | None = None
    metadata: dict[str, Any] | None = None

    def identity(self) -> tuple[NodeKey, NodeKey, str]:
        return (self.src, self.dst, self.relation)


@dataclass(frozen=True)
class HouseholdGraph:
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    summary: str

    def node_index(self) -> dict[NodeKey, GraphNode]:
        return {n.key: n for n in self.nodes}

    def nodes_by_type(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for n in self.nodes:
            out[n.type] = out.get(n.type, 0) + 1
        return out

    def edges_by_relation(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for e in self.edges:
            out[e.relation] = out.get(e.relation, 0) + 1
        return out
