from __future__ import annotations

import json
import math
import string

from .models import GraphNode, HouseholdGraph


def question_keywords(question: str) -> list[str]:
    """Whitespace tokens longer than two characters, edge punctuation removed."""
    out = []
    for tok in question.lower().split():
        tok = tok.strip(string.punctuation)
        if len(tok) > 2:
            out.append(tok)
    return out


def find_relevant_nodes(graph: HouseholdGraph, question: str, *, limit: int = 20) -> list[GraphNode]:
    """Nodes whose label or attributes overlap the question, in graph order.

    No scoring: the first `limit` matches win.
    """
    q = question.lower()
    keywords = question_keywords(question)
    needed = max(1, math.ceil(len(keywords) * 0.3))

    out: list[GraphNode] = []
    for node in graph.nodes:
        label = node.label.lower()
        if label and (label in q or q in label):
            out.append(node)
        else:
            attr_str = json.dumps(node.attributes, ensure_ascii=False, default=str).lower()
            hits = sum(1 for kw in keywords if kw in label or kw in attr_str)
            if hits >= needed:
                out.append(node)
        if len(out) >= limit:
            break
    return out
