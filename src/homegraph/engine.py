from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .chat.answer import ModelAnswer, answer_question
from .chat.llm import Completer
from .graph.build import build_graph
from .graph.connections import find_connections
from .graph.context import graph_to_context
from .graph.load import LoadOptions, load_household
from .graph.models import HouseholdGraph
from .graph.query import find_relevant_nodes
from .store.base import RecordStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AskResult:
    answer: str
    connections: list[str] = field(default_factory=list)
    sources: list[dict[str, str]] = field(default_factory=list)
    graph_summary: str = ""
    # "model" or "rules"
    answered_by: str = "rules"


def build_household_graph(
    *,
    store: RecordStore,
    household_id: str,
    options: LoadOptions | None = None,
    now: datetime | None = None,
) -> HouseholdGraph:
    """Load the household's records and build a fresh graph.

    Raises DependencyUnavailable when the store fails.
    """
    records = load_household(store=store, household_id=household_id, options=options, now=now)
    return build_graph(records)


def ask_household(
    *,
    store: RecordStore,
    household_id: str,
    question: str,
    completer: Completer | None = None,
    options: LoadOptions | None = None,
    now: datetime | None = None,
) -> AskResult:
    """Answer a free-text question about one household.

    `completer` is the configured language model, or None to answer from
    the rules only. The question is assumed to be validated by the caller.
    """
    now = now or datetime.now()
    logger.info("Ask query for household %s (question length %d)", household_id, len(question))

    graph = build_household_graph(store=store, household_id=household_id, options=options, now=now)
    relevant = find_relevant_nodes(graph, question)
    connections = find_connections(graph, today=now.date())

    ans = answer_question(
        question=question,
        context=graph_to_context(graph) if completer is not None else "",
        relevant=relevant,
        completer=completer,
    )

    return AskResult(
        answer=ans.text,
        connections=connections,
        sources=[{"type": n.type, "label": n.label, "id": n.id} for n in relevant],
        graph_summary=graph.summary,
        answered_by="model" if isinstance(ans, ModelAnswer) else "rules",
    )
