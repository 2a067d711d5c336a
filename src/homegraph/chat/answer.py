from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar, Union

from ..graph.models import GraphNode
from .llm import AnswerDegraded, Completer
from .rules import rule_based_answer


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a household knowledge assistant for a concierge service. "
    "You have access to the household's knowledge graph.\n"
    "\n"
    "Rules:\n"
    "- Answer concisely and helpfully using ONLY the data provided.\n"
    "- If the data doesn't contain enough information to answer, say so honestly.\n"
    "- Format dates in a friendly way.\n"
    "- Mention specific names, vendors, amounts, and dates when available.\n"
    "- Keep answers under 200 words."
)

MAX_TOKENS = 512
TEMPERATURE = 0.3


@dataclass(frozen=True)
class ModelAnswer:
    text: str


@dataclass(frozen=True)
class FallbackAnswer:
    text: str
    # Why the model was not used; None when no model is configured.
    reason: str | None = None


Answer = Union[ModelAnswer, FallbackAnswer]

T = TypeVar("T")
U = TypeVar("U")


def recover(primary: Callable[[], T], fallback: Callable[[Exception], U]) -> T | U:
    """Run `primary`; on any error hand the error to `fallback` and return its result."""
    try:
        return primary()
    except Exception as e:
        return fallback(e)


def build_user_prompt(context: str, question: str) -> str:
    return f"Here is the household knowledge graph:\n\n{context}\n\nQuestion: {question}"


def _ask_model(completer: Completer, *, context: str, question: str) -> ModelAnswer:
    text = completer.complete(
        SYSTEM_PROMPT,
        build_user_prompt(context, question),
        max_tokens=MAX_TOKENS,
        temperature=TEMPERATURE,
    )
    if not isinstance(text, str) or not text.strip():
        raise AnswerDegraded("Model returned an empty answer")
    return ModelAnswer(text=text.strip())


def answer_question(
    *,
    question: str,
    context: str,
    relevant: Sequence[GraphNode],
    completer: Completer | None = None,
) -> Answer:
    """Model answer when a completer is available, rule-based answer otherwise.

    The model gets one attempt. Whatever goes wrong with it is logged and
    answered from the rules instead.
    """
    if completer is None:
        return FallbackAnswer(text=rule_based_answer(question, relevant))

    def degrade(err: Exception) -> FallbackAnswer:
        logger.warning("Model answer failed, using rule-based fallback: %s", err)
        return FallbackAnswer(text=rule_based_answer(question, relevant), reason=str(err) or type(err).__name__)

    return recover(lambda: _ask_model(completer, context=context, question=question), degrade)
