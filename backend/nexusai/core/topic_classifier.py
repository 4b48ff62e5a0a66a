"""
Topic Classifier - keyword-based classification of chat text.

Two independent schemes live here:

- ``classify_topic``: the 4-way tag (chelsea / frontend / general / mixed)
  stored on user messages and recomputed for whole sessions.
- ``evaluate_scope``: the coarser in-scope / out-of-scope gate used by the
  chat pipeline to decide whether to answer at all. Its keyword lists are
  broader (they include generic words such as "player", "code", "style").

Both use plain case-insensitive substring containment, so "react" matches
inside "reaction". The keyword lists differ deliberately; keep them apart.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    """Topic tag of a message or a whole session."""
    CHELSEA = "chelsea"
    FRONTEND = "frontend"
    GENERAL = "general"
    MIXED = "mixed"


# Tag used on assistant-authored messages instead of a computed topic
ASSISTANT_TOPIC = "assistant"

CHELSEA_TOPIC_TERMS: Tuple[str, ...] = (
    'chelsea', 'premier league', 'stamford bridge', 'pochettino', 'mauricio',
    'cfc', 'enzo', 'fernández', 'fernandez', 'palmer', 'caicedo', 'reece james',
)
FRONTEND_TOPIC_TERMS: Tuple[str, ...] = (
    'react', 'javascript', 'tailwind', 'css', 'html', 'gsap',
)

CHELSEA_SCOPE_TERMS: Tuple[str, ...] = (
    'chelsea', 'premier league', 'stamford bridge', 'pochettino',
    'player', 'match', 'transfer', 'goal', 'league', 'football',
    'soccer', 'blues', 'cfc', 'mauricio', 'enzo', 'palmer', 'caicedo',
)
FRONTEND_SCOPE_TERMS: Tuple[str, ...] = (
    'react', 'javascript', 'tailwind', 'css', 'html', 'gsap',
    'frontend', 'web development', 'programming', 'code',
    'component', 'hook', 'state', 'props', 'animation', 'style',
)


def _contains_any(text_lower: str, terms: Iterable[str]) -> bool:
    return any(term in text_lower for term in terms)


def classify_topic(text: str) -> Topic:
    """
    Classify text into one of the four topic tags.

    Args:
        text: Free text (a single message or a concatenated history)

    Returns:
        Topic: MIXED if both keyword sets match, CHELSEA or FRONTEND if only
        one does, GENERAL otherwise
    """
    text_lower = (text or "").lower()
    has_chelsea = _contains_any(text_lower, CHELSEA_TOPIC_TERMS)
    has_frontend = _contains_any(text_lower, FRONTEND_TOPIC_TERMS)

    if has_chelsea and has_frontend:
        return Topic.MIXED
    if has_chelsea:
        return Topic.CHELSEA
    if has_frontend:
        return Topic.FRONTEND
    return Topic.GENERAL


@dataclass(frozen=True)
class ScopeCheck:
    """Result of the in-scope gate."""
    chelsea_related: bool
    frontend_related: bool

    @property
    def in_scope(self) -> bool:
        return self.chelsea_related or self.frontend_related

    @property
    def topic_hint(self) -> Topic:
        """Topic passed to the answer generator; Chelsea wins when both match."""
        if self.chelsea_related:
            return Topic.CHELSEA
        if self.frontend_related:
            return Topic.FRONTEND
        return Topic.GENERAL


def evaluate_scope(text: str) -> ScopeCheck:
    """Run the broad keyword gate over a user message."""
    text_lower = (text or "").lower()
    check = ScopeCheck(
        chelsea_related=_contains_any(text_lower, CHELSEA_SCOPE_TERMS),
        frontend_related=_contains_any(text_lower, FRONTEND_SCOPE_TERMS),
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Scope check: chelsea={check.chelsea_related}, "
            f"frontend={check.frontend_related}"
        )
    return check


def is_in_scope(text: str) -> bool:
    """Binary in-scope decision for a user message."""
    return evaluate_scope(text).in_scope
