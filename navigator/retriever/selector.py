"""
Candidate selection over a scored catalog.
- Positive scores only, stable sort (ties keep catalog order)
- Crisis resources hidden below HIGH urgency, unless that would leave nothing
- Clarify only when the ranking is weak AND close AND the classifier asked for it
- Hard bound on the number of returned resources
- The empty-result recovery is chosen by the caller, never implied
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from ..catalog.loader import ResourceRecord
from ..models import Disposition, RequestContext, Urgency
from .scorer import RelevanceScorer, is_crisis_resource
from .text import tokenize

logger = logging.getLogger(__name__)


class EmptyResultPolicy(str, Enum):
    FALLBACK_FIRST_N = "fallback"
    NO_MATCH = "no_match"

    @classmethod
    def parse(cls, value: str) -> "EmptyResultPolicy":
        v = (value or "").lower().strip()
        if v in {"fallback", "fallback_first_n"}:
            return cls.FALLBACK_FIRST_N
        return cls.NO_MATCH


@dataclass(frozen=True)
class SelectionPolicy:
    max_results: int = 3
    weak_threshold: int = 8
    close_gap: int = 2


@dataclass(frozen=True)
class ScoredCandidate:
    record: ResourceRecord
    score: int


@dataclass(frozen=True)
class Selection:
    disposition: Disposition
    candidates: Tuple[ScoredCandidate, ...] = ()
    ranked_count: int = 0
    fallback: bool = False
    clarifying_question: str = ""

    @property
    def records(self) -> List[ResourceRecord]:
        return [c.record for c in self.candidates]


class CandidateSelector:
    def __init__(self, scorer: RelevanceScorer | None = None, policy: SelectionPolicy | None = None):
        self.scorer = scorer or RelevanceScorer()
        self.policy = policy or SelectionPolicy()

    def rank(self, catalog: Sequence[ResourceRecord], context: RequestContext) -> List[ScoredCandidate]:
        """Every positively scored record, best first; ties stay in catalog order."""
        request_tokens = set(tokenize(context.message))
        tag_tokens = set(tokenize(" ".join(context.need_tags)))

        scored = []
        for record in catalog:
            s = self.scorer.score(record, request_tokens, tag_tokens, context.urgency, context.demographics)
            if s > 0:
                scored.append(ScoredCandidate(record, s))

        # list.sort is stable
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored

    def apply_crisis_filter(self, ranked: List[ScoredCandidate], urgency: Urgency) -> List[ScoredCandidate]:
        if urgency == Urgency.HIGH:
            return ranked
        crisis_policy = self.scorer.policy
        filtered = [c for c in ranked if not is_crisis_resource(c.record, crisis_policy)]
        return filtered or ranked

    def is_ambiguous(self, ranked: List[ScoredCandidate]) -> bool:
        """Weak top score and a near-tie for first place."""
        if len(ranked) < 2:
            return False
        top, second = ranked[0].score, ranked[1].score
        weak = top < self.policy.weak_threshold
        close = (top - second) <= self.policy.close_gap
        return weak and close

    def select(
        self,
        catalog: Sequence[ResourceRecord],
        context: RequestContext,
        *,
        empty_policy: EmptyResultPolicy,
    ) -> Selection:
        ranked = self.apply_crisis_filter(self.rank(catalog, context), context.urgency)
        limit = self.policy.max_results

        if not ranked:
            if empty_policy == EmptyResultPolicy.FALLBACK_FIRST_N:
                fallback = tuple(ScoredCandidate(r, 0) for r in list(catalog)[:limit])
                logger.info("No positive scores; falling back to first %d catalog records", len(fallback))
                return Selection(Disposition.NO_MATCH, fallback, 0, fallback=True)
            return Selection(Disposition.NO_MATCH)

        if context.needs_clarification and self.is_ambiguous(ranked):
            return Selection(
                Disposition.CLARIFY,
                ranked_count=len(ranked),
                clarifying_question=context.clarifying_question,
            )

        return Selection(Disposition.RECOMMEND, tuple(ranked[:limit]), len(ranked))
