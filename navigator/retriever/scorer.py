from __future__ import annotations
# Token-overlap relevance scoring + mission boost + crisis/demographic policy adjustments

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Collection, Dict, FrozenSet, List, Optional, Pattern, Sequence, Tuple

from ..catalog.loader import ResourceRecord
from ..models import Urgency
from .text import tokenize

# Word boundary that avoids matching inside tokens; {p} will be replaced by the pattern
BOUNDARY_WORD = r"(?<![A-Za-z0-9_]){p}(?![A-Za-z0-9_])"

DEFAULT_MISSION_KEYWORDS = ("father", "dad", "fatherless")
DEFAULT_CRISIS_TERMS = ("crisis", "suicide", "self-harm", "hotline", "988")

# label -> terms that scope a resource to that group
DEFAULT_DEMOGRAPHIC_TERMS: Dict[str, Tuple[str, ...]] = {
    "female": ("girl", "girls", "young women", "women", "daughters", "sisterhood"),
    "male": ("boy", "boys", "young men", "men", "sons", "brotherhood"),
}

# label -> first-person phrases that signal membership
DEFAULT_DEMOGRAPHIC_SIGNALS: Dict[str, Tuple[str, ...]] = {
    "female": ("i'm a girl", "i am a girl", "im a girl", "as a girl", "i'm a daughter", "young woman"),
    "male": ("i'm a boy", "i am a boy", "im a boy", "as a boy", "i'm a guy", "as a guy", "young man"),
}


@lru_cache(maxsize=64)
def _compile_terms(terms: Tuple[str, ...]) -> Tuple[Pattern, ...]:
    """Compile terms into boundary-aware regexes, allowing flexible whitespace."""
    pats: List[Pattern] = []
    for t in terms:
        t = (t or "").strip()
        if not t:
            continue
        esc = re.escape(t).replace(r"\ ", r"\s+")
        pats.append(re.compile(BOUNDARY_WORD.format(p=esc), flags=re.IGNORECASE))
    return tuple(pats)


def mentions_any(text: str, terms: Sequence[str]) -> bool:
    """Whole-word match of any term; "made" does not mention "mad"."""
    return any(p.search(text or "") for p in _compile_terms(tuple(terms)))


@dataclass(frozen=True)
class ScoringPolicy:
    request_weight: int = 3
    tag_weight: int = 5
    mission_bonus: int = 6
    crisis_bonus: int = 10
    demographic_penalty: int = 10
    mission_keywords: Tuple[str, ...] = DEFAULT_MISSION_KEYWORDS
    crisis_terms: Tuple[str, ...] = DEFAULT_CRISIS_TERMS
    demographic_terms: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_DEMOGRAPHIC_TERMS)
    )
    demographic_signals: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_DEMOGRAPHIC_SIGNALS)
    )

    def __post_init__(self) -> None:
        if self.tag_weight < self.request_weight:
            raise ValueError("tag_weight must be >= request_weight")


DEFAULT_POLICY = ScoringPolicy()


# -------------------------------
# Policy predicates
# -------------------------------
def is_crisis_resource(record: ResourceRecord, policy: ScoringPolicy = DEFAULT_POLICY) -> bool:
    t = f"{record.title} {record.description} {record.when_to_use}".lower()
    return any(term in t for term in policy.crisis_terms)


def targeted_demographic(record: ResourceRecord, policy: ScoringPolicy = DEFAULT_POLICY) -> Optional[str]:
    """The single group a record is scoped to, or None (untargeted or mixed)."""
    text = f"{record.title} {record.description} {record.best_for}"
    hits = [
        label for label, terms in policy.demographic_terms.items()
        if any(p.search(text) for p in _compile_terms(tuple(terms)))
    ]
    return hits[0] if len(hits) == 1 else None


def is_demographic_targeted(record: ResourceRecord, policy: ScoringPolicy = DEFAULT_POLICY) -> bool:
    return targeted_demographic(record, policy) is not None


def signalled_demographics(text: str, policy: ScoringPolicy = DEFAULT_POLICY) -> FrozenSet[str]:
    t = (text or "").lower().replace("’", "'")
    return frozenset(
        label for label, phrases in policy.demographic_signals.items()
        if any(p.search(t) for p in _compile_terms(tuple(phrases)))
    )


def has_mission_connection(record: ResourceRecord, policy: ScoringPolicy = DEFAULT_POLICY) -> bool:
    t = (record.fatherlessness_connection or "").lower()
    return any(k in t for k in policy.mission_keywords)


# -------------------------------
# Scorer
# -------------------------------
class RelevanceScorer:
    def __init__(self, policy: ScoringPolicy | None = None):
        self.policy = policy or DEFAULT_POLICY

    def haystack(self, record: ResourceRecord) -> List[str]:
        return tokenize(
            f"{record.title} {record.description} {record.best_for} "
            f"{record.fatherlessness_connection} {record.when_to_use}"
        )

    def score(
        self,
        record: ResourceRecord,
        request_tokens: Collection[str],
        tag_tokens: Collection[str],
        urgency: Urgency,
        demographics: Collection[str] = frozenset(),
    ) -> int:
        p = self.policy
        req = set(request_tokens)
        tags = set(tag_tokens)

        score = 0
        for w in self.haystack(record):
            if w in req:
                score += p.request_weight
            if w in tags:
                score += p.tag_weight

        if has_mission_connection(record, p):
            score += p.mission_bonus

        if urgency == Urgency.HIGH and is_crisis_resource(record, p):
            score += p.crisis_bonus

        group = targeted_demographic(record, p)
        if group is not None and group not in demographics:
            score -= p.demographic_penalty

        return score
