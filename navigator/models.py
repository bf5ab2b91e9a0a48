# navigator/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Tuple

from .config import MAX_HISTORY_ITEMS, MAX_MESSAGE_LENGTH


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Any) -> "Urgency":
        """Unknown or missing values are treated as LOW."""
        try:
            return cls(str(value or "").lower().strip())
        except ValueError:
            return cls.LOW


class Disposition(str, Enum):
    SAFETY = "safety"
    CLARIFY = "clarify"
    NO_MATCH = "no_match"
    RECOMMEND = "recommendations"
    CONVERSATION = "conversation"
    ERROR = "error"


@dataclass(frozen=True)
class HistoryTurn:
    role: str       # "user" | "assistant"
    content: str

    def as_message(self) -> dict:
        return {"role": self.role, "content": self.content}


def sanitize_history(history: Any) -> Tuple[HistoryTurn, ...]:
    """Drop malformed turns, clip content, keep the most recent MAX_HISTORY_ITEMS."""
    if not isinstance(history, (list, tuple)):
        return ()
    turns: List[HistoryTurn] = []
    for m in history:
        if not isinstance(m, dict):
            continue
        role = m.get("role")
        content = m.get("content")
        if role not in ("user", "assistant") or not isinstance(content, str):
            continue
        turns.append(HistoryTurn(role=role, content=content[:MAX_MESSAGE_LENGTH]))
    return tuple(turns[-MAX_HISTORY_ITEMS:])


def sanitize_demographics(value: Any) -> Tuple[str, ...]:
    """A single string or a list of strings; anything else is ignored."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set, frozenset)):
        return ()
    return tuple(v.lower().strip() for v in value if isinstance(v, str) and v.strip())


@dataclass(frozen=True)
class IntentTags:
    need_tags: Tuple[str, ...] = ()
    urgency: Urgency = Urgency.LOW
    needs_clarification: bool = False
    clarifying_question: str = ""
    notes: str = ""


@dataclass(frozen=True)
class RequestContext:
    message: str
    history: Tuple[HistoryTurn, ...] = ()
    need_tags: Tuple[str, ...] = ()
    urgency: Urgency = Urgency.LOW
    needs_clarification: bool = False
    clarifying_question: str = ""
    demographics: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        message: str,
        history: Any = None,
        *,
        demographics: Iterable[str] = (),
    ) -> "RequestContext":
        """Caps are applied here, before anything else sees the input."""
        return cls(
            message=str(message or "").strip()[:MAX_MESSAGE_LENGTH],
            history=sanitize_history(history),
            demographics=frozenset(sanitize_demographics(demographics)),
        )

    def with_intent(self, tags: IntentTags) -> "RequestContext":
        return RequestContext(
            message=self.message,
            history=self.history,
            need_tags=tuple(tags.need_tags),
            urgency=tags.urgency,
            needs_clarification=tags.needs_clarification,
            clarifying_question=tags.clarifying_question,
            demographics=self.demographics,
        )
