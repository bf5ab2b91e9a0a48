"""
Model-facing collaborators, each behind one narrow method:
- IntentClassifier.classify(message, history, resources) -> IntentTags
- TextRewriter.rewrite(resources, message, history)       -> Rewrite
- Listener.reply(message, history)                        -> str

LLM versions take an llm_fn(prompt) -> str | None, like the planner did, so
tests pass plain functions. Rule/template versions need no model at all.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from ..answer.compose import build_how_to_start, clean_steps, render_template, why_from_record
from ..catalog.loader import ResourceRecord
from ..errors import ClassifierFailure, RewriterFailure
from ..models import HistoryTurn, IntentTags, Urgency
from ..retriever.scorer import mentions_any
from .strands_backend import LLMFn

logger = logging.getLogger(__name__)

MAX_REWRITTEN = 3

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _truthy(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.strip().lower() == "true")


def _parse_json_object(raw: Optional[str]) -> Dict[str, Any]:
    if raw is None:
        raise ValueError("no response from model")
    text = _FENCE_RE.sub("", str(raw).strip())
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("model must return a JSON object")
    return data


def _history_block(history: Sequence[HistoryTurn]) -> str:
    if not history:
        return "(none)"
    return "\n".join(f"{t.role}: {t.content}" for t in history)


# ============================================================
# Intent classification
# ============================================================
class IntentClassifier(Protocol):
    def classify(
        self, message: str, history: Sequence[HistoryTurn], resources: Sequence[ResourceRecord]
    ) -> IntentTags: ...


class LLMIntentClassifier:
    """
    Create with:
        classifier = LLMIntentClassifier(llm_fn=my_model_fn)
    Where llm_fn(prompt) returns a JSON object string like:
        '{"need_tags": ["grief"], "urgency": "low", "needs_clarification": false}'
    """

    SYSTEM_PROMPT = (
        "You are an expert at understanding what kind of support a teen needs. "
        "Output JSON only: { \"need_tags\": string[], \"urgency\": \"low|medium|high\", "
        "\"needs_clarification\": boolean, \"clarifying_question\": string, \"notes\": string }"
    )

    def __init__(self, llm_fn: LLMFn | None):
        self.llm_fn = llm_fn

    def _build_prompt(self, message: str, history: Sequence[HistoryTurn], resources: Sequence[ResourceRecord]) -> str:
        titles = ", ".join(r.title for r in resources[:50])
        return (
            f"{self.SYSTEM_PROMPT}\n\n"
            "Set needs_clarification=true only if you cannot tell what kind of support they want; "
            "then give ONE short clarifying_question.\n"
            f"Available resource titles: {titles or '(none)'}\n\n"
            f"Conversation so far:\n{_history_block(history)}\n\n"
            f"user: {message}\n"
        )

    def classify(self, message, history, resources) -> IntentTags:
        if not self.llm_fn:
            raise ClassifierFailure("No LLM function configured")

        raw = self.llm_fn(self._build_prompt(message, history, resources))
        try:
            data = _parse_json_object(raw)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise ClassifierFailure(f"Invalid classifier output: {e}") from e

        tags = data.get("need_tags") or []
        if isinstance(tags, str):
            tags = [tags]
        if not isinstance(tags, list):
            raise ClassifierFailure("need_tags must be a list")

        return IntentTags(
            need_tags=tuple(str(t).strip() for t in tags if str(t).strip()),
            urgency=Urgency.parse(data.get("urgency")),
            needs_clarification=_truthy(data.get("needs_clarification")),
            clarifying_question=str(data.get("clarifying_question") or "").strip(),
            notes=str(data.get("notes") or "").strip(),
        )


# topic tag -> trigger words
RULE_TOPICS: Dict[str, Tuple[str, ...]] = {
    "grief": ("grief", "grieving", "loss", "lost", "died", "death", "passed away", "funeral"),
    "father absence": ("dad", "father", "fatherless", "absent", "left us", "never met"),
    "mentoring": ("mentor", "role model", "someone to talk", "big brother", "big sister"),
    "anger": ("angry", "anger", "mad", "rage"),
    "anxiety": ("anxious", "anxiety", "panic", "worried", "stress", "stressed", "overwhelmed"),
    "depression": ("sad", "depressed", "depression", "empty", "lonely", "hopeless"),
    "school": ("school", "grades", "class", "teacher", "homework", "college"),
    "family": ("mom", "family", "home", "parents", "siblings", "stepdad"),
    "peer support": ("group", "peers", "others like me", "friends", "community"),
    "counseling": ("therapy", "therapist", "counselor", "counseling", "counselling"),
}
RULE_HIGH = ("hopeless", "can't go on", "cant go on", "no way out", "give up on everything", "scared for my life")
RULE_MEDIUM = ("struggling", "overwhelmed", "can't cope", "cant cope", "really bad", "falling apart", "panic")


class RuleIntentClassifier:
    """Keyword classifier used when the model backend is off. Deterministic."""

    def __init__(self, topics: Dict[str, Tuple[str, ...]] | None = None):
        self.topics = topics or RULE_TOPICS

    def classify(self, message, history, resources) -> IntentTags:
        recent_user = " ".join(t.content for t in history if t.role == "user")
        t = f"{recent_user} {message}".lower()

        tags = [tag for tag, words in self.topics.items() if mentions_any(t, words)]
        if mentions_any(t, RULE_HIGH):
            urgency = Urgency.HIGH
        elif mentions_any(t, RULE_MEDIUM):
            urgency = Urgency.MEDIUM
        else:
            urgency = Urgency.LOW

        unclear = not tags
        return IntentTags(
            need_tags=tuple(tags),
            urgency=urgency,
            needs_clarification=unclear,
            clarifying_question=render_template("clarify") if unclear else "",
            notes="rule",
        )


# ============================================================
# Rewriting
# ============================================================
@dataclass(frozen=True)
class RewrittenResource:
    title: str
    url: str
    why: str
    how_to_start: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "url": self.url, "why": self.why, "how_to_start": list(self.how_to_start)}


@dataclass(frozen=True)
class Rewrite:
    intro: str
    items: Tuple[RewrittenResource, ...] = field(default_factory=tuple)


class TextRewriter(Protocol):
    def rewrite(
        self, resources: Sequence[ResourceRecord], message: str, history: Sequence[HistoryTurn]
    ) -> Rewrite: ...


class TemplateRewriter:
    """No model: 'why' comes straight from the sheet columns."""

    def rewrite(self, resources, message, history) -> Rewrite:
        items = tuple(
            RewrittenResource(r.title, r.url, why_from_record(r), tuple(build_how_to_start(r)))
            for r in list(resources)[:MAX_REWRITTEN]
        )
        return Rewrite(intro=render_template("recommend_intro"), items=items)


class LLMTextRewriter:
    SYSTEM_PROMPT = (
        "You help teens find resources. You ONLY use the provided resources. Output JSON: "
        "{ \"intro\": string, \"resources\": [{ \"title\": string, \"url\": string, \"why\": string, "
        "\"how_to_start\": string[] }] }\n\n"
        "Rules:\n"
        "- Return 1-3 resources\n"
        "- intro: brief, warm intro (2 sentences)\n"
        "- why: 2-3 sentences, grounded in the resource\n"
        "- how_to_start: only Call, Text, Form, Walk-in, Referral"
    )

    def __init__(self, llm_fn: LLMFn | None):
        self.llm_fn = llm_fn

    def _build_prompt(self, resources: Sequence[ResourceRecord], message: str, history) -> str:
        payload = json.dumps([r.as_writer_dict() for r in resources], ensure_ascii=False)
        return (
            f"{self.SYSTEM_PROMPT}\n\n"
            f"Conversation so far:\n{_history_block(history)}\n\n"
            f"User asked for help with: \"{message}\"\n\nResources: {payload}"
        )

    def rewrite(self, resources, message, history) -> Rewrite:
        if not self.llm_fn:
            raise RewriterFailure("No LLM function configured")
        if not resources:
            raise RewriterFailure("Nothing to rewrite")

        raw = self.llm_fn(self._build_prompt(resources, message, history))
        try:
            data = _parse_json_object(raw)
        except ValueError as e:
            raise RewriterFailure(f"Invalid rewriter output: {e}") from e

        out = data.get("resources")
        if not isinstance(out, list):
            raise RewriterFailure("resources must be a list")

        by_url = {r.url: r for r in resources}
        by_title = {r.title.lower(): r for r in resources}
        items: List[RewrittenResource] = []
        for x in out:
            if not isinstance(x, dict):
                continue
            url = str(x.get("url") or "").strip()
            title = str(x.get("title") or "").strip()
            # Only resources we handed over may come back
            record = by_url.get(url) or by_title.get(title.lower())
            if record is None:
                logger.warning("Rewriter returned a resource outside the selection; dropped")
                continue
            if any(i.url == record.url for i in items):
                continue
            steps = clean_steps(x.get("how_to_start")) or build_how_to_start(record)
            why = str(x.get("why") or "").strip() or why_from_record(record)
            items.append(RewrittenResource(title or record.title, record.url, why, tuple(steps)))
            if len(items) >= MAX_REWRITTEN:
                break

        if not items:
            raise RewriterFailure("Rewriter returned no usable resources")

        intro = str(data.get("intro") or "").strip() or render_template("recommend_intro")
        return Rewrite(intro=intro, items=tuple(items))


# ============================================================
# Listener (conversation mode)
# ============================================================
class Listener(Protocol):
    def reply(self, message: str, history: Sequence[HistoryTurn]) -> str: ...


class FixedListener:
    def reply(self, message, history) -> str:
        return render_template("listener")


class LLMListener:
    SYSTEM_PROMPT = (
        "You are a warm, empathetic listener for fatherless teens. You are having a real "
        "conversation, not giving advice or therapy. Ask one genuine follow-up question. "
        "Only mention resources if they explicitly ask. Keep it to 2-4 sentences.\n"
        "Output JSON only: { \"response\": string }"
    )

    def __init__(self, llm_fn: LLMFn | None):
        self.llm_fn = llm_fn

    def reply(self, message, history) -> str:
        if not self.llm_fn:
            return render_template("listener")
        prompt = (
            f"{self.SYSTEM_PROMPT}\n\nConversation so far:\n{_history_block(history)}\n\nuser: {message}\n"
        )
        try:
            data = _parse_json_object(self.llm_fn(prompt))
        except ValueError as e:
            logger.warning("Listener output unusable (%s); using fixed reply", e)
            return render_template("listener")
        text = str(data.get("response") or "").strip()
        return text or render_template("listener")
