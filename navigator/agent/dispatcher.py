from __future__ import annotations
import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List

from ..answer.compose import format_text, render_template, safety_resources
from ..catalog.loader import CatalogCache, CatalogLoader
from ..config import MAX_MESSAGE_LENGTH, Settings, load_settings
from ..errors import FetchFailure, NavigatorError
from ..models import Disposition, RequestContext, sanitize_demographics
from ..retriever.scorer import signalled_demographics
from ..retriever.selector import CandidateSelector, EmptyResultPolicy, Selection
from ..router.safety_router import SafetyGate
from ..tools.message_kind import MessageKind, MessageKindDetector
from .collaborators import (
    FixedListener,
    IntentClassifier,
    Listener,
    LLMIntentClassifier,
    LLMListener,
    LLMTextRewriter,
    RuleIntentClassifier,
    TemplateRewriter,
    TextRewriter,
)
from .strands_backend import StrandsBackend

logger = logging.getLogger(__name__)

# Shared across Navigator instances in one process, like the sheet itself
_PROCESS_CACHE = CatalogCache()


def _response(status: int, disposition: Disposition, intro: str, resources: List[Dict] | None = None,
              **extra: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "status": status,
        "mode": disposition.value,
        "intro": intro,
        "resources": resources or [],
    }
    out.update(extra)
    return out


# ============================================================
# Navigator
# ============================================================
class Navigator:
    """
    One request in, one terminal disposition out:
        SAFETY | CONVERSATION | CLARIFY | NO_MATCH | RECOMMEND | ERROR
    Nothing loops; nothing is retried inside a request.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        loader: CatalogLoader | None = None,
        gate: SafetyGate | None = None,
        detector: MessageKindDetector | None = None,
        selector: CandidateSelector | None = None,
        classifier: IntentClassifier | None = None,
        rewriter: TextRewriter | None = None,
        listener: Listener | None = None,
        llm_fn=None,
        force_mode: str | None = None,
        empty_policy: EmptyResultPolicy | None = None,
    ):
        self.settings = settings or load_settings()
        self.mode = (force_mode or self.settings.classifier_mode or "RULE").upper().strip()

        self.gate = gate or SafetyGate()
        self.detector = detector or MessageKindDetector()
        self.selector = selector or CandidateSelector()
        self.empty_policy = empty_policy or EmptyResultPolicy.parse(self.settings.empty_policy)
        self._loader = loader

        if self.mode == "LLM" and llm_fn is None:
            llm_fn = self._strands_fn()
            if llm_fn is None:
                logger.warning("LLM mode requested but Strands backend is unavailable; using rule mode")
                self.mode = "RULE"

        if self.mode == "LLM":
            self.classifier = classifier or LLMIntentClassifier(llm_fn)
            self.rewriter = rewriter or LLMTextRewriter(llm_fn)
            self.listener = listener or LLMListener(llm_fn)
        else:
            self.classifier = classifier or RuleIntentClassifier()
            self.rewriter = rewriter or TemplateRewriter()
            self.listener = listener or FixedListener()
        self._fallback_writer = TemplateRewriter()

    def _strands_fn(self):
        backend = StrandsBackend(
            name="navigator",
            system_prompt="You support teens looking for help. Always answer with the JSON asked for.",
            timeout_seconds=self.settings.strands_timeout_seconds,
        )
        return backend.as_llm_fn() if backend.enabled else None

    @property
    def loader(self) -> CatalogLoader:
        if self._loader is None:
            if not self.settings.sheet_csv_url:
                raise NavigatorError("Missing environment variables")
            _PROCESS_CACHE.ttl = self.settings.catalog_ttl_seconds
            self._loader = CatalogLoader(
                self.settings.sheet_csv_url,
                cache=_PROCESS_CACHE,
                timeout=self.settings.fetch_timeout_seconds,
            )
        return self._loader

    # ---------------------------------------------------------
    # Entry points
    # ---------------------------------------------------------
    def handle(self, body: Dict[str, Any] | None) -> Dict[str, Any]:
        """JSON-body entry: {"message": str, "history": [...], "demographics": str | [str]}."""
        body = body if isinstance(body, dict) else {}
        demographics = sanitize_demographics(body.get("demographics"))
        return self.respond(str(body.get("message") or ""), body.get("history"), demographics=demographics)

    def respond(self, message: str, history: Any = None, *, demographics: Iterable[str] = ()) -> Dict[str, Any]:
        trace: List[Dict[str, Any]] = []

        raw = str(message or "").strip()
        if not raw:
            return {"status": 400, "error": "Missing message", "trace": trace}

        # 1) SAFETY GATE (full text, before length checks and any network access)
        gate = self.gate.check(raw)
        trace.append({"event": "safety", "triggered": gate.triggered})
        if gate.triggered:
            logger.warning("Safety gate triggered; returning fixed crisis resources")
            return self._finish(
                _response(200, Disposition.SAFETY, render_template("safety_intro"), safety_resources()), trace,
            )

        if len(raw) > MAX_MESSAGE_LENGTH:
            return {"status": 400, "error": "Message too long", "trace": trace}

        ctx = RequestContext.build(raw, history, demographics=demographics)

        # 2) MESSAGE KIND
        kind = self.detector.classify(ctx.message)
        trace.append({"event": "kind", "kind": kind.value})
        if kind == MessageKind.GREETING:
            return self._finish(_response(200, Disposition.CONVERSATION, render_template("greeting")), trace)
        if kind == MessageKind.OUT_OF_SCOPE:
            return self._finish(_response(200, Disposition.CONVERSATION, render_template("out_of_scope")), trace)
        if kind == MessageKind.AMBIGUOUS:
            reply = self.listener.reply(ctx.message, ctx.history)
            return self._finish(_response(200, Disposition.CONVERSATION, reply), trace)

        # 3) RESOURCES
        user_text = " ".join([t.content for t in ctx.history if t.role == "user"] + [ctx.message])
        signalled = signalled_demographics(user_text, self.selector.scorer.policy)
        if signalled:
            ctx = replace(ctx, demographics=ctx.demographics | signalled)

        try:
            return self._finish(self._recommend(ctx, trace), trace)
        except NavigatorError as e:
            if isinstance(e, FetchFailure):
                logger.error("Catalog fetch failed: status=%s body=%r", e.status, e.body)
            else:
                logger.exception("navigate_error")
            trace.append({"event": "error", "type": type(e).__name__, "config": e.is_config_error})
            return self._finish(_response(
                500, Disposition.ERROR, render_template("error"), detail=render_template("error_detail"),
            ), trace)

    # ---------------------------------------------------------
    # Pipeline
    # ---------------------------------------------------------
    def _recommend(self, ctx: RequestContext, trace: List[Dict[str, Any]]) -> Dict[str, Any]:
        catalog = self.loader.load()
        trace.append({"event": "catalog", "records": len(catalog)})

        tags = self.classifier.classify(ctx.message, ctx.history, catalog)
        ctx = ctx.with_intent(tags)
        trace.append({
            "event": "classify",
            "need_tags": list(tags.need_tags),
            "urgency": tags.urgency.value,
            "needs_clarification": tags.needs_clarification,
        })

        selection = self.selector.select(catalog, ctx, empty_policy=self.empty_policy)
        trace.append({
            "event": "select",
            "disposition": selection.disposition.value,
            "ranked": selection.ranked_count,
            "ids": [c.record.id for c in selection.candidates],
            "scores": [c.score for c in selection.candidates],
        })

        if selection.disposition == Disposition.CLARIFY:
            question = selection.clarifying_question or render_template("clarify")
            return _response(200, Disposition.CLARIFY, question, question=question)

        if selection.disposition == Disposition.NO_MATCH:
            return self._no_match(selection)

        # Only the selected records ever reach the rewriter
        rewrite = self.rewriter.rewrite(selection.records, ctx.message, ctx.history)
        resources = [i.as_dict() for i in rewrite.items]
        return _response(200, Disposition.RECOMMEND, rewrite.intro, resources)

    def _no_match(self, selection: Selection) -> Dict[str, Any]:
        if not selection.fallback:
            return _response(200, Disposition.NO_MATCH, render_template("no_match"))
        listed = self._fallback_writer.rewrite(selection.records, "", ())
        resources = [i.as_dict() for i in listed.items]
        return _response(200, Disposition.NO_MATCH, render_template("no_match_fallback"), resources)

    @staticmethod
    def _finish(out: Dict[str, Any], trace: List[Dict[str, Any]]) -> Dict[str, Any]:
        out["trace"] = trace
        out["text"] = format_text(out.get("intro", ""), out.get("resources", []))
        return out
