# navigator/tools/message_kind.py
"""
MessageKindDetector
- Decides whether a (non-crisis) message is asking for resources at all.
- Returns one explicit variant instead of a cascade of booleans:
    GREETING          "hi", "hey there"
    RESOURCE_REQUEST  "can you recommend a support group?"
    OUT_OF_SCOPE      homework, coding, weather ...
    AMBIGUOUS         everything else (sharing, venting) -> conversation mode
- Pure Python, no external deps, deterministic.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable


class MessageKind(str, Enum):
    GREETING = "greeting"
    RESOURCE_REQUEST = "resource_request"
    OUT_OF_SCOPE = "out_of_scope"
    AMBIGUOUS = "ambiguous"


RESOURCE_REQUEST_KEYWORDS = (
    "resource", "help", "recommend", "option", "program", "support",
    "organization", "where can", "how do i", "do you have", "know any",
    "suggest", "idea", "what would help", "what can", "show me",
)

GREETING_WORDS = (
    "hi", "hey", "hello", "yo", "sup", "hiya", "howdy",
    "good morning", "good afternoon", "good evening", "what's up", "whats up",
)

OUT_OF_SCOPE_PATTERNS = (
    r"\b(homework|essay|math problem|equation|solve for)\b",
    r"\b(write|debug|fix) (me )?(some |a |my )?(code|program|script)\b",
    r"\b(weather|forecast|sports score|stock price)\b",
    r"\b(recipe|movie recommendation|song lyrics)\b",
)


class MessageKindDetector:
    def __init__(
        self,
        request_keywords: Iterable[str] = RESOURCE_REQUEST_KEYWORDS,
        greeting_words: Iterable[str] = GREETING_WORDS,
        out_of_scope_patterns: Iterable[str] = OUT_OF_SCOPE_PATTERNS,
    ) -> None:
        self.request_keywords = tuple(request_keywords)
        self.greeting_words = tuple(greeting_words)
        self._out_of_scope = [re.compile(p, re.IGNORECASE) for p in out_of_scope_patterns]
        greet = "|".join(re.escape(g) for g in self.greeting_words)
        # A greeting only when there is nothing else of substance in the message
        self._greeting_only = re.compile(rf"^\s*({greet})(\s+(there|all|friend))?[\s!.?,]*$", re.IGNORECASE)

    def is_asking_for_resources(self, text: str) -> bool:
        t = (text or "").lower()
        return any(kw in t for kw in self.request_keywords)

    def classify(self, text: str) -> MessageKind:
        t = (text or "").strip()
        if not t:
            return MessageKind.AMBIGUOUS

        if self._greeting_only.match(t):
            return MessageKind.GREETING

        # Out-of-scope asks win over "help" ("help me with my math homework")
        if any(p.search(t) for p in self._out_of_scope):
            return MessageKind.OUT_OF_SCOPE

        if self.is_asking_for_resources(t):
            return MessageKind.RESOURCE_REQUEST

        return MessageKind.AMBIGUOUS
