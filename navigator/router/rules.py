# navigator/router/rules.py
# Purpose: crisis-language patterns for the safety gate.
# • One source of truth for the regex list (callers may pass their own)
# • Slang / misspellings are normalized to canonical phrases before matching
# ─────────────────────────────────────────────

from __future__ import annotations

import re
from typing import Iterable, List, Pattern

# ---------------------------------------
# Normalization map
#   - Variants/slang/misspellings map to canonical phrases the patterns know.
# ---------------------------------------
NORMALIZE_MAP = {
    "unalive": "kill myself",
    "kms": "kill myself",
    "sucide": "suicide",
    "suicidal": "suicide",
    "self harm": "self-harm",
    "selfharm": "self-harm",
    "im not safe": "i'm not safe",
    "sexually assaulted": "sexual assault",
    "od": "overdose",
}

DEFAULT_SAFETY_PATTERNS = (
    r"\b(suicide|kill myself|end my life|end it all)\b",
    r"\b(self[- ]?harm|cut myself|cutting|self.?injur)",
    r"\b(i am not safe|i'm not safe|unsafe at home|in danger)\b",
    r"\b(abuse|abused|sexual assault|rape|raped|molested|violence)\b",
    r"\b(overdose|poison)\b",
    # "hang" alone counts; everyday "hang out", "hang on", "hang in there" do not
    r"\bhang(ing)?\b(?!\s+(out|around|up|on|with|in there)\b)",
)


def normalize(text: str) -> str:
    """Lowercase + targeted replacements (no stopwording, policy phrases must survive)."""
    t = (text or "").lower()
    # Normalize unicode dashes to hyphen to keep tokens consistent
    t = re.sub(r"[\u2010-\u2015\u2212]", "-", t)
    t = t.replace("\u2019", "'")
    for wrong, right in NORMALIZE_MAP.items():
        t = re.sub(rf"(?<!\w){re.escape(wrong)}(?!\w)", right, t)
    # collapse whitespace
    t = re.sub(r"\s{2,}", " ", t).strip()
    return t


def compile_patterns(patterns: Iterable[str | Pattern]) -> List[Pattern]:
    out: List[Pattern] = []
    for p in patterns:
        out.append(p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE))
    return out
