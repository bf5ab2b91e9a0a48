# navigator/answer/compose.py
from __future__ import annotations
import re
from typing import Dict, List

from ..catalog.loader import ResourceRecord

# --- Fixed copy (never templated, never model-written) ---
TEMPLATES = {
    "safety_intro": "You deserve immediate support. Please reach out right now.",
    "no_match": (
        "I want to help, but I need to understand your situation better. "
        "Can you tell me more about what kind of support you're looking for?"
    ),
    "no_match_fallback": (
        "I couldn't find a close match, but these are good places to start. "
        "Tell me more and I can narrow it down."
    ),
    "clarify": "Can you tell me a little more about what kind of support you're looking for?",
    "greeting": "Hey, I'm glad you're here. What's on your mind today?",
    "out_of_scope": (
        "That's a bit outside what I can help with. I'm here to listen and to help you find "
        "support programs if you want them. What's going on with you?"
    ),
    "listener": "I hear you. Tell me more.",
    "recommend_intro": "Here are some options that might help.",
    "error": "Something went wrong",
    "error_detail": "Please try again in a moment.",
}

SAFETY_RESOURCES: List[Dict] = [
    {"title": "988 Suicide & Crisis Lifeline", "url": "https://988lifeline.org",
     "why": "Call or text 988, 24/7 in the U.S.", "how_to_start": ["Call", "Text"]},
    {"title": "Crisis Text Line", "url": "https://www.crisistextline.org",
     "why": "Text HOME to 741741 for 24/7 support.", "how_to_start": ["Text"]},
    {"title": "Teen Line", "url": "https://teenline.org",
     "why": "Teens helping teens by text, call, or email.", "how_to_start": ["Text", "Call"]},
    {"title": "Childhelp Hotline", "url": "https://www.childhelp.org/hotline/",
     "why": "Support for abuse or unsafe situations.", "how_to_start": ["Call"]},
]

ALLOWED_STEPS = ("Call", "Text", "Form", "Walk-in", "Referral")
DEFAULT_STEPS = ["Form", "Call"]

_STEP_PATTERNS = [
    ("Call", re.compile(r"\b(call|phone)\b")),
    ("Text", re.compile(r"\b(text|sms)\b")),
    ("Form", re.compile(r"\b(form|register|sign up)\b")),
    ("Walk-in", re.compile(r"\b(walk[- ]?in|in person)\b")),
    ("Referral", re.compile(r"\b(referral|doctor)\b")),
]


def render_template(key: str) -> str:
    return TEMPLATES.get(key, TEMPLATES["listener"])


def safety_resources() -> List[Dict]:
    # copies, callers may mutate their payload
    return [dict(r, how_to_start=list(r["how_to_start"])) for r in SAFETY_RESOURCES]


def build_how_to_start(record: ResourceRecord) -> List[str]:
    """Derive first steps from the record's own wording; sheet column wins when filled."""
    from_sheet = clean_steps(re.split(r"[;,/|]", record.how_to_start or ""))
    if from_sheet:
        return from_sheet

    text = f"{record.when_to_use}\n{record.description}\n{record.best_for}".lower()
    steps = [name for name, pat in _STEP_PATTERNS if pat.search(text)]
    return steps[:4] if steps else list(DEFAULT_STEPS)


def clean_steps(steps) -> List[str]:
    """Keep only known step labels (case-insensitive), in order, max 4."""
    by_lower = {s.lower(): s for s in ALLOWED_STEPS}
    out: List[str] = []
    for s in steps or []:
        if not isinstance(s, str):
            continue
        label = by_lower.get(s.strip().lower())
        if label and label not in out:
            out.append(label)
    return out[:4]


def why_from_record(record: ResourceRecord) -> str:
    """Two short grounded sentences from the sheet columns."""
    parts = []
    if record.description:
        parts.append(record.description.rstrip(". ") + ".")
    if record.best_for:
        parts.append(f"Best for {record.best_for.rstrip('. ')}.")
    elif record.when_to_use:
        parts.append(f"Good when {record.when_to_use.rstrip('. ')}.")
    return " ".join(parts)[:400]


def format_text(intro: str, resources: List[Dict]) -> str:
    """Plain-text rendering for the CLI."""
    lines = [intro] if intro else []
    for i, r in enumerate(resources, start=1):
        lines.append(f"[{i}] {r.get('title', '')} ({r.get('url', '')})")
        if r.get("why"):
            lines.append(f"    {r['why']}")
        if r.get("how_to_start"):
            lines.append(f"    How to start: {' / '.join(r['how_to_start'])}")
    return "\n".join(lines)
