# Purpose: the safety gate that runs before any catalog fetch or model call.
# • SafetyGate.check() returns a GateResult with the first matching pattern
# • Module-level triggered_safety(message) for simple callers
# ─────────────────────────────────────────────
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Pattern

from .rules import DEFAULT_SAFETY_PATTERNS, compile_patterns, normalize


@dataclass
class GateResult:
    triggered: bool
    pattern: Optional[str] = None


class SafetyGate:
    def __init__(self, patterns: Iterable[str | Pattern] | None = None):
        self.patterns = compile_patterns(patterns if patterns is not None else DEFAULT_SAFETY_PATTERNS)

    def check(self, text: str) -> GateResult:
        raw = (text or "").lower()
        t = normalize(text)
        for pat in self.patterns:
            if pat.search(t) or pat.search(raw):
                return GateResult(triggered=True, pattern=pat.pattern)
        return GateResult(triggered=False)

    def triggered(self, text: str) -> bool:
        return self.check(text).triggered


_default_gate = SafetyGate()


def triggered_safety(message: str) -> bool:
    return _default_gate.triggered(message)
