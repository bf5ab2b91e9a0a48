"""
Resource Navigator CLI
- Runs the same Navigator pipeline the web handler would.
- Keeps the running conversation as history (user/assistant turns).
- Prints the trace to stderr when NAVIGATOR_DEBUG_TRACE=1.

Run:  python -m navigator.ui.cli
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List

from navigator.agent.dispatcher import Navigator
from navigator.config import MAX_HISTORY_ITEMS, load_settings

BANNER = (
    "SinePatre Resource Navigator. I'm here to listen and to help you find support. "
    "If you are in danger, call or text 988 (U.S.) right now."
)


def respond(navigator: Navigator, msg: str, history: List[Dict[str, str]], *, debug_trace: bool = False) -> str:
    out: Dict[str, Any] = navigator.respond(msg, history)
    if debug_trace and out.get("trace"):
        print("[trace]", out["trace"], file=sys.stderr)
    if out.get("status") != 200:
        return out.get("error") or out.get("text") or "Something went wrong"
    return out.get("text", "").strip()


def main() -> None:
    settings = load_settings()
    navigator = Navigator(settings=settings)
    history: List[Dict[str, str]] = []

    print(BANNER)
    print("type 'exit' to quit\n")
    while True:
        try:
            q = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nbye!")
            break
        if q.lower() in {"exit", "quit"}:
            break
        if not q:
            continue
        reply = respond(navigator, q, history, debug_trace=settings.debug_trace)
        print(reply, "\n")
        history.extend([{"role": "user", "content": q}, {"role": "assistant", "content": reply}])
        del history[:-MAX_HISTORY_ITEMS]


if __name__ == "__main__":
    main()
