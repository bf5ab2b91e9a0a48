"""
StrandsBackend

A guarded wrapper around a Strands Agent, used as the model behind the
intent classifier, text rewriter and listener.

Key rules:
- NEVER consulted for safety routing (the gate runs first, without it).
- ONLY runs if:
    STRANDS_ENABLED=true  AND  strands SDK is importable
- Fails CLOSED:
    - On import errors
    - On timeouts
    - On empty output
  and returns None, so callers decide whether that is an error.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# This will be monkeypatched in tests; in production, this is the real SDK.
try:
    from strands import Agent  # type: ignore
    STRANDS_AVAILABLE = True
except ImportError:  # pragma: no cover - environment dependent
    Agent = None  # type: ignore
    STRANDS_AVAILABLE = False

# prompt -> raw model text (None on failure)
LLMFn = Callable[[str], Optional[str]]


def _call_with_timeout(fn, timeout_s: float, *args, **kwargs):
    """
    Run a function with a hard timeout.
    Returns fn(...) result or None on timeout/error.
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout_s)
    except FuturesTimeout:
        logger.warning("Model call timed out after %.2fs", timeout_s)
        return None
    except Exception as e:
        logger.warning("Model call failed: %s", e)
        return None
    finally:
        # don't block the request on a hung call
        executor.shutdown(wait=False)


class StrandsBackend:
    """
    Usage pattern:
        backend = StrandsBackend(name="intent_classifier", system_prompt="...")
        raw = backend.complete(prompt)   # str or None
    """

    def __init__(self, name: str, system_prompt: str, *, timeout_seconds: float | None = None):
        self.name = name
        self.system_prompt = system_prompt
        self._agent = None

        env_flag = os.getenv("STRANDS_ENABLED", "false").lower() == "true"
        if timeout_seconds is None:
            timeout_seconds = float(os.getenv("STRANDS_TIMEOUT_SECONDS", "20.0"))
        self.timeout_seconds = float(timeout_seconds)

        self.enabled = bool(env_flag and STRANDS_AVAILABLE)

        if self.enabled and Agent is not None:
            try:
                # Newer SDKs take system_prompt; older ones only (name, instructions)
                try:
                    agent = Agent(system_prompt=system_prompt, callback_handler=None)  # type: ignore[call-arg]
                except TypeError:
                    agent = Agent(name=name, instructions=system_prompt)  # type: ignore[call-arg]
                self._agent = agent
                logger.info("StrandsBackend '%s' initialized (timeout=%.2fs)", name, self.timeout_seconds)
            except Exception as e:
                # Fail closed: disable integration completely
                logger.warning("Failed to initialize Strands Agent for '%s': %s", name, e)
                self.enabled = False
                self._agent = None
        elif env_flag and not STRANDS_AVAILABLE:
            logger.debug("STRANDS_ENABLED=true but strands SDK not available; '%s' disabled.", name)

    def complete(self, prompt: str) -> Optional[str]:
        if not (self.enabled and self._agent):
            return None

        def _run():
            # FakeAgent / older-style: agent.run(prompt); newer Strands Agent: agent(prompt)
            if hasattr(self._agent, "run"):
                return self._agent.run(prompt)  # type: ignore[union-attr]
            return self._agent(prompt)  # type: ignore[misc]

        reply = _call_with_timeout(_run, self.timeout_seconds)
        if reply is None:
            return None
        # AgentResult stringifies to the final message text
        text = str(reply).strip()
        return text or None

    def as_llm_fn(self) -> LLMFn:
        return self.complete
