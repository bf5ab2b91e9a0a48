"""
SinePatre Resource Navigator

Ranks a published resource sheet against a teen's message and returns at
most a handful of grounded recommendations. The safety gate always runs
first and never depends on the sheet or a model.

Entry points:
    navigator.agent.dispatcher.Navigator   (respond / handle)
    navigator.ui.cli.main                  (REPL)
"""

import logging
import os

__version__ = "0.1.0"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Root handler for CLI/script use; left alone when the host app already set one."""
    if logging.getLogger().handlers:
        return
    name = (level or os.getenv("NAVIGATOR_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)


configure_logging()

logging.getLogger(__name__).info(
    "navigator %s loaded (model backend %s)",
    __version__,
    "requested" if os.getenv("STRANDS_ENABLED", "false").lower() == "true" else "off, rule mode",
)
