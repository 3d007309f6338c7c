"""Console logging for the price intelligence CLI.

``python -m src.price_intel.main`` calls ``setup_logging(module_name="src")``
once at start-up. Every module logger lives under ``src.*``, so classifier
summaries, enrichment failures and catalog merge warnings all reach the one
stdout handler installed here. Library use (tests, the pipeline imported
directly) installs nothing and leaves handler choice to the caller.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: int = logging.INFO,
    module_name: str = "src",
) -> logging.Logger:
    """Attach a stdout handler to the ``module_name`` logger tree.

    Calling it again for the same tree returns the already configured logger
    and adds no second handler, so repeated CLI invocations in one process do
    not duplicate lines.

    Args:
        level: Level for both the logger and its handler (``--verbose`` maps
            to DEBUG).
        module_name: Root of the logger tree; ``"src"`` covers the engine.
    """
    root = logging.getLogger(module_name)
    if root.handlers:
        return root

    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    return root
