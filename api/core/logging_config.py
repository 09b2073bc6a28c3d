"""
Process logging setup.

Modules log through `logging.getLogger(__name__)` with `event key=value`
messages; this only installs the root handler and level.
"""

from __future__ import annotations

import logging
import sys

from .config import log_level

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str | None = None) -> None:
    root = logging.getLogger()
    resolved = (level or log_level()).upper()
    root.setLevel(getattr(logging, resolved, logging.INFO))

    # Idempotent: app factories may run more than once per process (tests).
    if any(getattr(h, "_carzone_handler", False) for h in root.handlers):
        return None

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._carzone_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
