from __future__ import annotations

import logging
import os

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    root = logging.getLogger("perfumaria")
    if root.handlers:
        return

    lvl = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    root.setLevel(getattr(logging, lvl, logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
