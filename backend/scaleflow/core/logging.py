from __future__ import annotations

import logging

from scaleflow.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging once at startup. Modules log through
    logging.getLogger(__name__) and inherit this level.
    """
    resolved = (level or settings.LOG_LEVEL or "INFO").strip().upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("scaleflow").setLevel(resolved)
