import logging
from typing import Optional

from trip_planner.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once per process; later calls only adjust the level."""
    global _configured
    resolved = (level or settings.log_level or "INFO").upper()
    if not _configured:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
        # httpx logs every request at INFO; keep model calls out of the app log
        logging.getLogger("httpx").setLevel(logging.WARNING)
        _configured = True
    logging.getLogger().setLevel(resolved)
