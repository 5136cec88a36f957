# reading_portal/core/logging_config.py
import logging
import sys

from reading_portal.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process and the rq worker."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level or settings.LOG_LEVEL)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level or settings.LOG_LEVEL)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
