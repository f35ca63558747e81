"""
Structured JSON logging for the Tether API.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from src.config import settings


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


def configure_logging(level: str = None) -> None:
    """Attach the JSON handler to the ``tether`` logger hierarchy."""
    root = logging.getLogger("tether")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    root.setLevel(level or settings.LOG_LEVEL)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``tether`` namespace."""
    configure_logging()
    return logging.getLogger(f"tether.{name}")
