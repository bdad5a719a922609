"""Logging configuration for the mortgage calculator.

Log records go to stderr so the CLI's tables and exports on stdout stay
clean. ``format_type="json"`` emits one JSON object per line for the web
app's log collector.
"""

import json
import logging
import sys
from datetime import datetime, timezone

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger and message."""

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
        )


def setup_logging(level: str = "WARNING", format_type: str = "standard") -> None:
    """Route all calculator logging to stderr at ``level``.

    Unknown level names fall back to WARNING. Any handler already installed
    on the root logger is replaced.
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)
    handler = logging.StreamHandler(sys.stderr)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)
    logging.getLogger("mortgage_calc").setLevel(log_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
