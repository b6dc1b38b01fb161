"""Structured Logging — one JSON object per line, carrying session and storage context.

Invariants:
    - Every line has timestamp (record creation time, UTC), level, logger, message
    - Only the whitelisted context keys in EXTRA_FIELDS are emitted; anything
      else passed via `extra=` (credentials, tokens) is dropped
    - setup_logging is idempotent: calling it twice does not duplicate output

Design Decisions:
    - Plain logging.Formatter subclass: stdlib logging end to end, no extra dependency
    - "text" format for local runs, "json" everywhere else
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "phase", "signal", "generation", "error_code",
    "collection", "record_id", "attempt", "path",
)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_HANDLER_NAME = "rize"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: record.__dict__[key]
            for key in EXTRA_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install the application handler on the root logger (once)."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT),
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
