"""Logging setup: JSON lines for machines, plain text for people.

Modules log through ``logging.getLogger(__name__)``; nothing here is
needed for correctness.  ``setup_logging`` may be called repeatedly
(every ``create_app`` does); it replaces its own handler instead of
stacking a new one.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

HANDLER_NAME = "safecalc"

# Extra attributes surfaced in JSON output when a record carries them.
EXTRA_FIELDS = ("operation", "error_code", "kind", "path", "method")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "text") -> logging.Handler:
    """Install (or replace) the application's root handler."""
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
