"""JSON-lines logging for Inspection-Engine."""

import logging
import json
import sys
from datetime import datetime, timezone

# Attributes passed through ``extra=`` that are copied into the JSON line.
CONTEXT_FIELDS = ("method", "path", "status_code", "duration_ms", "user_id", "inspection_id")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route ``inspection_engine.*`` loggers to stdout as JSON.

    Safe to call repeatedly; create_app() runs once per test.
    """
    root = logging.getLogger("inspection_engine")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False
    if any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"inspection_engine.{name}")
