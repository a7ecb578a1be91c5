"""Logging setup for tuition-ledger.

Engine modules log through ``logging.getLogger(__name__)`` and attach the
ledger they are working on (student, borrower, loan, month) as ``extra``
fields. The JSON formatter lifts those fields to the top level so that log
lines can be filtered per ledger.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

# Record attributes copied into JSON output when present
CONTEXT_FIELDS = ("student_id", "borrower_id", "loan_id", "month_key")


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> None:
    """Configure the root logger for tuition-ledger.

    Parameters
    ----------
    level : str
        Log level name. Unknown names fall back to INFO.
    format_type : str
        ``"standard"`` for pipe-separated text, ``"json"`` for one JSON
        object per line.
    stream : TextIO | None
        Output stream, stdout by default.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    logging.getLogger("tuition_ledger").setLevel(log_level)

    # Quiet third-party libraries
    for noisy in ("psycopg", "faker"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON with ledger context fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        if hasattr(record, "extra"):
            payload.update(record.extra)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)
