"""Portfolio Admin Logging Configuration.

Auth logs name client addresses and admin identities but must never carry
session tokens; every handler installed here masks anything shaped like a
JWT before it is written.
"""

import json
import logging
import re
import sys
from typing import Literal

# Human-readable format for development
DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Structured fields callers may attach with logger.info(..., extra={...})
CONTEXT_FIELDS = ("event", "client_ip", "identity")

JWT_PATTERN = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]*")
REDACTED = "[redacted-token]"

NOISY_LOGGERS = ["uvicorn", "uvicorn.error", "uvicorn.access", "httpx"]


class TokenRedactionFilter(logging.Filter):
    """Replaces JWTs in the formatted message with a placeholder."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "eyJ" in message:
            record.msg = JWT_PATTERN.sub(REDACTED, message)
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with auth context fields when present.

    Messages go through json.dumps(), so quotes or newlines in a
    client-supplied email address cannot break the line.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable output
    """
    numeric_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    if format_type == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(TokenRedactionFilter())

    logging.root.handlers = [handler]
    logging.root.setLevel(numeric_level)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    # The redis client reports reconnects; only show them when debugging
    logging.getLogger("redis").setLevel(logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING)

    get_logger("logging").info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the portfolio_admin namespace."""
    return logging.getLogger(f"portfolio_admin.{name}")
