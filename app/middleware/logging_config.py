"""
Structured logging configuration.

    production          → one JSON object per line (log aggregator friendly)
    development/testing → short coloured lines for a terminal

LOG_LEVEL overrides the level, LOG_FORMAT ("json" | "readable") overrides
the format. Sohar Port modules attach call details via `extra=`; both
formatters surface them.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# LogRecord attributes set through `extra=` by the gateway and services
GATEWAY_FIELDS = (
    "operation",
    "status_code",
    "duration_ms",
    "external_reference",
    "request_number",
)

_QUIET_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine")


def _gateway_extras(record: logging.LogRecord) -> dict:
    extras = {}
    for key in GATEWAY_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            extras[key] = value
    return extras


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
            **_gateway_extras(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """`HH:MM:SS LEVEL logger: message [ref] [Nms]` with a coloured level."""

    _LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    _RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self._LEVEL_COLORS.get(record.levelno, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{color}{ts} {record.levelname:<8}{self._RESET} {record.name}: {record.getMessage()}"

        extras = _gateway_extras(record)
        if "external_reference" in extras:
            line += f" [{extras['external_reference']}]"
        if "duration_ms" in extras:
            line += f" [{extras['duration_ms']:.0f}ms]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger for *app*'s environment."""
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = os.getenv("LOG_FORMAT", "json" if is_prod else "readable").lower()
    formatter = JSONFormatter() if fmt == "json" else ReadableFormatter()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)

    root = logging.getLogger()
    # Replace, never stack: create_app() may run several times in one process
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, fmt)
