"""Logging configuration and setup."""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone

from workcenter import config


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if hasattr(record, "order_number"):
            log_data["order_number"] = record.order_number

        return json.dumps(log_data, default=str)


_app_logger = logging.getLogger("workcenter")
_app_logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

# Skip if already configured
if not _app_logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())
    _app_logger.addHandler(console_handler)


def setup_logger(name: str) -> logging.Logger:
    """Get logger for a module."""
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
