"""Structured JSON logging configuration."""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, Any

# Extra fields that must never reach log output
REDACTED_KEYS = {'password', 'password_hash', 'npsso', 'access_token', 'code', 'token'}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    # Standard LogRecord attributes that should not be included as extra fields
    _STANDARD_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
        'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname',
        'process', 'processName', 'relativeCreated', 'thread', 'threadName',
        'exc_info', 'exc_text', 'stack_info', 'taskName'
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # logger.info("...", extra={"userId": "123"}) lands in record.__dict__
        for key, value in record.__dict__.items():
            if key in self._STANDARD_ATTRS or callable(value):
                continue
            log_data[key] = "[redacted]" if key.lower() in REDACTED_KEYS else value

        return json.dumps(log_data, default=str)


def setup_structured_logging(level: str | None = None):
    """Configure structured JSON logging for the application.

    Level comes from the argument, then LOG_LEVEL, then INFO.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger = logging.getLogger()
    root_logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    root_logger.handlers = [handler]

    # Only warnings/errors from uvicorn's access log, in the same format
    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.handlers = [handler]
    uvicorn_access.setLevel(logging.WARNING)
