"""
JSON logging for the API.

One stdout handler per logger, records rendered as a single JSON line with
any ``extra=`` fields merged in. Keys that can carry secrets are redacted
before they reach the output.
"""

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# LogRecord attributes that are not "extra" fields
_INTERNAL_KEYS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "taskName",
}

SENSITIVE_KEYS = {
    "password",
    "password_hash",
    "token",
    "authorization",
    "jwt_secret",
    "secret",
}

REDACTED = "***"


def redact(value: Any, key: str | None = None) -> Any:
    if key and key.lower() in SENSITIVE_KEYS:
        return REDACTED
    if isinstance(value, dict):
        return {str(k): redact(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
        }

        for key, value in record.__dict__.items():
            if key in _INTERNAL_KEYS:
                continue
            payload[key] = redact(value, key)

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(
    name: str = "sweetshop", level: str = "INFO", use_json: bool = True
) -> logging.Logger:
    log = logging.getLogger(name)
    log.setLevel(getattr(logging, level.upper(), logging.INFO))

    # reimports and repeated create_app() calls must not stack handlers
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter() if use_json else logging.Formatter("%(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)

    return log
