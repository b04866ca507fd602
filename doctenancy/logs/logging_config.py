# ======================================================================
# FILE: doctenancy/logs/logging_config.py
# Unified logging setup: JSON lines for production, pretty console for
# development, secret redaction for extras and messages.
# ======================================================================
from __future__ import annotations

import json
import logging
import os
import re
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOGGER_ROOT = "doctenancy"

# Sensitive key substrings for redaction
_SENSITIVE_KEYS = {"api_key", "apikey", "authorization", "secret", "password", "token", "jwt"}

RESERVED_LOG_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "stacklevel",
    "taskName",
}


def _redact(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if len(value) <= 8:
        return "***"
    return value[:4] + "***" + value[-4:]


def _maybe_redact_mapping(data: Dict[str, Any]) -> Dict[str, Any]:
    if not data:
        return data
    redacted = {}
    for k, v in data.items():
        if any(sens in k.lower() for sens in _SENSITIVE_KEYS):
            redacted[k] = _redact(v)
        elif isinstance(v, dict):
            redacted[k] = _maybe_redact_mapping(v)
        else:
            redacted[k] = v
    return redacted


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the non-standard attributes attached to a record via ``extra=``."""
    return {k: v for k, v in record.__dict__.items() if k not in RESERVED_LOG_RECORD_KEYS}


# ----------------------------------------------------------------------
# Message sanitization (bearer tokens, key/value secrets, mongo credentials)
# ----------------------------------------------------------------------
_JSON_SECRET_KV_RE = re.compile(
    r"(\b(?:api[_-]?key|authorization|secret|password|token)\b\s*[:=]\s*[\"']?)([^\"'\s;]+)([\"']?)",
    re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(Bearer\s+)([A-Za-z0-9._\-~+/=]+)", re.IGNORECASE)
_MONGO_RE = re.compile(r"(mongodb(?:\+srv)?://)([^:@/]+):([^@/]+)(@)", re.IGNORECASE)


def _sanitize_log_message(message: str) -> str:
    if not isinstance(message, str) or not message:
        return message
    msg = _JSON_SECRET_KV_RE.sub(lambda m: m.group(1) + "***REDACTED***" + m.group(3), message)
    msg = _BEARER_RE.sub(lambda m: m.group(1) + "***REDACTED***", msg)
    msg = _MONGO_RE.sub(lambda m: m.group(1) + "***:***" + m.group(4), msg)
    return msg


# ----------------------------------------------------------------------
# Production JSON Formatter
# ----------------------------------------------------------------------
class ProductionJSONFormatter(logging.Formatter):
    """Structured JSON logging for production systems"""

    def format(self, record: logging.LogRecord) -> str:
        base = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": _sanitize_log_message(record.getMessage()),
            "source": f"{record.filename}:{record.lineno} {record.funcName}",
        }
        if record.exc_info:
            base["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "trace": traceback.format_exception(*record.exc_info),
            }
        extras = record_extras(record)
        if extras:
            base["extra"] = _maybe_redact_mapping(extras)
        return json.dumps(base, ensure_ascii=False, default=str)


# ----------------------------------------------------------------------
# Pretty console formatter for developers
# ----------------------------------------------------------------------
_LEVEL_COLORS = {
    "DEBUG": "\x1b[38;5;244m",
    "INFO": "\x1b[38;5;39m",
    "WARNING": "\x1b[38;5;214m",
    "ERROR": "\x1b[38;5;196m",
    "CRITICAL": "\x1b[48;5;196m\x1b[97m",
}
_RESET = "\x1b[0m"


class PrettyConsoleFormatter(logging.Formatter):
    """Human-friendly console formatter.

    Format:  HH:MM:SS.mmm [LEVEL] logger - msg | k=v ...  (file.py:123 func)
    Request context keys (request_id, tenant_id, status...) are inlined.
    """

    _INLINE_KEYS = ("request_id", "tenant_id", "sub", "method", "path", "status", "responsetime", "error")

    def __init__(self, no_color: Optional[bool] = None):
        super().__init__(datefmt="%H:%M:%S")
        env_no_color = os.getenv("NO_COLOR", "0").lower() in ("1", "true", "yes")
        self.no_color = env_no_color if no_color is None else bool(no_color)

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        level = record.levelname
        color = _LEVEL_COLORS.get(level, "") if not self.no_color else ""
        reset = _RESET if color else ""
        msg = _sanitize_log_message(record.getMessage())
        extras = []
        for k in self._INLINE_KEYS:
            v = getattr(record, k, None)
            if v is not None:
                extras.append(f"{k}={v}")
        extra_str = f" | {' '.join(extras)}" if extras else ""
        line = f"{ts} [{color}{level:>5}{reset}] {record.name} - {msg}{extra_str}  ({record.filename}:{record.lineno} {record.funcName})"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# Global flag to prevent duplicate logging setup
_logging_initialized = False


def setup_logging(*, level: str = "INFO", as_json: bool = False) -> None:
    """
    Attach a single stream handler to the ``doctenancy`` logger hierarchy.
    Prevents duplicate initialization with global flag.
    """
    global _logging_initialized
    if _logging_initialized:
        return
    _logging_initialized = True

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProductionJSONFormatter() if as_json else PrettyConsoleFormatter())
    root = logging.getLogger(LOGGER_ROOT)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False
    root.debug("Logging initialized", extra={"as_json": as_json})


def reset_logging_state() -> None:
    """Reset logging initialization state for testing purposes"""
    global _logging_initialized
    _logging_initialized = False
    root = logging.getLogger(LOGGER_ROOT)
    root.handlers.clear()
    root.propagate = True


def get_core_logger(module_name: str) -> logging.Logger:
    """Get a logger below the ``doctenancy`` namespace.

    Args:
        module_name: short name (``'store.tenancy'``) or a full dotted name
            already starting with ``doctenancy.``
    """
    if module_name.startswith(LOGGER_ROOT + ".") or module_name == LOGGER_ROOT:
        return logging.getLogger(module_name)
    return logging.getLogger(f"{LOGGER_ROOT}.{module_name}")


__all__ = [
    "ProductionJSONFormatter",
    "PrettyConsoleFormatter",
    "setup_logging",
    "reset_logging_state",
    "get_core_logger",
    "record_extras",
]
