# doctenancy/accesslog/context.py
"""Request-scoped error sink read by the access log at request completion."""

from __future__ import annotations

import contextvars
import threading
from typing import Any, Dict, List, Optional

DEFAULT_MAX_ERRORS = 5


class LogContext:
    """Errors and extra fields collected while a request is handled.

    Handlers (possibly running in several threads or tasks for one request)
    push errors and set fields; the access log middleware merges them into the
    final entry. At most ``max_errors`` errors are kept, ``max_errors <= 0``
    disables the cap.
    """

    def __init__(self, max_errors: int = DEFAULT_MAX_ERRORS) -> None:
        self.max_errors = max_errors
        self._errors: List[BaseException | str] = []
        self._fields: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def push_error(self, err: BaseException | str) -> bool:
        with self._lock:
            if self.max_errors > 0 and len(self._errors) >= self.max_errors:
                return False
            self._errors.append(err)
            return True

    def set_field(self, key: str, value: Any) -> None:
        with self._lock:
            self._fields[key] = value

    @property
    def errors(self) -> List[BaseException | str]:
        with self._lock:
            return list(self._errors)

    def add_fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Merge collected errors (as ``error``) and fields into ``fields``."""
        with self._lock:
            messages = [str(err) for err in self._errors if err is not None]
            if messages:
                fields["error"] = messages[0] if len(messages) == 1 else "; ".join(messages)
            fields.update(self._fields)
        return fields


_log_context: contextvars.ContextVar[Optional[LogContext]] = contextvars.ContextVar(
    "doctenancy_log_context", default=None
)


def get_log_context() -> Optional[LogContext]:
    """The current request's LogContext, or None outside the access log middleware."""
    return _log_context.get()


def bind_log_context(ctx: Optional[LogContext]) -> contextvars.Token:
    return _log_context.set(ctx)


def unbind_log_context(token: contextvars.Token) -> None:
    _log_context.reset(token)


__all__ = [
    "DEFAULT_MAX_ERRORS",
    "LogContext",
    "get_log_context",
    "bind_log_context",
    "unbind_log_context",
]
