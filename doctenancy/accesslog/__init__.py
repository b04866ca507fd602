from .context import DEFAULT_MAX_ERRORS, LogContext, get_log_context
from .middleware import AccessLogMiddleware

__all__ = [
    "DEFAULT_MAX_ERRORS",
    "LogContext",
    "get_log_context",
    "AccessLogMiddleware",
]
