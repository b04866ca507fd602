# doctenancy/accesslog/middleware.py
from __future__ import annotations

import logging
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from doctenancy.accesslog.context import (
    DEFAULT_MAX_ERRORS,
    LogContext,
    bind_log_context,
    unbind_log_context,
)
from doctenancy.http_utils.netutils import HEADER_X_FORWARDED_FOR, get_ip_from_xff_depth
from doctenancy.logs.logging_config import get_core_logger

DisableLogFunc = Callable[[int, Request], bool]


def _format_latency(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:.3f}s"
    if seconds >= 0.001:
        return f"{seconds * 1000:.3f}ms"
    return f"{seconds * 1_000_000:.0f}µs"


def _level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One structured log entry per request.

    Installs a :class:`LogContext` for the request so inner middlewares and
    handlers can attach errors and fields to the entry. Unhandled exceptions
    are logged with their traceback and answered with a 500.
    ``byteswritten`` is only recorded when the response declares a
    Content-Length; streamed bodies have none.
    """

    def __init__(
        self,
        app,
        *,
        max_errors: int = DEFAULT_MAX_ERRORS,
        proxy_depth: int = 0,
        disable_log: Optional[DisableLogFunc] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(app)
        self._max_errors = max_errors
        self._proxy_depth = proxy_depth
        self._disable_log = disable_log
        self._logger = logger or get_core_logger("accesslog")

    def _request_fields(self, request: Request, started_at: datetime) -> Dict[str, Any]:
        peer = request.client.host if request.client else ""
        client_ip = get_ip_from_xff_depth(
            peer, request.headers.getlist(HEADER_X_FORWARDED_FOR), self._proxy_depth
        )
        return {
            "clientip": str(client_ip) if client_ip is not None else None,
            "method": request.method,
            "path": request.url.path,
            "qs": request.url.query,
            "ts": started_at.isoformat(timespec="milliseconds"),
            "type": f"HTTP/{request.scope.get('http_version', '1.1')}",
            "useragent": request.headers.get("user-agent", ""),
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        log_ctx = LogContext(max_errors=self._max_errors)
        request.state.log_context = log_ctx
        fields = self._request_fields(request, started_at)

        failed = False
        token = bind_log_context(log_ctx)
        try:
            response = await call_next(request)
        except Exception as exc:
            failed = True
            fields["panic"] = f"{type(exc).__name__}: {exc}"
            fields["trace"] = traceback.format_exc()
            response = JSONResponse(status_code=500, content={"error": "internal error"})
        finally:
            unbind_log_context(token)

        status = response.status_code
        if not failed and self._disable_log is not None and self._disable_log(status, request):
            return response

        latency = _format_latency(time.perf_counter() - start)
        fields["responsetime"] = latency
        fields["status"] = status
        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit():
            fields["byteswritten"] = int(content_length)
        log_ctx.add_fields(fields)

        message = f'{status} {latency} "{request.method} {request.url.path} {fields["type"]}" {fields["useragent"] or "-"}'
        self._logger.log(_level_for_status(status), message, extra=fields)
        return response
