# doctenancy/requestid/middleware.py
from __future__ import annotations

import contextvars
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from doctenancy.accesslog.context import get_log_context

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "doctenancy_request_id", default=None
)


def get_request_id() -> Optional[str]:
    return _request_id.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Propagate (or mint) a request id and echo it back to the client."""

    def __init__(self, app, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = request.headers.get(self._header_name)
        request_id = (incoming or "").strip() or str(uuid.uuid4())
        request.state.request_id = request_id

        log_ctx = get_log_context()
        if log_ctx is not None:
            log_ctx.set_field("request_id", request_id)

        token = _request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers[self._header_name] = request_id
        return response
