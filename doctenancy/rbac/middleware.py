# doctenancy/rbac/middleware.py
from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from doctenancy.rbac.scope import extract_scope_from_headers, reset_scope, set_scope


class RBACMiddleware(BaseHTTPMiddleware):
    """Expose the gateway's RBAC scope as ``request.state.rbac_scope`` and :func:`get_scope`.

    Requests without RBAC headers pass through with no scope set.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        scope = extract_scope_from_headers(request.headers)
        request.state.rbac_scope = scope
        if scope is None:
            return await call_next(request)

        token = set_scope(scope)
        try:
            return await call_next(request)
        finally:
            reset_scope(token)
