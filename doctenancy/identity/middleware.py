# doctenancy/identity/middleware.py
from __future__ import annotations

import re
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from doctenancy.accesslog.context import get_log_context
from doctenancy.errors import IdentityError
from doctenancy.identity.context import reset_identity, set_identity
from doctenancy.identity.token import DEFAULT_JWT_COOKIE, extract_identity, extract_jwt_from_request
from doctenancy.logs.logging_config import get_core_logger

logger = get_core_logger("identity")


class IdentityMiddleware(BaseHTTPMiddleware):
    """Expose the caller's identity claims to the request.

    The identity is stored on ``request.state.identity`` and in the identity
    context var (see :func:`doctenancy.identity.get_identity`) for the
    duration of the request. Requests without a readable token get a 401.
    When ``path_regex`` is set, only matching paths are inspected.
    """

    def __init__(
        self,
        app,
        *,
        path_regex: Optional[str] = None,
        cookie_name: str = DEFAULT_JWT_COOKIE,
    ) -> None:
        super().__init__(app)
        self._path_re = re.compile(path_regex) if path_regex else None
        self._cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self._path_re is not None and not self._path_re.match(request.url.path):
            return await call_next(request)

        log_ctx = get_log_context()
        try:
            token = extract_jwt_from_request(request, cookie_name=self._cookie_name)
            identity = extract_identity(token)
        except IdentityError as exc:
            if log_ctx is not None:
                log_ctx.push_error(exc)
            logger.debug("Rejecting request without identity: %s", exc.message)
            return JSONResponse(status_code=401, content={"error": exc.message})

        request.state.identity = identity
        if log_ctx is not None:
            log_ctx.set_field("sub", identity.subject)
            if identity.tenant:
                log_ctx.set_field("tenant_id", identity.tenant)
            if identity.plan:
                log_ctx.set_field("plan", identity.plan)

        ctx_token = set_identity(identity)
        try:
            return await call_next(request)
        finally:
            reset_identity(ctx_token)
