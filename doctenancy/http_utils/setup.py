# doctenancy/http_utils/setup.py
from __future__ import annotations

from typing import Optional

from starlette.applications import Starlette

from doctenancy.accesslog.middleware import AccessLogMiddleware, DisableLogFunc
from doctenancy.config.settings import Settings, get_settings
from doctenancy.identity.middleware import IdentityMiddleware
from doctenancy.rbac.middleware import RBACMiddleware
from doctenancy.requestid.middleware import RequestIdMiddleware


def apply_middleware(
    app: Starlette,
    settings: Optional[Settings] = None,
    *,
    identity: bool = True,
    rbac: bool = True,
    identity_path_regex: Optional[str] = None,
    disable_log: Optional[DisableLogFunc] = None,
) -> None:
    """Install access log, request id, identity and RBAC scope middlewares.

    Starlette runs the last added middleware first, so the access log wraps
    everything and sees errors recorded by the inner layers.
    """
    settings = settings or get_settings()
    if rbac:
        app.add_middleware(RBACMiddleware)
    if identity:
        app.add_middleware(
            IdentityMiddleware,
            path_regex=identity_path_regex,
            cookie_name=settings.jwt_cookie_name,
        )
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)
    app.add_middleware(
        AccessLogMiddleware,
        max_errors=settings.access_log_max_errors,
        proxy_depth=settings.client_ip_proxy_depth,
        disable_log=disable_log,
    )
