"""RBAC scope (device groups, release tags) forwarded by the gateway."""

from .middleware import RBACMiddleware
from .scope import (
    SCOPE_HEADER,
    SCOPE_RELEASE_TAGS_HEADER,
    Scope,
    extract_scope_from_headers,
    get_scope,
)

__all__ = [
    "SCOPE_HEADER",
    "SCOPE_RELEASE_TAGS_HEADER",
    "Scope",
    "RBACMiddleware",
    "extract_scope_from_headers",
    "get_scope",
]
