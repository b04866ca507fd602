"""Caller identity of the current request.

Only the context helpers are exported here so the document core can read the
tenant without importing the HTTP stack. Token parsing lives in
:mod:`doctenancy.identity.token`, the middleware in
:mod:`doctenancy.identity.middleware`.
"""

from .context import IdentityContext, get_identity, reset_identity, set_identity, tenant_from_context

__all__ = [
    "IdentityContext",
    "get_identity",
    "set_identity",
    "reset_identity",
    "tenant_from_context",
]
