# doctenancy/identity/context.py
"""Request identity storage using contextvars for async safety."""

from __future__ import annotations

import contextvars
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from doctenancy.identity.token import Identity

_identity_context: contextvars.ContextVar["Identity | None"] = contextvars.ContextVar(
    "doctenancy_identity", default=None
)


def get_identity() -> "Identity | None":
    """
    Get the identity of the current request.

    Returns None outside of a request or when the request carried no token.
    """
    return _identity_context.get()


def set_identity(identity: "Identity | None") -> contextvars.Token:
    """Set the identity for the current async chain and return a reset token."""
    return _identity_context.set(identity)


def reset_identity(token: contextvars.Token) -> None:
    _identity_context.reset(token)


def tenant_from_context() -> str:
    """Tenant of the current identity, or the shared namespace ``""``."""
    identity = get_identity()
    if identity is None:
        return ""
    return identity.tenant


class IdentityContext:
    """
    Context manager for temporarily setting the request identity.

    Useful for background jobs that act on behalf of a tenant.

    Example:
        with IdentityContext(Identity(sub="worker", tenant_id="acme")):
            db_name = name_from_context("inventory")
    """

    def __init__(self, identity: "Identity | None"):
        self.identity = identity
        self.token: contextvars.Token | None = None

    def __enter__(self) -> "IdentityContext":
        self.token = set_identity(self.identity)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.token is not None:
            reset_identity(self.token)
            self.token = None

    async def __aenter__(self) -> "IdentityContext":
        return self.__enter__()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)
