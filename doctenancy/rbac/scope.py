# doctenancy/rbac/scope.py
"""Role-based access scope forwarded by the API gateway.

The gateway resolves the caller's permissions and passes the resulting
restrictions as comma separated header values. Services narrow their queries
to the device groups and release tags listed here.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

SCOPE_HEADER = "X-MEN-RBAC-Inventory-Groups"
SCOPE_RELEASE_TAGS_HEADER = "X-MEN-RBAC-Releases-Tags"


@dataclass(frozen=True)
class Scope:
    device_groups: List[str] = field(default_factory=list)
    release_tags: List[str] = field(default_factory=list)


_scope_context: contextvars.ContextVar[Optional[Scope]] = contextvars.ContextVar(
    "doctenancy_rbac_scope", default=None
)


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def extract_scope_from_headers(headers: Mapping[str, Any]) -> Optional[Scope]:
    """Scope carried by the request headers, or None when neither header is set.

    ``headers`` must be case-insensitive (Starlette ``Headers``) or use the
    canonical header names.
    """
    groups = headers.get(SCOPE_HEADER) or ""
    tags = headers.get(SCOPE_RELEASE_TAGS_HEADER) or ""
    if not groups and not tags:
        return None
    return Scope(device_groups=_split(groups), release_tags=_split(tags))


def get_scope() -> Optional[Scope]:
    """RBAC scope of the current request; None means unrestricted."""
    return _scope_context.get()


def set_scope(scope: Optional[Scope]) -> contextvars.Token:
    return _scope_context.set(scope)


def reset_scope(token: contextvars.Token) -> None:
    _scope_context.reset(token)


__all__ = [
    "SCOPE_HEADER",
    "SCOPE_RELEASE_TAGS_HEADER",
    "Scope",
    "extract_scope_from_headers",
    "get_scope",
    "set_scope",
    "reset_scope",
]
