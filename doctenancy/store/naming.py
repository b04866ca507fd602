# doctenancy/store/naming.py
from __future__ import annotations

from typing import Callable

from doctenancy.identity.context import tenant_from_context

TENANT_NAME_SEPARATOR = "-"


def name_for_tenant(tenant_id: str, base_name: str) -> str:
    """Storage-container name for a tenant; the shared name for tenant ``""``."""
    if not tenant_id:
        return base_name
    return base_name + TENANT_NAME_SEPARATOR + tenant_id


def name_from_context(base_name: str) -> str:
    """Storage-container name for the tenant of the current request identity."""
    return name_for_tenant(tenant_from_context(), base_name)


def is_tenant_scoped_name(base_name: str) -> Callable[[str], bool]:
    """Build a predicate matching names derived from ``base_name`` for some tenant.

    ``base_name`` itself and names that merely start with the same characters
    (``servicedbtenant1`` for ``servicedb``) do not match.
    """
    prefix = base_name + TENANT_NAME_SEPARATOR

    def matcher(name: str) -> bool:
        return name.startswith(prefix) and len(name) > len(prefix)

    return matcher


def tenant_from_name(name: str, base_name: str) -> str:
    """Tenant id encoded in ``name``, or ``""`` when it was not derived from ``base_name``.

    Only the literal ``base_name + "-"`` prefix is matched, so dashes inside
    the base name or the tenant id are fine.
    """
    prefix = base_name + TENANT_NAME_SEPARATOR
    if not name.startswith(prefix):
        return ""
    return name[len(prefix):]


__all__ = [
    "TENANT_NAME_SEPARATOR",
    "name_for_tenant",
    "name_from_context",
    "is_tenant_scoped_name",
    "tenant_from_name",
]
