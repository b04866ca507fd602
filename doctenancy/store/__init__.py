"""Tenant scoping for documents and storage-container names.

This package centralizes the tenant discriminator injection and the
tenant-qualified database naming used by every service that shares one
document store between tenants.
"""

from .naming import (
    TENANT_NAME_SEPARATOR,
    is_tenant_scoped_name,
    name_for_tenant,
    name_from_context,
    tenant_from_name,
)
from .tenancy import (
    FIELD_TENANT_ID,
    TenantScoper,
    array_with_tenant_from_context,
    array_with_tenant_id,
    with_tenant_from_context,
    with_tenant_id,
)

__all__ = [
    "FIELD_TENANT_ID",
    "TENANT_NAME_SEPARATOR",
    "TenantScoper",
    "with_tenant_id",
    "array_with_tenant_id",
    "with_tenant_from_context",
    "array_with_tenant_from_context",
    "name_for_tenant",
    "name_from_context",
    "is_tenant_scoped_name",
    "tenant_from_name",
]
