from .errors import (
    DecodeError,
    DoctenancyError,
    EncodeError,
    ErrorKind,
    InvalidArgumentTypeError,
    UninspectableValueError,
)
from .mongo import DocumentKind, FlattenOptions, bson_field, document_from_struct, flatten_document
from .store import (
    FIELD_TENANT_ID,
    TenantScoper,
    array_with_tenant_id,
    is_tenant_scoped_name,
    name_for_tenant,
    tenant_from_name,
    with_tenant_id,
)

__version__ = "0.1.0"

__all__ = [
    "DecodeError",
    "DoctenancyError",
    "EncodeError",
    "ErrorKind",
    "InvalidArgumentTypeError",
    "UninspectableValueError",
    "DocumentKind",
    "FlattenOptions",
    "bson_field",
    "document_from_struct",
    "flatten_document",
    "FIELD_TENANT_ID",
    "TenantScoper",
    "array_with_tenant_id",
    "with_tenant_id",
    "is_tenant_scoped_name",
    "name_for_tenant",
    "tenant_from_name",
]
