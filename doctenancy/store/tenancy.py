# doctenancy/store/tenancy.py
"""Tenant discriminator injection for arbitrary document values.

The scoper accepts any of the document representations recognized by
:func:`doctenancy.mongo.doc.classify` and returns a :class:`SON` with the
tenant field **appended after all original fields**. A discriminator already
present in the input is dropped so the caller's tenant always wins.

Nested dataclasses, pydantic models and custom-encoded values are converted
to SON in place so the result is accepted by ``bson.encode``.

Inputs that cannot carry a tenant scope (bare scalars, failing or invalid
custom encoders, self-referencing values) yield an empty SON. Callers that
must know whether anything was produced check ``len(result)``.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from bson.son import SON

from doctenancy.errors import DecodeError, EncodeError, UninspectableValueError
from doctenancy.identity.context import tenant_from_context
from doctenancy.logs.logging_config import get_core_logger
from doctenancy.mongo.doc import (
    DocumentKind,
    classify,
    decode_custom,
    iter_pairs,
    struct_to_document,
    to_bson_value,
)
from doctenancy.mongo.tags import FieldResolver

logger = get_core_logger("store.tenancy")

FIELD_TENANT_ID = "tenant_id"


class TenantScoper:
    def __init__(
        self,
        field_name: str = FIELD_TENANT_ID,
        *,
        field_resolver: Optional[FieldResolver] = None,
    ) -> None:
        if not field_name:
            raise ValueError("tenant field name must not be empty")
        self.field_name = field_name
        self._field_resolver = field_resolver

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "TenantScoper":
        return cls(settings.tenant_field_name, **kwargs)

    def _base_document(self, value: Any) -> Optional[SON]:
        kind = classify(value)
        if kind in (DocumentKind.ORDERED_PAIRS, DocumentKind.UNORDERED_MAPPING):
            build = self._pairs_document
        elif kind is DocumentKind.STRUCTURED:
            build = self._struct_document
        elif kind is DocumentKind.CUSTOM_ENCODED:
            build = decode_custom
        else:
            logger.debug("Value of type %s is not a document; nothing to scope", type(value).__name__)
            return None
        try:
            return build(value)
        except (EncodeError, DecodeError, UninspectableValueError) as exc:
            logger.warning(
                "Dropping document that cannot be scoped to a tenant: %s",
                exc.message,
                extra={"error_kind": exc.kind.value},
            )
            return None

    def _pairs_document(self, value: Any) -> SON:
        doc = SON()
        for key, item in iter_pairs(value):
            doc[key] = to_bson_value(item, field_resolver=self._field_resolver)
        return doc

    def _struct_document(self, value: Any) -> SON:
        return struct_to_document(value, field_resolver=self._field_resolver)

    def scope(self, tenant_id: str, value: Any) -> SON:
        """Return ``value`` as a SON with the tenant field appended."""
        doc = self._base_document(value)
        if doc is None:
            return SON()
        doc.pop(self.field_name, None)
        doc[self.field_name] = tenant_id
        return doc

    def scope_array(self, tenant_id: str, values: Iterable[Any]) -> List[SON]:
        """Scope every element, keeping order and length."""
        return [self.scope(tenant_id, value) for value in values]


_default_scoper = TenantScoper()


def with_tenant_id(tenant_id: str, value: Any) -> SON:
    return _default_scoper.scope(tenant_id, value)


def array_with_tenant_id(tenant_id: str, values: Iterable[Any]) -> List[SON]:
    return _default_scoper.scope_array(tenant_id, values)


def with_tenant_from_context(value: Any) -> SON:
    """Scope ``value`` to the tenant of the current request identity."""
    return _default_scoper.scope(tenant_from_context(), value)


def array_with_tenant_from_context(values: Iterable[Any]) -> List[SON]:
    return _default_scoper.scope_array(tenant_from_context(), values)


__all__ = [
    "FIELD_TENANT_ID",
    "TenantScoper",
    "with_tenant_id",
    "array_with_tenant_id",
    "with_tenant_from_context",
    "array_with_tenant_from_context",
]
