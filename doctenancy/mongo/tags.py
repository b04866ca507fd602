# doctenancy/mongo/tags.py
"""Field naming for structured values.

Dataclass fields and pydantic model fields are mapped to document keys using a
bson-style tag ``"name[,omitempty][,inline]"``::

    @dataclass
    class Device:
        device_id: str = bson_field("_id")
        status: str = bson_field(",omitempty", default="")

    class Device(BaseModel):
        status: str = Field("", json_schema_extra={"bson": ",omitempty"})

Without a tag the key is the lower-cased attribute name (or the pydantic alias
when one is set). Attributes starting with an underscore are never emitted.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

from pydantic import BaseModel

TAG_KEY = "bson"

OPT_OMITEMPTY = "omitempty"
OPT_INLINE = "inline"


@dataclass(frozen=True)
class FieldDescriptor:
    attr: str
    name: str
    omit_empty: bool = False
    inline: bool = False


BoundField = Tuple[FieldDescriptor, Any]
FieldResolver = Callable[[Any], List[BoundField]]


def bson_field(tag: str, **kwargs: Any) -> Any:
    """Declare a dataclass field carrying a bson tag."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def parse_tag(attr: str, tag: str | None) -> FieldDescriptor:
    if not tag:
        return FieldDescriptor(attr=attr, name=attr.lower())
    name, _, raw_opts = tag.partition(",")
    opts = {opt.strip() for opt in raw_opts.split(",") if opt.strip()}
    return FieldDescriptor(
        attr=attr,
        name=name.strip() or attr.lower(),
        omit_empty=OPT_OMITEMPTY in opts,
        inline=OPT_INLINE in opts,
    )


def is_structured(value: Any) -> bool:
    if isinstance(value, BaseModel):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_empty(value: Any) -> bool:
    """Zero value check used by omitempty."""
    if value is None:
        return True
    if isinstance(value, (bool, int, float, complex, str, bytes, bytearray)):
        return not value
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _pydantic_tag(info: Any) -> str | None:
    extra = info.json_schema_extra
    if isinstance(extra, dict) and isinstance(extra.get(TAG_KEY), str):
        return extra[TAG_KEY]
    return info.alias


def resolve_fields(value: Any) -> List[BoundField]:
    """Public fields of a structured value in declaration order.

    Raises TypeError when ``value`` is not a dataclass instance or a pydantic
    model; callers classify their input first.
    """
    bound: List[BoundField] = []
    if isinstance(value, BaseModel):
        for attr, info in type(value).model_fields.items():
            if attr.startswith("_"):
                continue
            bound.append((parse_tag(attr, _pydantic_tag(info)), getattr(value, attr)))
        return bound
    if is_structured(value):
        for f in dataclasses.fields(value):
            if f.name.startswith("_"):
                continue
            bound.append((parse_tag(f.name, f.metadata.get(TAG_KEY)), getattr(value, f.name)))
        return bound
    raise TypeError(f"cannot resolve fields of {type(value).__name__}")


__all__ = [
    "FieldDescriptor",
    "BoundField",
    "FieldResolver",
    "bson_field",
    "parse_tag",
    "is_structured",
    "is_empty",
    "resolve_fields",
]
