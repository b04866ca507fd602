# doctenancy/mongo/doc.py
"""Canonical ordered documents built from structured values and mappings.

Every document produced here is a :class:`bson.son.SON`, which keeps insertion
order and is accepted verbatim by pymongo as a filter, update or insert
payload.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple

import bson
from bson.errors import BSONError
from bson.raw_bson import RawBSONDocument
from bson.son import SON

from doctenancy.errors import (
    DecodeError,
    EncodeError,
    InvalidArgumentTypeError,
    UninspectableValueError,
)
from doctenancy.mongo.codec import DOCUMENT_CODEC_OPTIONS
from doctenancy.mongo.tags import FieldResolver, is_empty, is_structured, resolve_fields

PATH_SEPARATOR = "."

# Natural nesting never gets close; this only stops self-referencing values.
MAX_NESTING_DEPTH = 32

Transform = Callable[[str, Any], Tuple[str, Any]]


class DocumentKind(Enum):
    ORDERED_PAIRS = "ordered_pairs"
    UNORDERED_MAPPING = "unordered_mapping"
    STRUCTURED = "structured"
    CUSTOM_ENCODED = "custom_encoded"
    UNRECOGNIZED = "unrecognized"


def _is_pair_sequence(value: Any) -> bool:
    if not isinstance(value, (list, tuple)) or not value:
        return False
    return all(
        isinstance(item, (list, tuple)) and len(item) == 2 and isinstance(item[0], str)
        for item in value
    )


def has_custom_encoder(value: Any) -> bool:
    if isinstance(value, RawBSONDocument):
        return True
    if isinstance(value, type):
        return False
    return callable(getattr(value, "to_bson", None))


def classify(value: Any, *, honor_encoder: bool = True) -> DocumentKind:
    """Tell which document representation ``value`` uses.

    With ``honor_encoder=False`` values carrying their own encoder are
    classified by their structure instead, which is what the flattener wants.
    A value whose attribute lookup itself fails is UNRECOGNIZED.
    """
    if honor_encoder:
        try:
            custom = has_custom_encoder(value)
        except Exception:
            return DocumentKind.UNRECOGNIZED
        if custom:
            return DocumentKind.CUSTOM_ENCODED
    if isinstance(value, (SON, OrderedDict)):
        return DocumentKind.ORDERED_PAIRS
    if isinstance(value, Mapping):
        return DocumentKind.UNORDERED_MAPPING
    if is_structured(value):
        return DocumentKind.STRUCTURED
    if _is_pair_sequence(value):
        return DocumentKind.ORDERED_PAIRS
    return DocumentKind.UNRECOGNIZED


def iter_pairs(value: Any) -> Iterator[Tuple[Any, Any]]:
    """Iterate (key, value) over a mapping or a sequence of pairs."""
    if isinstance(value, Mapping):
        yield from value.items()
    else:
        for key, item in value:
            yield key, item


def decode_custom(value: Any) -> SON:
    """Run a value's own encoder and parse the bytes back into a SON.

    Raises EncodeError when the encoder fails and DecodeError when its output
    is not a valid BSON document.
    """
    if isinstance(value, RawBSONDocument):
        raw = value.raw
    else:
        try:
            raw = value.to_bson()
        except Exception as exc:
            raise EncodeError(
                f"{type(value).__name__}.to_bson failed: {exc}", type_name=type(value).__name__
            ) from exc
    if not isinstance(raw, (bytes, bytearray, memoryview)):
        raise DecodeError(
            f"{type(value).__name__}.to_bson returned {type(raw).__name__}, expected bytes",
            type_name=type(value).__name__,
        )
    try:
        return bson.decode(bytes(raw), codec_options=DOCUMENT_CODEC_OPTIONS)
    except BSONError as exc:
        raise DecodeError(
            f"invalid BSON document from {type(value).__name__}: {exc}",
            type_name=type(value).__name__,
        ) from exc


def _check_depth(depth: int) -> None:
    if depth > MAX_NESTING_DEPTH:
        raise UninspectableValueError(f"maximum nesting depth ({MAX_NESTING_DEPTH}) exceeded")


def _convert(value: Any, resolver: Optional[FieldResolver], depth: int) -> Any:
    _check_depth(depth)
    if isinstance(value, (list, tuple)):
        items = [_convert(item, resolver, depth + 1) for item in value]
        if any(new is not old for new, old in zip(items, value)):
            return items
        return value
    kind = classify(value)
    if kind is DocumentKind.CUSTOM_ENCODED:
        return decode_custom(value)
    if kind is DocumentKind.STRUCTURED:
        return _struct_fields(value, resolver, depth + 1)
    if isinstance(value, Mapping):
        pairs = [(key, _convert(item, resolver, depth + 1)) for key, item in value.items()]
        if any(new is not old for (_, new), old in zip(pairs, value.values())):
            return SON(pairs)
        return value
    return value


def to_bson_value(value: Any, *, field_resolver: Optional[FieldResolver] = None) -> Any:
    """Turn nested structured and custom-encoded values into plain SON trees.

    Lists and mappings are rebuilt only when one of their items changed;
    anything else is returned as-is. Raises EncodeError/DecodeError for
    failing custom encoders.
    """
    return _convert(value, field_resolver, 0)


def _struct_fields(value: Any, resolver: Optional[FieldResolver], depth: int) -> SON:
    _check_depth(depth)
    doc = SON()
    for desc, field_value in (resolver or resolve_fields)(value):
        if desc.omit_empty and is_empty(field_value):
            continue
        if desc.inline:
            kind = classify(field_value, honor_encoder=False)
            if kind is DocumentKind.STRUCTURED:
                doc.update(_struct_fields(field_value, resolver, depth + 1))
                continue
            if kind in (DocumentKind.ORDERED_PAIRS, DocumentKind.UNORDERED_MAPPING):
                for key, item in iter_pairs(field_value):
                    doc[key] = _convert(item, resolver, depth + 1)
                continue
        doc[desc.name] = _convert(field_value, resolver, depth + 1)
    return doc


def struct_to_document(
    value: Any,
    *,
    field_resolver: Optional[FieldResolver] = None,
) -> SON:
    """Top-level fields of a structured value.

    Nested values stay nested (no dotted keys) but structured and
    custom-encoded ones are converted to SON so the result encodes with
    ``bson.encode``.
    """
    return _struct_fields(value, field_resolver, 0)


def document_from_struct(value: Any, *append: Tuple[str, Any]) -> SON:
    """Build a document from the top-level fields of ``value`` and extra pairs.

    Returns an empty SON when ``value`` is not a structured value.
    """
    if classify(value, honor_encoder=False) is not DocumentKind.STRUCTURED:
        return SON()
    doc = struct_to_document(value)
    for key, item in append:
        doc[key] = to_bson_value(item)
    return doc


class FlattenOptions:
    """Options for :func:`flatten_document`."""

    def __init__(self, transform: Optional[Transform] = None) -> None:
        self.transform = transform

    def set_transform(self, transform: Transform) -> "FlattenOptions":
        self.transform = transform
        return self


def _join(prefix: str, key: str) -> str:
    return f"{prefix}{PATH_SEPARATOR}{key}" if prefix else key


class Flattener:
    """Collapse nested structured values and mappings into dotted-path keys.

    ``{"struct": {"nested_val": "x"}}`` becomes ``SON([("struct.nested_val", "x")])``;
    lists and scalars are leaves. The transform hook sees every leaf once,
    after its full path is known.
    """

    def __init__(
        self,
        options: Optional[FlattenOptions] = None,
        *,
        field_resolver: Optional[FieldResolver] = None,
    ) -> None:
        self._transform = options.transform if options is not None else None
        self._resolve = field_resolver or resolve_fields

    def flatten(self, value: Any) -> SON:
        kind = classify(value, honor_encoder=False)
        if kind is DocumentKind.UNRECOGNIZED:
            raise InvalidArgumentTypeError(type(value).__name__)
        out = SON()
        self._descend(out, value, kind, "", 0)
        return out

    def _descend(self, out: SON, value: Any, kind: DocumentKind, prefix: str, depth: int) -> None:
        if depth > MAX_NESTING_DEPTH:
            raise UninspectableValueError(
                f"maximum nesting depth ({MAX_NESTING_DEPTH}) exceeded at {prefix!r}", path=prefix
            )
        if kind is DocumentKind.STRUCTURED:
            for desc, field_value in self._resolve(value):
                if desc.omit_empty and is_empty(field_value):
                    continue
                if desc.inline:
                    inner = classify(field_value, honor_encoder=False)
                    if inner in (DocumentKind.STRUCTURED, DocumentKind.UNORDERED_MAPPING) or (
                        inner is DocumentKind.ORDERED_PAIRS and isinstance(field_value, Mapping)
                    ):
                        self._descend(out, field_value, inner, prefix, depth + 1)
                        continue
                self._emit(out, _join(prefix, desc.name), field_value, depth)
            return

        for key, item in iter_pairs(value):
            if not isinstance(key, str):
                raise UninspectableValueError(
                    f"document keys must be strings, got {type(key).__name__} under {prefix!r}",
                    path=prefix,
                )
            path = _join(prefix, key)
            if item is None:
                raise UninspectableValueError(f"cannot inspect type-less value at {path!r}", path=path)
            self._emit(out, path, item, depth)

    def _emit(self, out: SON, path: str, value: Any, depth: int) -> None:
        kind = classify(value, honor_encoder=False)
        if kind is DocumentKind.STRUCTURED or isinstance(value, Mapping):
            self._descend(out, value, kind, path, depth + 1)
            return
        if self._transform is not None:
            path, value = self._transform(path, value)
        out[path] = value


def flatten_document(
    value: Any,
    options: Optional[FlattenOptions] = None,
    *,
    field_resolver: Optional[FieldResolver] = None,
) -> SON:
    """Flatten a structured value or mapping into a single-level document.

    Raises InvalidArgumentTypeError for values that are neither, and
    UninspectableValueError for entries that cannot be introspected.
    """
    return Flattener(options, field_resolver=field_resolver).flatten(value)


def pairs_to_document(pairs: Iterable[Tuple[str, Any]]) -> SON:
    doc = SON()
    for key, item in pairs:
        doc[key] = item
    return doc


__all__ = [
    "DocumentKind",
    "FlattenOptions",
    "Flattener",
    "MAX_NESTING_DEPTH",
    "PATH_SEPARATOR",
    "classify",
    "decode_custom",
    "document_from_struct",
    "flatten_document",
    "has_custom_encoder",
    "iter_pairs",
    "pairs_to_document",
    "struct_to_document",
    "to_bson_value",
]
