"""Document normalization helpers for the BSON document model."""

from .doc import (
    MAX_NESTING_DEPTH,
    DocumentKind,
    Flattener,
    FlattenOptions,
    classify,
    document_from_struct,
    flatten_document,
    struct_to_document,
    to_bson_value,
)
from .codec import DOCUMENT_CODEC_OPTIONS, decode_document, encode_document, uuid_from_bson, uuid_to_binary
from .tags import FieldDescriptor, bson_field, parse_tag, resolve_fields

__all__ = [
    "MAX_NESTING_DEPTH",
    "DocumentKind",
    "Flattener",
    "FlattenOptions",
    "classify",
    "document_from_struct",
    "flatten_document",
    "struct_to_document",
    "to_bson_value",
    "DOCUMENT_CODEC_OPTIONS",
    "decode_document",
    "encode_document",
    "uuid_from_bson",
    "uuid_to_binary",
    "FieldDescriptor",
    "bson_field",
    "parse_tag",
    "resolve_fields",
]
