# doctenancy/mongo/codec.py
"""BSON codec settings shared by every document this package encodes or decodes.

UUIDs are stored as binary subtype 4 (``UuidRepresentation.STANDARD``), so a
``uuid.UUID`` field survives ``encode_document``/``decode_document`` unchanged
and is readable by drivers in other languages.
"""

from __future__ import annotations

import uuid
from typing import Any, Mapping

import bson
from bson.binary import (
    BINARY_SUBTYPE,
    OLD_UUID_SUBTYPE,
    UUID_SUBTYPE,
    Binary,
    UuidRepresentation,
)
from bson.codec_options import CodecOptions
from bson.errors import BSONError
from bson.son import SON

from doctenancy.errors import DecodeError, EncodeError

UUID_SUBTYPES = (BINARY_SUBTYPE, OLD_UUID_SUBTYPE, UUID_SUBTYPE)

DOCUMENT_CODEC_OPTIONS = CodecOptions(
    document_class=SON,
    uuid_representation=UuidRepresentation.STANDARD,
)


def uuid_to_binary(value: Any) -> Binary:
    """Encode a UUID as binary subtype 4."""
    if not isinstance(value, uuid.UUID):
        raise EncodeError(
            f"uuid_to_binary can only encode uuid.UUID, but got {type(value).__name__}",
            type_name=type(value).__name__,
        )
    return Binary.from_uuid(value, UuidRepresentation.STANDARD)


def uuid_from_bson(value: Any) -> uuid.UUID:
    """Read a UUID back from a decoded BSON value.

    Binary values of subtype 0, 3 or 4 with 16 bytes are accepted. ``None``
    (null or undefined in the document) is the nil UUID.
    """
    if value is None:
        return uuid.UUID(int=0)
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
        subtype = value.subtype if isinstance(value, Binary) else BINARY_SUBTYPE
        if subtype not in UUID_SUBTYPES:
            raise DecodeError(
                f"cannot decode {list(raw)} as a UUID: incorrect subtype 0x{subtype:02x}",
                subtype=subtype,
            )
        if len(raw) != 16:
            raise DecodeError(
                f"cannot decode {list(raw)} as a UUID: incorrect length: {len(raw)}",
                length=len(raw),
            )
        return uuid.UUID(bytes=raw)
    raise DecodeError(f"cannot decode {type(value).__name__} as a UUID", type_name=type(value).__name__)


def encode_document(doc: Mapping[str, Any]) -> bytes:
    try:
        return bson.encode(doc, codec_options=DOCUMENT_CODEC_OPTIONS)
    except (BSONError, TypeError, ValueError) as exc:
        raise EncodeError(f"cannot encode document: {exc}") from exc


def decode_document(data: bytes) -> SON:
    try:
        return bson.decode(data, codec_options=DOCUMENT_CODEC_OPTIONS)
    except BSONError as exc:
        raise DecodeError(f"invalid BSON document: {exc}") from exc


__all__ = [
    "DOCUMENT_CODEC_OPTIONS",
    "UUID_SUBTYPES",
    "decode_document",
    "encode_document",
    "uuid_from_bson",
    "uuid_to_binary",
]
