# doctenancy/errors.py
"""Exception hierarchy for doctenancy."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_ARGUMENT_TYPE = "invalid_argument_type"
    UNINSPECTABLE_VALUE = "uninspectable_value"
    ENCODE_FAILURE = "encode_failure"
    DECODE_FAILURE = "decode_failure"
    IDENTITY = "identity"
    CONFIGURATION = "configuration"


class DoctenancyError(Exception):
    """Base exception for doctenancy."""

    kind: ErrorKind

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidArgumentTypeError(DoctenancyError, TypeError):
    """A value that is not a struct or map-like type was passed to the flattener."""

    kind = ErrorKind.INVALID_ARGUMENT_TYPE

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"[programming error] invalid argument type {type_name}, "
            "expected struct or map-like type",
            type_name=type_name,
        )
        self.type_name = type_name


class UninspectableValueError(DoctenancyError, ValueError):
    """A value met while descending a document cannot be introspected."""

    kind = ErrorKind.UNINSPECTABLE_VALUE

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message, path=path)
        self.path = path


class EncodeError(DoctenancyError):
    """A custom-encoded value failed to produce its BSON bytes."""

    kind = ErrorKind.ENCODE_FAILURE


class DecodeError(DoctenancyError):
    """Encoded bytes did not parse back as a document."""

    kind = ErrorKind.DECODE_FAILURE


class IdentityError(DoctenancyError):
    """Identity claims could not be extracted from a request or token."""

    kind = ErrorKind.IDENTITY


class ConfigurationError(DoctenancyError):
    """Invalid configuration."""

    kind = ErrorKind.CONFIGURATION


__all__ = [
    "ErrorKind",
    "DoctenancyError",
    "InvalidArgumentTypeError",
    "UninspectableValueError",
    "EncodeError",
    "DecodeError",
    "IdentityError",
    "ConfigurationError",
]
