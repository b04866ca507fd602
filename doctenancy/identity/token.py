# doctenancy/identity/token.py
"""Identity claims carried by a request's JWT.

Claims are read WITHOUT verifying the token signature; verification is the
job of the gateway in front of the service.
"""

from __future__ import annotations

from typing import Any

from jose import jwt
from jose.exceptions import JWTError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from starlette.requests import Request

from doctenancy.errors import IdentityError

DEFAULT_JWT_COOKIE = "JWT"


class Identity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    subject: str = Field(alias="sub")
    tenant: str = Field("", alias="tenant_id")
    is_user: bool = Field(False, alias="is_user")
    is_device: bool = Field(False, alias="is_device")
    plan: str = Field("", alias="plan")
    trial: bool = Field(False, alias="trial")

    @field_validator("subject")
    @classmethod
    def _subject_required(cls, value: str) -> str:
        if not value:
            raise ValueError('claim "sub" is required')
        return value


def _format_validation_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{loc or 'claims'}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def extract_identity(token: str) -> Identity:
    """Decode the claims segment of ``token`` into an :class:`Identity`."""
    try:
        claims: Any = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise IdentityError(f"identity: failed to decode JWT claims: {exc}") from exc
    try:
        return Identity.model_validate(claims)
    except ValidationError as exc:
        raise IdentityError(f"identity: invalid JWT claims: {_format_validation_errors(exc)}") from exc


def extract_jwt_from_request(request: Request, *, cookie_name: str = DEFAULT_JWT_COOKIE) -> str:
    """Return the bearer token of a request.

    The ``Authorization: Bearer <token>`` header wins; the ``cookie_name``
    cookie is used when no Authorization header is present.
    """
    auth = request.headers.get("authorization")
    if auth is not None:
        scheme, _, token = auth.strip().partition(" ")
        if scheme != "Bearer":
            raise IdentityError(f"unknown authorization method {scheme!r}")
        token = token.strip()
        if not token:
            raise IdentityError("malformed authorization data")
        return token
    token = request.cookies.get(cookie_name)
    if token:
        return token
    raise IdentityError("Authorization not present in header")


__all__ = [
    "DEFAULT_JWT_COOKIE",
    "Identity",
    "extract_identity",
    "extract_jwt_from_request",
]
