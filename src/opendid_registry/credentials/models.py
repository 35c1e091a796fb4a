"""Pydantic models for verifiable-credential metadata and schemas."""
from __future__ import annotations

from pydantic import Field, field_validator

from opendid_registry.models import WireModel


class VcIssuer(WireModel):
    """Issuer reference inside VC metadata."""

    did: str
    name: str = ""


class VcCredentialSchema(WireModel):
    """Schema reference inside VC metadata."""

    url: str = ""
    type: str = ""


class VcMeta(WireModel):
    """Metadata about an issued verifiable credential.

    ``status`` is a free-form label (``"issued"``, ``"revoked"``, ...)
    unrelated to the DID status lifecycle.
    """

    id: str
    issuer: VcIssuer
    issuance_date: str = ""
    expiration_date: str = ""
    credential_schema: VcCredentialSchema = Field(default_factory=VcCredentialSchema)
    status: str = ""

    @field_validator("id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class VcSchema(WireModel):
    """An opaque VC schema payload keyed by ``id``.

    The payload is exposed as ``schema_`` in Python (``schema`` is taken on
    BaseModel) and as ``schema`` on the wire.
    """

    id: str
    schema_: str | dict[str, object] = Field(default="", alias="schema")

    @field_validator("id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


__all__ = ["VcCredentialSchema", "VcIssuer", "VcMeta", "VcSchema"]
