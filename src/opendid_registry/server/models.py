"""Pydantic request/response models for the registry HTTP server.

Record payloads (DID documents, VC metadata, ...) are validated by the
record models themselves; these models cover the small request envelopes
and the fixed-shape responses.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRoleRequest(_Request):
    """Request body for POST /roles."""

    target: str
    role: str


class StatusInServiceRequest(_Request):
    """Request body for POST /dids/{id}/status."""

    status: str
    version_id: str


class RevocationRequest(_Request):
    """Request body for POST /dids/{id}/revocation."""

    status: str
    terminated_time: str


class VcStatusRequest(_Request):
    """Request body for POST /vc-meta/{id}/status."""

    status: str


class RoleCheckResponse(BaseModel):
    """Response body for GET /roles/{identity}/{role}."""

    identity: str
    role: str
    granted: bool


class LookupResponse(BaseModel):
    """Response body for ZKP lookups: the record plus how it was resolved."""

    outcome: str
    record: dict[str, object] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "ok"
    service: str = "opendid-registry"
    version: str = "0.1.0"
    implementation_version: str = ""
    initialized: bool = False
    document_count: int = 0


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    kind: str = ""
    detail: str = ""


__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "LookupResponse",
    "RegisterRoleRequest",
    "RevocationRequest",
    "RoleCheckResponse",
    "StatusInServiceRequest",
    "VcStatusRequest",
]
