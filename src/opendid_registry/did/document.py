"""DidDocument — the DID document record held by the document store.

The model follows the W3C DID Core data model
(https://www.w3.org/TR/did-core/#data-model) with the registry's extra
bookkeeping fields ``versionId`` and ``deactivated``. Field names are
snake_case in Python and camelCase on the wire; both spellings are
accepted on input.
"""
from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator, model_validator

from opendid_registry.models import WireModel

DEFAULT_CONTEXT: list[str] = ["https://www.w3.org/ns/did/v1"]


class VerificationMethod(WireModel):
    """A public key attached to a DID document.

    Parameters
    ----------
    id:
        Key identifier, either a bare fragment (``"assert"``) or a full
        DID URL (``"did:omn:tas#assert"``).
    type:
        Key type, e.g. ``"Secp256r1VerificationKey2018"``.
    controller:
        DID controlling this key.
    public_key_multibase:
        Multibase-encoded public key bytes.
    auth_type:
        Authentication type flag carried through unchanged.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    controller: str
    public_key_multibase: str
    auth_type: int = 0

    @field_validator("id", "type", "controller", "public_key_multibase")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class Service(WireModel):
    """A service endpoint advertised in a DID document."""

    id: str
    type: str
    service_endpoint: list[str] | str


class DidDocument(WireModel):
    """A DID document.

    Parameters
    ----------
    id:
        The DID this document describes. Globally unique key in the store.
    controller:
        DID authorized to change the document.
    version_id:
        Caller-maintained version label. Updates must carry the next
        version.
    deactivated:
        Set by the store when the document's status moves to
        ``DEACTIVATED``; never reset to False.
    created / updated:
        ISO-8601 timestamps supplied by the submitter.
    """

    context: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONTEXT), alias="@context"
    )
    id: str
    controller: str
    created: str = ""
    updated: str = ""
    version_id: str = "1"
    deactivated: bool = False
    verification_method: list[VerificationMethod] = Field(default_factory=list)
    assertion_method: list[str] = Field(default_factory=list)
    authentication: list[str] = Field(default_factory=list)
    key_agreement: list[str] = Field(default_factory=list)
    capability_invocation: list[str] = Field(default_factory=list)
    capability_delegation: list[str] = Field(default_factory=list)
    service: list[Service] = Field(default_factory=list)

    @field_validator("id", "controller")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("version_id", mode="before")
    @classmethod
    def _version_as_text(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def _unique_key_ids(self) -> "DidDocument":
        seen: set[str] = set()
        for method in self.verification_method:
            if method.id in seen:
                raise ValueError(f"duplicate verificationMethod id {method.id!r}")
            seen.add(method.id)
        return self

    def find_verification_method(self, key_id: str) -> VerificationMethod | None:
        """Return the verification method whose id (or fragment) is *key_id*."""
        for method in self.verification_method:
            if method.id == key_id or method.id.rsplit("#", 1)[-1] == key_id:
                return method
        return None


__all__ = ["DEFAULT_CONTEXT", "DidDocument", "Service", "VerificationMethod"]
