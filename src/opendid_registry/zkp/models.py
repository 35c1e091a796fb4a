"""Pydantic models for ZKP credential schemas and credential definitions.

Both records allow extra attributes, which are stored and returned
unchanged. A lookup miss returns an *empty* record (``id == ""``) built by
:meth:`ZKPCredentialSchema.empty` / :meth:`ZKPCredentialDefinition.empty`.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from pydantic import Field

from opendid_registry.models import WireModel


class _ZKPRecord(WireModel):
    @property
    def is_empty(self) -> bool:
        return not getattr(self, "id", "")


class ZKPCredentialSchema(_ZKPRecord):
    """A ZKP credential schema (name, version and attribute names)."""

    id: str
    name: str = ""
    version: str = ""
    attr_names: list[str] = Field(default_factory=list)
    tag: str = ""

    @classmethod
    def empty(cls) -> "ZKPCredentialSchema":
        return cls(id="")


class ZKPCredentialDefinition(_ZKPRecord):
    """A ZKP credential definition.

    ``schema_id`` names a :class:`ZKPCredentialSchema` but is not checked:
    the schema may be registered after the definition.
    """

    id: str
    schema_id: str = ""
    ver: str = ""
    type: str = ""
    tag: str = ""
    value: dict[str, object] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> "ZKPCredentialDefinition":
        return cls(id="")


class LookupOutcome(str, Enum):
    """How a ZKP lookup was resolved."""

    FOUND = "found"
    NEVER_REGISTERED = "never_registered"
    REMOVED = "removed"


RecordT = TypeVar("RecordT", ZKPCredentialSchema, ZKPCredentialDefinition)


@dataclass(frozen=True)
class ZKPLookup(Generic[RecordT]):
    """Explicit result of a ZKP lookup.

    ``record`` is the stored record when ``outcome`` is FOUND and the
    empty record otherwise, exactly what the plain getter returns.
    """

    outcome: LookupOutcome
    record: RecordT

    @property
    def found(self) -> bool:
        return self.outcome is LookupOutcome.FOUND


__all__ = [
    "LookupOutcome",
    "ZKPCredentialDefinition",
    "ZKPCredentialSchema",
    "ZKPLookup",
]
