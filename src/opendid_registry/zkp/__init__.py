"""ZKP credential schema and credential definition storage."""
from __future__ import annotations

from opendid_registry.zkp.models import (
    LookupOutcome,
    ZKPCredentialDefinition,
    ZKPCredentialSchema,
    ZKPLookup,
)
from opendid_registry.zkp.store import ZKPSchemaStore

__all__ = [
    "LookupOutcome",
    "ZKPCredentialDefinition",
    "ZKPCredentialSchema",
    "ZKPLookup",
    "ZKPSchemaStore",
]
