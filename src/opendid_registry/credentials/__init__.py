"""Verifiable-credential metadata and schema storage."""
from __future__ import annotations

from opendid_registry.credentials.models import VcCredentialSchema, VcIssuer, VcMeta, VcSchema
from opendid_registry.credentials.store import CredentialMetaStore

__all__ = [
    "CredentialMetaStore",
    "VcCredentialSchema",
    "VcIssuer",
    "VcMeta",
    "VcSchema",
]
