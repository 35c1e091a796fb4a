"""opendid_registry.did — DID documents and their status lifecycle.

Submodules
----------
document
    DidDocument, VerificationMethod, Service.
status
    DidStatus enum, DocumentStatus record, transition rule.
keys
    Key material validation for verification methods.
store
    DocumentStore.

Quick start
-----------
::

    from opendid_registry.did import DidDocument, DocumentStore, DidStatus

    store = DocumentStore()
    store.register(DidDocument.model_validate(payload), submitter="0x5B38...")
    assert store.get(payload["id"]).status.status is DidStatus.ACTIVE
"""
from __future__ import annotations

from opendid_registry.did.document import DEFAULT_CONTEXT, DidDocument, Service, VerificationMethod
from opendid_registry.did.status import DidStatus, DocumentStatus, check_transition, parse_status
from opendid_registry.did.store import DOCUMENT_NOT_FOUND, DocumentAndStatus, DocumentStore

__all__ = [
    "DEFAULT_CONTEXT",
    "DOCUMENT_NOT_FOUND",
    "DidDocument",
    "DidStatus",
    "DocumentAndStatus",
    "DocumentStatus",
    "DocumentStore",
    "Service",
    "VerificationMethod",
    "check_transition",
    "parse_status",
]
