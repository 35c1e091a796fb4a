"""opendid-registry — authorization-gated registry for DID documents, VC metadata and ZKP records.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import opendid_registry
>>> opendid_registry.__version__
'0.1.0'

Quick start
-----------
::

    from opendid_registry import OpenDID, RoleType

    registry = OpenDID.create(admin="0x5B38Da6a701c568545dCfcB03FcB875f56beddC4")
    registry.register_role(admin, tas, RoleType.TAS)
    registry.register_did_doc(tas, did_document)
    registry.get_did_doc(did_document["id"]).status.status  # DidStatus.ACTIVE
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------
from opendid_registry.errors import (
    AlreadyExistsError,
    AlreadyInitializedError,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
    NotInitializedError,
    RegistryError,
    UnauthorizedError,
)

# ------------------------------------------------------------------
# Access control
# ------------------------------------------------------------------
from opendid_registry.access.control import (
    ZERO_IDENTITY,
    AccessControlRegistry,
    RoleType,
    is_zero_identity,
)

# ------------------------------------------------------------------
# Codec and events
# ------------------------------------------------------------------
from opendid_registry.codec.multibase import MultibaseCodec
from opendid_registry.events import EventLog, RegistryEvent

# ------------------------------------------------------------------
# Stores and records
# ------------------------------------------------------------------
from opendid_registry.did.document import DidDocument, Service, VerificationMethod
from opendid_registry.did.status import DidStatus, DocumentStatus
from opendid_registry.did.store import DocumentAndStatus, DocumentStore
from opendid_registry.credentials.models import VcMeta, VcSchema
from opendid_registry.credentials.store import CredentialMetaStore
from opendid_registry.zkp.models import (
    LookupOutcome,
    ZKPCredentialDefinition,
    ZKPCredentialSchema,
    ZKPLookup,
)
from opendid_registry.zkp.store import ZKPSchemaStore

# ------------------------------------------------------------------
# Facade, upgrade and persistence
# ------------------------------------------------------------------
from opendid_registry.config import RegistryConfig
from opendid_registry.orchestrator import OpenDID, RegistryState
from opendid_registry.proxy import RegistryProxy
from opendid_registry.persistence import load_state, save_state

__all__ = [
    "__version__",
    # Errors
    "AlreadyExistsError",
    "AlreadyInitializedError",
    "InvalidArgumentError",
    "InvalidTransitionError",
    "NotFoundError",
    "NotInitializedError",
    "RegistryError",
    "UnauthorizedError",
    # Access control
    "ZERO_IDENTITY",
    "AccessControlRegistry",
    "RoleType",
    "is_zero_identity",
    # Codec and events
    "MultibaseCodec",
    "EventLog",
    "RegistryEvent",
    # Stores and records
    "DidDocument",
    "Service",
    "VerificationMethod",
    "DidStatus",
    "DocumentStatus",
    "DocumentAndStatus",
    "DocumentStore",
    "VcMeta",
    "VcSchema",
    "CredentialMetaStore",
    "LookupOutcome",
    "ZKPCredentialDefinition",
    "ZKPCredentialSchema",
    "ZKPLookup",
    "ZKPSchemaStore",
    # Facade
    "RegistryConfig",
    "OpenDID",
    "RegistryState",
    "RegistryProxy",
    "load_state",
    "save_state",
]
