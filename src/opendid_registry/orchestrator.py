"""OpenDID — the single authorization-gated entry point to the registry.

Every external call goes through :class:`OpenDID`. Mutating operations
take the caller's identity first, check the caller's role against the
shared :class:`AccessControlRegistry`, then delegate to the store that
owns the record.

Each mutating operation runs as one serialized transaction: the state
lock is held for the whole call while an :class:`UndoJournal` notes the
previous value of every role grant and store record the call writes,
along with the store handles. If anything inside raises, the journal puts those values
back and the events the call emitted are discarded.

All registry state lives in a :class:`RegistryState` so that the
implementation can be replaced (see :mod:`opendid_registry.proxy`)
without losing records.
"""
from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from opendid_registry.access.control import AccessControlRegistry, RoleType, role_label
from opendid_registry.codec.multibase import MultibaseCodec
from opendid_registry.config import RegistryConfig
from opendid_registry.credentials.models import VcMeta, VcSchema
from opendid_registry.credentials.store import CredentialMetaStore
from opendid_registry.did.document import DidDocument
from opendid_registry.did.status import DidStatus, DocumentStatus, parse_status
from opendid_registry.did.store import DocumentAndStatus, DocumentStore
from opendid_registry.errors import (
    AlreadyInitializedError,
    InvalidArgumentError,
    NotInitializedError,
    UnauthorizedError,
)
from opendid_registry.events import EventLog
from opendid_registry.journal import UndoJournal
from opendid_registry.zkp.models import ZKPCredentialDefinition, ZKPCredentialSchema, ZKPLookup
from opendid_registry.zkp.store import ZKPSchemaStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _coerce(model: type[ModelT], value: ModelT | Mapping[str, object]) -> ModelT:
    """Return *value* as an instance of *model*, validating mappings."""
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise InvalidArgumentError(f"Malformed {model.__name__}: {exc}") from exc


# ------------------------------------------------------------------
# Shared state
# ------------------------------------------------------------------


@dataclass
class RegistryState:
    """Everything the facade owns or points at.

    The three store fields are handles: the facade reaches records only
    through them, and an Admin may redirect a handle to a different store.
    """

    access_control: AccessControlRegistry = field(default_factory=AccessControlRegistry)
    events: EventLog = field(default_factory=EventLog)
    config: RegistryConfig = field(default_factory=RegistryConfig)
    document_store: DocumentStore | None = None
    vc_meta_store: CredentialMetaStore | None = None
    zkp_store: ZKPSchemaStore | None = None
    initialized: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    journal: UndoJournal | None = field(default=None, repr=False)

    def stores(self) -> list[DocumentStore | CredentialMetaStore | ZKPSchemaStore]:
        return [
            store
            for store in (self.document_store, self.vc_meta_store, self.zkp_store)
            if store is not None
        ]


# ------------------------------------------------------------------
# Facade
# ------------------------------------------------------------------


class OpenDID:
    """Authorization-gated facade over the DID, VC and ZKP stores.

    Parameters
    ----------
    state:
        Shared registry state. A fresh, uninitialized state is created when
        omitted.

    Example
    -------
    ::

        registry = OpenDID.create(admin="0x5B38...")
        registry.register_role("0x5B38...", "0xAb84...", RoleType.TAS)
        registry.register_did_doc("0xAb84...", did_document)
        result = registry.get_did_doc(did_document["id"])
    """

    VERSION: str = "1.0.0"

    def __init__(self, state: RegistryState | None = None) -> None:
        self._state = state if state is not None else RegistryState()

    @classmethod
    def create(
        cls,
        admin: str,
        config: RegistryConfig | None = None,
        events: EventLog | None = None,
        codec: MultibaseCodec | None = None,
    ) -> "OpenDID":
        """Build fresh stores sharing one event log and initialize with *admin*."""
        config = config or RegistryConfig()
        if events is None:
            events = EventLog(config.event_log_path)
        state = RegistryState(events=events, config=config)
        registry = cls(state)
        registry.initialize(
            admin,
            DocumentStore(codec=codec, events=events),
            CredentialMetaStore(events=events),
            ZKPSchemaStore(events=events),
        )
        return registry

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def version(self) -> str:
        return self.VERSION

    @property
    def events(self) -> EventLog:
        return self._state.events

    @property
    def config(self) -> RegistryConfig:
        return self._state.config

    @property
    def has_initialized(self) -> bool:
        return self._state.initialized

    # ------------------------------------------------------------------
    # Transaction and authorization helpers
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def _transaction(self) -> Iterator[UndoJournal]:
        state = self._state
        with state.lock:
            if state.journal is not None:
                yield state.journal
                return
            journal = UndoJournal()
            for name in ("document_store", "vc_meta_store", "zkp_store", "initialized"):
                journal.record_attr(state, name)
            state.journal = journal
            try:
                with journal.watching(state.access_control, *state.stores()):
                    with state.events.staged():
                        yield journal
            except Exception:
                journal.rollback()
                raise
            finally:
                state.journal = None

    def _require_role(self, caller: str, role: RoleType | str) -> None:
        label = role_label(role)
        if not self._state.access_control.has_role(caller, label):
            raise UnauthorizedError(f"Caller does not have {label} role")

    def _emit(self, name: str, subject_id: str, actor: str, **details: object) -> None:
        self._state.events.emit(name, subject_id=subject_id, actor=actor, **details)

    def _documents(self) -> DocumentStore:
        if self._state.document_store is None:
            raise NotInitializedError("Document storage is not set")
        return self._state.document_store

    def _vc_metas(self) -> CredentialMetaStore:
        if self._state.vc_meta_store is None:
            raise NotInitializedError("VC meta storage is not set")
        return self._state.vc_meta_store

    def _zkp(self) -> ZKPSchemaStore:
        if self._state.zkp_store is None:
            raise NotInitializedError("ZKP storage is not set")
        return self._state.zkp_store

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(
        self,
        caller: str,
        document_store: DocumentStore,
        vc_meta_store: CredentialMetaStore,
        zkp_store: ZKPSchemaStore,
    ) -> None:
        """Attach the stores and make *caller* an Admin. Callable once.

        Raises
        ------
        AlreadyInitializedError
            If the registry has already been initialized.
        InvalidArgumentError
            If *caller* is the zero identity.
        """
        with self._transaction() as journal:
            state = self._state
            if state.initialized:
                raise AlreadyInitializedError("OpenDID is already initialized")
            state.access_control.grant_role(caller, RoleType.ADMIN)
            state.document_store = document_store
            state.vc_meta_store = vc_meta_store
            state.zkp_store = zkp_store
            for store in state.stores():
                journal.watch(store)
                if not store.has_initialized:
                    store.initialize()
            state.initialized = True
            self._emit("OpenDIDSetup", subject_id="OpenDID", actor=caller, version=self.VERSION)
        logger.info("OpenDID %s initialized by %s", self.VERSION, caller)

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def register_role(self, caller: str, target: str, role: RoleType | str) -> None:
        """Grant *role* to *target*.

        Open to any caller unless the deployment sets
        ``role_registration_role``, in which case the caller must hold it.
        Granting an existing role is a no-op.
        """
        with self._transaction():
            gate = self._state.config.role_registration_role
            if gate:
                self._require_role(caller, gate)
            if self._state.access_control.grant_role(target, role):
                self._emit("RoleRegistered", subject_id=target, actor=caller, role=role_label(role))

    def has_role(self, target: str, role: RoleType | str) -> bool:
        """Return True if *target* holds *role*."""
        return self._state.access_control.has_role(target, role)

    # ------------------------------------------------------------------
    # DID documents
    # ------------------------------------------------------------------

    def register_did_doc(
        self, caller: str, document: DidDocument | Mapping[str, object]
    ) -> None:
        """Register a new DID document. Requires the ``Tas`` role.

        Emits ``DIDCreated(id, caller)``.
        """
        with self._transaction():
            self._require_role(caller, RoleType.TAS)
            doc = _coerce(DidDocument, document)
            self._documents().register(doc, caller)
            self._emit("DIDCreated", subject_id=doc.id, actor=caller)

    def update_did_doc(
        self, caller: str, document: DidDocument | Mapping[str, object]
    ) -> None:
        """Replace a stored DID document with its next version.

        Requires the deployment's status update role.
        """
        with self._transaction():
            self._require_role(caller, self._state.config.status_update_role)
            doc = _coerce(DidDocument, document)
            self._documents().update(doc, doc.id, doc.version_id)
            self._emit("DIDUpdated", subject_id=doc.id, actor=caller, version_id=doc.version_id)

    def get_did_doc(self, did: str) -> DocumentAndStatus:
        """Return the document and its status; NotFoundError if absent."""
        with self._state.lock:
            return self._documents().get(did)

    def get_did_doc_status(self, did: str) -> DocumentStatus:
        """Return the status record; NotFoundError if absent."""
        with self._state.lock:
            return self._documents().get_status(did)

    def update_did_doc_status_in_service(
        self,
        caller: str,
        did: str,
        status: DidStatus | str,
        version_id: str,
    ) -> DocumentStatus:
        """Move an in-service document to *status* (e.g. ``"DEACTIVATED"``).

        *version_id* must equal the stored document's ``versionId``.
        """
        with self._transaction():
            role = self._state.config.status_update_role
            self._require_role(caller, role)
            requested = parse_status(status)
            store = self._documents()
            current = store.get(did)
            if current.diddoc.version_id != version_id:
                raise InvalidArgumentError(
                    f"versionId {version_id!r} does not match stored version "
                    f"{current.diddoc.version_id!r}"
                )
            record = store.update_status(
                DocumentStatus(id=did, status=requested, version=version_id, role_type=role),
                did,
            )
            self._emit("DIDStatusUpdated", subject_id=did, actor=caller, status=requested.name)
            return record

    def update_did_doc_status_revocation(
        self,
        caller: str,
        did: str,
        status: DidStatus | str,
        terminated_time: str,
    ) -> DocumentStatus:
        """Revoke or terminate a document, recording *terminated_time*."""
        with self._transaction():
            role = self._state.config.status_update_role
            self._require_role(caller, role)
            requested = parse_status(status)
            if not terminated_time.strip():
                raise InvalidArgumentError("terminatedTime must not be empty for a revocation")
            record = self._documents().update_status(
                DocumentStatus(
                    id=did,
                    status=requested,
                    role_type=role,
                    terminated_time=terminated_time,
                ),
                did,
                revocation=True,
            )
            self._emit(
                "DIDStatusUpdated",
                subject_id=did,
                actor=caller,
                status=requested.name,
                terminated_time=terminated_time,
            )
            return record

    def remove_document(self, caller: str, did: str) -> None:
        """Delete a document and its status.

        Allowed for holders of the deployment's removal role and for the
        identity that registered the document.
        """
        with self._transaction():
            store = self._documents()
            removal_role = self._state.config.removal_role
            if not self._state.access_control.has_role(caller, removal_role):
                if store.submitter_of(did) != caller:
                    raise UnauthorizedError(f"Caller does not have {removal_role} role")
            store.remove(did)
            self._emit("DIDRemoved", subject_id=did, actor=caller)

    # ------------------------------------------------------------------
    # VC metadata and schemas
    # ------------------------------------------------------------------

    def register_vc_meta_data(
        self, caller: str, meta: VcMeta | Mapping[str, object]
    ) -> None:
        """Store VC metadata. Requires ``Issuer``.

        Emits ``VCIssued(id, caller, issuerDid)``.
        """
        with self._transaction():
            self._require_role(caller, RoleType.ISSUER)
            record = _coerce(VcMeta, meta)
            self._vc_metas().register_vc_meta(record)
            self._emit("VCIssued", subject_id=record.id, actor=caller, issuer_did=record.issuer.did)

    def get_vc_meta_data(self, vc_id: str) -> VcMeta:
        with self._state.lock:
            return self._vc_metas().get_vc_meta(vc_id)

    def update_vc_meta_status(self, caller: str, vc_id: str, status: str) -> None:
        """Overwrite a VC's status label. Requires ``Issuer``."""
        with self._transaction():
            self._require_role(caller, RoleType.ISSUER)
            self._vc_metas().update_vc_meta_status(vc_id, status)
            self._emit("VCStatusUpdated", subject_id=vc_id, actor=caller, status=status)

    def register_vc_schema(
        self, caller: str, schema: VcSchema | Mapping[str, object]
    ) -> None:
        """Store a VC schema. Requires ``Issuer``; emits ``VCSchemaCreated``."""
        with self._transaction():
            self._require_role(caller, RoleType.ISSUER)
            record = _coerce(VcSchema, schema)
            self._vc_metas().register_vc_schema(record)
            self._emit("VCSchemaCreated", subject_id=record.id, actor=caller)

    def get_vc_schema(self, schema_id: str) -> VcSchema:
        with self._state.lock:
            return self._vc_metas().get_vc_schema(schema_id)

    # ------------------------------------------------------------------
    # ZKP schemas and credential definitions
    # ------------------------------------------------------------------

    def register_zkp_credential(
        self, caller: str, schema: ZKPCredentialSchema | Mapping[str, object]
    ) -> None:
        """Store a ZKP credential schema. Requires ``Issuer``."""
        with self._transaction():
            self._require_role(caller, RoleType.ISSUER)
            record = _coerce(ZKPCredentialSchema, schema)
            self._zkp().register_schema(record)
            self._emit("ZKPCredentialCreated", subject_id=record.id, actor=caller)

    def get_zkp_credential(self, schema_id: str) -> ZKPCredentialSchema:
        """Return the schema or an empty record (``id == ""``)."""
        with self._state.lock:
            return self._zkp().get_schema(schema_id)

    def lookup_zkp_credential(self, schema_id: str) -> ZKPLookup[ZKPCredentialSchema]:
        with self._state.lock:
            return self._zkp().lookup_schema(schema_id)

    def remove_zkp_credential(self, caller: str, schema_id: str) -> None:
        """Remove a ZKP credential schema. Requires the removal role."""
        with self._transaction():
            self._require_role(caller, self._state.config.removal_role)
            self._zkp().remove_schema(schema_id)

    def register_zkp_credential_definition(
        self,
        caller: str,
        definition: ZKPCredentialDefinition | Mapping[str, object],
    ) -> None:
        """Store a ZKP credential definition. Requires ``Issuer``.

        The referenced schema does not have to exist.
        """
        with self._transaction():
            self._require_role(caller, RoleType.ISSUER)
            record = _coerce(ZKPCredentialDefinition, definition)
            self._zkp().register_credential_definition(record)
            self._emit(
                "ZKPCredentialDefinitionCreated",
                subject_id=record.id,
                actor=caller,
                schema_id=record.schema_id,
            )

    def get_zkp_credential_definition(self, definition_id: str) -> ZKPCredentialDefinition:
        """Return the definition or an empty record (``id == ""``)."""
        with self._state.lock:
            return self._zkp().get_credential_definition(definition_id)

    def lookup_zkp_credential_definition(
        self, definition_id: str
    ) -> ZKPLookup[ZKPCredentialDefinition]:
        with self._state.lock:
            return self._zkp().lookup_credential_definition(definition_id)

    def remove_zkp_credential_definition(self, caller: str, definition_id: str) -> None:
        """Remove a ZKP credential definition. Requires the removal role."""
        with self._transaction():
            self._require_role(caller, self._state.config.removal_role)
            self._zkp().remove_credential_definition(definition_id)

    # ------------------------------------------------------------------
    # Storage handles (Admin only)
    # ------------------------------------------------------------------

    def set_document_storage(self, caller: str, store: DocumentStore) -> None:
        """Point the document handle at *store*. Records are not migrated."""
        with self._transaction():
            self._require_role(caller, RoleType.ADMIN)
            self._state.document_store = store
            self._emit("StorageChanged", subject_id="document", actor=caller)

    def set_vc_meta_storage(self, caller: str, store: CredentialMetaStore) -> None:
        """Point the VC meta handle at *store*. Records are not migrated."""
        with self._transaction():
            self._require_role(caller, RoleType.ADMIN)
            self._state.vc_meta_store = store
            self._emit("StorageChanged", subject_id="vc_meta", actor=caller)

    def set_zkp_storage(self, caller: str, store: ZKPSchemaStore) -> None:
        """Point the ZKP handle at *store*. Records are not migrated."""
        with self._transaction():
            self._require_role(caller, RoleType.ADMIN)
            self._state.zkp_store = store
            self._emit("StorageChanged", subject_id="zkp", actor=caller)

    def authorize_upgrade(self, caller: str) -> None:
        """Raise UnauthorizedError unless *caller* may replace this implementation."""
        self._require_role(caller, RoleType.ADMIN)


__all__ = ["OpenDID", "RegistryState"]
