"""CredentialMetaStore — VC metadata and VC schema records.

Two independent namespaces keyed by ``id``. Registration is an
unconditional insert-or-overwrite (last write wins); there is no deletion.
"""
from __future__ import annotations

import threading

from opendid_registry.credentials.models import VcMeta, VcSchema
from opendid_registry.errors import AlreadyInitializedError, NotFoundError
from opendid_registry.events import EventLog
from opendid_registry.journal import Journaled


class CredentialMetaStore(Journaled):
    """In-memory store for VC metadata and VC schemas.

    Parameters
    ----------
    events:
        Event log to publish store events to. A private in-memory log is
        created when omitted.
    """

    def __init__(self, events: EventLog | None = None) -> None:
        self._events = events if events is not None else EventLog()
        self._metas: dict[str, VcMeta] = {}
        self._schemas: dict[str, VcSchema] = {}
        self._initialized = False
        self._lock = threading.RLock()

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def has_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """One-time setup; emits ``VcMetaStorageSetup``."""
        with self._lock:
            if self._initialized:
                raise AlreadyInitializedError("CredentialMetaStore is already initialized")
            self._note_attr("_initialized")
            self._initialized = True
        self._events.emit("VcMetaStorageSetup", subject_id="CredentialMetaStore")

    # ------------------------------------------------------------------
    # VC metadata
    # ------------------------------------------------------------------

    def register_vc_meta(self, meta: VcMeta) -> None:
        """Insert or overwrite the metadata stored under ``meta.id``."""
        with self._lock:
            self._note_item(self._metas, meta.id)
            self._metas[meta.id] = meta.model_copy(deep=True)
        self._events.emit(
            "VcMetaRegistered",
            subject_id=meta.id,
            issuer_did=meta.issuer.did,
        )

    def update_vc_meta_status(self, vc_id: str, status: str) -> None:
        """Overwrite the free-form status label of a stored VC.

        Raises
        ------
        NotFoundError
            If no metadata is stored under *vc_id*.
        """
        with self._lock:
            if vc_id not in self._metas:
                raise NotFoundError(f"VC meta {vc_id!r} does not exist")
            previous = self._metas[vc_id].status
            self._note_item(self._metas, vc_id)
            self._metas[vc_id] = self._metas[vc_id].model_copy(update={"status": status})
        self._events.emit(
            "VcMetaStatusUpdated", subject_id=vc_id, previous=previous, status=status
        )

    def get_vc_meta(self, vc_id: str) -> VcMeta:
        """Return the metadata stored under *vc_id*.

        Raises
        ------
        NotFoundError
            If no metadata is stored under *vc_id*.
        """
        with self._lock:
            if vc_id not in self._metas:
                raise NotFoundError(f"VC meta {vc_id!r} does not exist")
            return self._metas[vc_id].model_copy(deep=True)

    # ------------------------------------------------------------------
    # VC schemas
    # ------------------------------------------------------------------

    def register_vc_schema(self, schema: VcSchema) -> None:
        """Insert or overwrite the schema stored under ``schema.id``."""
        with self._lock:
            self._note_item(self._schemas, schema.id)
            self._schemas[schema.id] = schema.model_copy(deep=True)
        self._events.emit("VcSchemaRegistered", subject_id=schema.id)

    def get_vc_schema(self, schema_id: str) -> VcSchema:
        """Return the schema stored under *schema_id*.

        Raises
        ------
        NotFoundError
            If no schema is stored under *schema_id*.
        """
        with self._lock:
            if schema_id not in self._schemas:
                raise NotFoundError(f"VC schema {schema_id!r} does not exist")
            return self._schemas[schema_id].model_copy(deep=True)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        with self._lock:
            return {
                "initialized": self._initialized,
                "vc_metas": [self._metas[k].to_wire() for k in sorted(self._metas)],
                "vc_schemas": [self._schemas[k].to_wire() for k in sorted(self._schemas)],
            }

    def load_dict(self, data: dict[str, object]) -> None:
        metas = [VcMeta.model_validate(entry) for entry in data.get("vc_metas", [])]  # type: ignore[union-attr]
        schemas = [VcSchema.model_validate(entry) for entry in data.get("vc_schemas", [])]  # type: ignore[union-attr]
        with self._lock:
            self._metas = {meta.id: meta for meta in metas}
            self._schemas = {schema.id: schema for schema in schemas}
            self._initialized = bool(data.get("initialized", False))

    def __len__(self) -> int:
        with self._lock:
            return len(self._metas) + len(self._schemas)


__all__ = ["CredentialMetaStore"]
