"""ZKPSchemaStore — ZKP credential schemas and credential definitions.

Two independent namespaces keyed by ``id``. Unlike the document store, a
miss is not an error: the getters return an empty record whose ``id`` is
``""``, whether the id was never registered or has been removed. The
``lookup_*`` methods report which of the two happened.
"""
from __future__ import annotations

import threading

from opendid_registry.errors import AlreadyInitializedError, InvalidArgumentError
from opendid_registry.events import EventLog
from opendid_registry.journal import Journaled
from opendid_registry.zkp.models import (
    LookupOutcome,
    ZKPCredentialDefinition,
    ZKPCredentialSchema,
    ZKPLookup,
)


class ZKPSchemaStore(Journaled):
    """In-memory store for ZKP schemas and credential definitions.

    Parameters
    ----------
    events:
        Event log to publish store events to. A private in-memory log is
        created when omitted.
    """

    def __init__(self, events: EventLog | None = None) -> None:
        self._events = events if events is not None else EventLog()
        self._schemas: dict[str, ZKPCredentialSchema] = {}
        self._definitions: dict[str, ZKPCredentialDefinition] = {}
        self._removed_schemas: set[str] = set()
        self._removed_definitions: set[str] = set()
        self._initialized = False
        self._lock = threading.RLock()

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def has_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """One-time setup; emits ``ZKPStorageSetup``."""
        with self._lock:
            if self._initialized:
                raise AlreadyInitializedError("ZKPSchemaStore is already initialized")
            self._note_attr("_initialized")
            self._initialized = True
        self._events.emit("ZKPStorageSetup", subject_id="ZKPSchemaStore")

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def register_schema(self, schema: ZKPCredentialSchema) -> None:
        """Insert or overwrite the schema stored under ``schema.id``."""
        if not schema.id:
            raise InvalidArgumentError("ZKP credential schema id must not be empty")
        with self._lock:
            self._note_item(self._schemas, schema.id)
            self._note_member(self._removed_schemas, schema.id)
            self._schemas[schema.id] = schema.model_copy(deep=True)
            self._removed_schemas.discard(schema.id)
        self._events.emit("ZKPSchemaRegistered", subject_id=schema.id, name=schema.name)

    def get_schema(self, schema_id: str) -> ZKPCredentialSchema:
        """Return the schema, or an empty record if there is none."""
        return self.lookup_schema(schema_id).record

    def lookup_schema(self, schema_id: str) -> ZKPLookup[ZKPCredentialSchema]:
        with self._lock:
            if schema_id in self._schemas:
                return ZKPLookup(
                    LookupOutcome.FOUND, self._schemas[schema_id].model_copy(deep=True)
                )
            removed = schema_id in self._removed_schemas
        outcome = LookupOutcome.REMOVED if removed else LookupOutcome.NEVER_REGISTERED
        return ZKPLookup(outcome, ZKPCredentialSchema.empty())

    def remove_schema(self, schema_id: str) -> None:
        """Delete the schema. Removing an absent id is a no-op."""
        with self._lock:
            self._note_item(self._schemas, schema_id)
            self._note_member(self._removed_schemas, schema_id)
            existed = self._schemas.pop(schema_id, None) is not None
            if existed:
                self._removed_schemas.add(schema_id)
        if existed:
            self._events.emit("ZKPSchemaRemoved", subject_id=schema_id)

    # ------------------------------------------------------------------
    # Credential definitions
    # ------------------------------------------------------------------

    def register_credential_definition(self, definition: ZKPCredentialDefinition) -> None:
        """Insert or overwrite the definition stored under ``definition.id``.

        ``definition.schema_id`` is not required to name a stored schema.
        """
        if not definition.id:
            raise InvalidArgumentError("ZKP credential definition id must not be empty")
        with self._lock:
            self._note_item(self._definitions, definition.id)
            self._note_member(self._removed_definitions, definition.id)
            self._definitions[definition.id] = definition.model_copy(deep=True)
            self._removed_definitions.discard(definition.id)
        self._events.emit(
            "CredentialDefinitionRegistered",
            subject_id=definition.id,
            schema_id=definition.schema_id,
        )

    def get_credential_definition(self, definition_id: str) -> ZKPCredentialDefinition:
        """Return the definition, or an empty record if there is none."""
        return self.lookup_credential_definition(definition_id).record

    def lookup_credential_definition(
        self, definition_id: str
    ) -> ZKPLookup[ZKPCredentialDefinition]:
        with self._lock:
            if definition_id in self._definitions:
                return ZKPLookup(
                    LookupOutcome.FOUND,
                    self._definitions[definition_id].model_copy(deep=True),
                )
            removed = definition_id in self._removed_definitions
        outcome = LookupOutcome.REMOVED if removed else LookupOutcome.NEVER_REGISTERED
        return ZKPLookup(outcome, ZKPCredentialDefinition.empty())

    def remove_credential_definition(self, definition_id: str) -> None:
        """Delete the definition. Removing an absent id is a no-op."""
        with self._lock:
            self._note_item(self._definitions, definition_id)
            self._note_member(self._removed_definitions, definition_id)
            existed = self._definitions.pop(definition_id, None) is not None
            if existed:
                self._removed_definitions.add(definition_id)
        if existed:
            self._events.emit("CredentialDefinitionRemoved", subject_id=definition_id)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        with self._lock:
            return {
                "initialized": self._initialized,
                "schemas": [self._schemas[k].to_wire() for k in sorted(self._schemas)],
                "definitions": [
                    self._definitions[k].to_wire() for k in sorted(self._definitions)
                ],
                "removed_schemas": sorted(self._removed_schemas),
                "removed_definitions": sorted(self._removed_definitions),
            }

    def load_dict(self, data: dict[str, object]) -> None:
        schemas = [
            ZKPCredentialSchema.model_validate(entry)
            for entry in data.get("schemas", [])  # type: ignore[union-attr]
        ]
        definitions = [
            ZKPCredentialDefinition.model_validate(entry)
            for entry in data.get("definitions", [])  # type: ignore[union-attr]
        ]
        with self._lock:
            self._schemas = {schema.id: schema for schema in schemas}
            self._definitions = {definition.id: definition for definition in definitions}
            self._removed_schemas = set(data.get("removed_schemas", []))  # type: ignore[arg-type]
            self._removed_definitions = set(data.get("removed_definitions", []))  # type: ignore[arg-type]
            self._initialized = bool(data.get("initialized", False))

    def __len__(self) -> int:
        with self._lock:
            return len(self._schemas) + len(self._definitions)


__all__ = ["ZKPSchemaStore"]
