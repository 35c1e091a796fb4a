"""DocumentStore — DID documents and their status records.

Owns every DID document and its :class:`DocumentStatus`. Documents are
keyed by their ``id``. A lookup on an absent id is a hard failure
(:class:`NotFoundError`), unlike the ZKP store's empty-record miss.

All public methods are thread-safe via a single :class:`threading.RLock`.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from opendid_registry.codec.multibase import MultibaseCodec
from opendid_registry.did.document import DidDocument
from opendid_registry.did.keys import validate_document_keys
from opendid_registry.did.status import (
    DidStatus,
    DocumentStatus,
    check_transition,
    parse_status,
)
from opendid_registry.errors import (
    AlreadyExistsError,
    AlreadyInitializedError,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
)
from opendid_registry.events import EventLog
from opendid_registry.journal import Journaled

logger = logging.getLogger(__name__)

DOCUMENT_NOT_FOUND = "Document is not exist"


@dataclass(frozen=True)
class DocumentAndStatus:
    """A stored DID document together with its status record."""

    diddoc: DidDocument
    status: DocumentStatus

    def to_wire(self) -> dict[str, object]:
        return {"diddoc": self.diddoc.to_wire(), "status": int(self.status.status)}


class DocumentStore(Journaled):
    """In-memory store for DID documents and their lifecycle status.

    Parameters
    ----------
    codec:
        Multibase codec used to validate verification-method key material.
    events:
        Event log to publish store events to. A private in-memory log is
        created when omitted.

    Example
    -------
    ::

        store = DocumentStore()
        store.register(document, submitter="0x5B38...")
        result = store.get(document.id)
        assert result.status.status is DidStatus.ACTIVE
    """

    def __init__(
        self,
        codec: MultibaseCodec | None = None,
        events: EventLog | None = None,
    ) -> None:
        self._codec = codec or MultibaseCodec()
        self._events = events if events is not None else EventLog()
        self._documents: dict[str, DidDocument] = {}
        self._statuses: dict[str, DocumentStatus] = {}
        self._submitters: dict[str, str] = {}
        self._initialized = False
        self._lock = threading.RLock()

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def has_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """One-time setup; emits ``DocumentStorageSetup``."""
        with self._lock:
            if self._initialized:
                raise AlreadyInitializedError("DocumentStore is already initialized")
            self._note_attr("_initialized")
            self._initialized = True
        self._events.emit("DocumentStorageSetup", subject_id="DocumentStore")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def register(self, document: DidDocument, submitter: str) -> None:
        """Store a new document with status ``ACTIVE``.

        Raises
        ------
        AlreadyExistsError
            If a document with ``document.id`` is already stored.
        InvalidArgumentError
            If a verification method carries malformed key material.
        """
        validate_document_keys(document, self._codec)
        with self._lock:
            if document.id in self._documents:
                raise AlreadyExistsError(f"Document {document.id!r} already exists")
            self._note_record(document.id)
            self._documents[document.id] = document.model_copy(deep=True)
            self._statuses[document.id] = DocumentStatus(
                id=document.id,
                status=DidStatus.ACTIVE,
                version=document.version_id,
            )
            self._submitters[document.id] = submitter
        logger.debug("Registered document %s (submitter %s)", document.id, submitter)
        self._events.emit(
            "DocumentRegistered",
            subject_id=document.id,
            submitter=submitter,
            version_id=document.version_id,
        )

    def update(self, document: DidDocument, did: str, version_id: str) -> None:
        """Replace the stored document for *did*.

        ``version_id`` is the version the caller intends to write and must
        match ``document.version_id``. The ``deactivated`` flag of the
        stored document is carried over; it is owned by the status
        lifecycle, not by the submitter.

        Raises
        ------
        NotFoundError
            If *did* is not stored.
        InvalidArgumentError
            If ``document.id`` or ``document.version_id`` disagree with the
            arguments.
        InvalidTransitionError
            If the document is ``TERMINATED``.
        """
        if document.id != did:
            raise InvalidArgumentError(
                f"document.id {document.id!r} does not match the target DID {did!r}"
            )
        if document.version_id != version_id:
            raise InvalidArgumentError(
                f"versionId {document.version_id!r} does not match "
                f"the requested version {version_id!r}"
            )
        validate_document_keys(document, self._codec)
        with self._lock:
            if did not in self._documents:
                raise NotFoundError(DOCUMENT_NOT_FOUND)
            status = self._statuses[did]
            if status.status.is_terminal:
                raise InvalidTransitionError(
                    f"Document {did!r} is TERMINATED and cannot be updated"
                )
            self._note_record(did)
            stored = document.model_copy(deep=True)
            stored.deactivated = self._documents[did].deactivated
            self._documents[did] = stored
            self._statuses[did] = status.model_copy(update={"version": version_id})
        self._events.emit("DocumentUpdated", subject_id=did, version_id=version_id)

    def update_status(
        self,
        status_update: DocumentStatus,
        did: str,
        revocation: bool = False,
    ) -> DocumentStatus:
        """Move the document's status forward.

        ``DEACTIVATED`` also sets ``document.deactivated``. The submitted
        ``terminated_time`` is kept when the new status is ``REVOKED`` or
        ``TERMINATED``, or when *revocation* is True; otherwise it is
        cleared.

        Returns
        -------
        DocumentStatus
            The stored status record after the update.

        Raises
        ------
        NotFoundError
            If *did* is not stored.
        InvalidTransitionError
            If the requested status does not move strictly forward.
        """
        requested = parse_status(status_update.status)
        with self._lock:
            if did not in self._documents:
                raise NotFoundError(DOCUMENT_NOT_FOUND)
            current = self._statuses[did]
            check_transition(current.status, requested)

            keep_time = revocation or requested.records_terminated_time
            record = DocumentStatus(
                id=did,
                status=requested,
                version=status_update.version or current.version,
                role_type=status_update.role_type,
                terminated_time=status_update.terminated_time if keep_time else "",
            )
            self._note_record(did)
            self._statuses[did] = record
            if requested >= DidStatus.DEACTIVATED:
                document = self._documents[did]
                if not document.deactivated:
                    self._documents[did] = document.model_copy(
                        update={"deactivated": True}
                    )
        self._events.emit(
            "DocumentStatusUpdated",
            subject_id=did,
            previous=current.status.name,
            status=requested.name,
            terminated_time=record.terminated_time,
        )
        return record.model_copy()

    def remove(self, did: str) -> None:
        """Delete the document and its status record.

        Raises
        ------
        NotFoundError
            If *did* is not stored.
        """
        with self._lock:
            if did not in self._documents:
                raise NotFoundError(DOCUMENT_NOT_FOUND)
            self._note_record(did)
            del self._documents[did]
            del self._statuses[did]
            self._submitters.pop(did, None)
        self._events.emit("DocumentRemoved", subject_id=did)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def get(self, did: str) -> DocumentAndStatus:
        """Return the document and its status.

        Raises
        ------
        NotFoundError
            If *did* is not stored.
        """
        with self._lock:
            if did not in self._documents:
                raise NotFoundError(DOCUMENT_NOT_FOUND)
            return DocumentAndStatus(
                diddoc=self._documents[did].model_copy(deep=True),
                status=self._statuses[did].model_copy(),
            )

    def get_status(self, did: str) -> DocumentStatus:
        """Return only the status record for *did*."""
        return self.get(did).status

    def submitter_of(self, did: str) -> str:
        """Return the identity that registered *did*."""
        with self._lock:
            if did not in self._submitters:
                raise NotFoundError(DOCUMENT_NOT_FOUND)
            return self._submitters[did]

    def list_ids(self) -> list[str]:
        """Return a sorted list of stored DIDs."""
        with self._lock:
            return sorted(self._documents)

    # ------------------------------------------------------------------
    # Journal / serialization
    # ------------------------------------------------------------------

    def _note_record(self, did: str) -> None:
        self._note_item(self._documents, did)
        self._note_item(self._statuses, did)
        self._note_item(self._submitters, did)

    def to_dict(self) -> dict[str, object]:
        """Serialize all records for persistence."""
        with self._lock:
            return {
                "initialized": self._initialized,
                "documents": [
                    {
                        "diddoc": self._documents[did].to_wire(),
                        "status": self._statuses[did].to_wire(),
                        "submitter": self._submitters.get(did, ""),
                    }
                    for did in sorted(self._documents)
                ],
            }

    def load_dict(self, data: dict[str, object]) -> None:
        """Replace the store contents with records produced by :meth:`to_dict`."""
        documents: dict[str, DidDocument] = {}
        statuses: dict[str, DocumentStatus] = {}
        submitters: dict[str, str] = {}
        for entry in data.get("documents", []):  # type: ignore[union-attr]
            document = DidDocument.model_validate(entry["diddoc"])
            documents[document.id] = document
            statuses[document.id] = DocumentStatus.model_validate(entry["status"])
            submitters[document.id] = str(entry.get("submitter", ""))
        with self._lock:
            self._documents = documents
            self._statuses = statuses
            self._submitters = submitters
            self._initialized = bool(data.get("initialized", False))

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, did: object) -> bool:
        with self._lock:
            return did in self._documents


__all__ = ["DOCUMENT_NOT_FOUND", "DocumentAndStatus", "DocumentStore"]
