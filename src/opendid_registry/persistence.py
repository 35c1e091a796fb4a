"""JSON snapshot persistence for a whole registry.

One JSON file holds the role grants, the initialization flag and every
record of the currently attached stores. Stores that were detached by a
storage swap are not reachable from the state and are not written.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from opendid_registry.access.control import AccessControlRegistry
from opendid_registry.codec.multibase import MultibaseCodec
from opendid_registry.config import RegistryConfig
from opendid_registry.credentials.store import CredentialMetaStore
from opendid_registry.did.store import DocumentStore
from opendid_registry.errors import InvalidArgumentError
from opendid_registry.events import EventLog
from opendid_registry.orchestrator import RegistryState
from opendid_registry.zkp.store import ZKPSchemaStore

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT: int = 1


def dump_state(state: RegistryState) -> dict[str, object]:
    """Serialize *state* to a JSON-compatible dictionary."""
    with state.lock:
        return {
            "format": SNAPSHOT_FORMAT,
            "initialized": state.initialized,
            "roles": state.access_control.to_dict(),
            "document_store": (
                state.document_store.to_dict() if state.document_store is not None else None
            ),
            "vc_meta_store": (
                state.vc_meta_store.to_dict() if state.vc_meta_store is not None else None
            ),
            "zkp_store": state.zkp_store.to_dict() if state.zkp_store is not None else None,
        }


def restore_state(
    data: dict[str, object],
    config: RegistryConfig | None = None,
    events: EventLog | None = None,
    codec: MultibaseCodec | None = None,
) -> RegistryState:
    """Rebuild a :class:`RegistryState` from :func:`dump_state` output.

    Raises
    ------
    InvalidArgumentError
        If the snapshot format is not understood.
    """
    if data.get("format") != SNAPSHOT_FORMAT:
        raise InvalidArgumentError(
            f"Unsupported snapshot format {data.get('format')!r}; expected {SNAPSHOT_FORMAT}"
        )
    config = config or RegistryConfig()
    if events is None:
        events = EventLog(config.event_log_path)

    state = RegistryState(
        access_control=AccessControlRegistry.from_dict(data.get("roles") or {}),  # type: ignore[arg-type]
        events=events,
        config=config,
        initialized=bool(data.get("initialized", False)),
    )
    try:
        if data.get("document_store") is not None:
            state.document_store = DocumentStore(codec=codec, events=events)
            state.document_store.load_dict(data["document_store"])  # type: ignore[arg-type]
        if data.get("vc_meta_store") is not None:
            state.vc_meta_store = CredentialMetaStore(events=events)
            state.vc_meta_store.load_dict(data["vc_meta_store"])  # type: ignore[arg-type]
        if data.get("zkp_store") is not None:
            state.zkp_store = ZKPSchemaStore(events=events)
            state.zkp_store.load_dict(data["zkp_store"])  # type: ignore[arg-type]
    except (ValidationError, KeyError, TypeError) as exc:
        raise InvalidArgumentError(f"Corrupt snapshot record: {exc}") from exc
    return state


def save_state(state: RegistryState, path: Path) -> None:
    """Write a snapshot of *state* to *path*, replacing it atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(dump_state(state), indent=2), encoding="utf-8")
    os.replace(tmp_path, path)
    logger.debug("Saved registry snapshot to %s", path)


def load_state(
    path: Path,
    config: RegistryConfig | None = None,
    events: EventLog | None = None,
    codec: MultibaseCodec | None = None,
) -> RegistryState:
    """Read a snapshot written by :func:`save_state`.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    InvalidArgumentError
        If the file is not a valid snapshot.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(f"Invalid snapshot file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Invalid snapshot file {path}: expected a JSON object")
    logger.debug("Loaded registry snapshot from %s", path)
    return restore_state(data, config=config, events=events, codec=codec)


__all__ = [
    "SNAPSHOT_FORMAT",
    "dump_state",
    "load_state",
    "restore_state",
    "save_state",
]
