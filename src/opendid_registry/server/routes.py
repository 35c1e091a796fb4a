"""Route handler functions for the registry HTTP server.

Each function accepts the caller identity (where the route mutates state)
and parsed request data, and returns a tuple of
``(status_code, response_dict)``. The HTTP handler in app.py calls these
functions and serializes the results to JSON.

Registry errors map to HTTP statuses by kind; see ``_STATUS_BY_KIND``.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, ValidationError

from opendid_registry import __version__
from opendid_registry.config import RegistryConfig
from opendid_registry.errors import RegistryError
from opendid_registry.orchestrator import OpenDID
from opendid_registry.persistence import load_state, save_state
from opendid_registry.proxy import RegistryProxy
from opendid_registry.server.models import (
    ErrorResponse,
    HealthResponse,
    LookupResponse,
    RegisterRoleRequest,
    RevocationRequest,
    RoleCheckResponse,
    StatusInServiceRequest,
    VcStatusRequest,
)

logger = logging.getLogger(__name__)

Response = tuple[int, dict[str, object]]

_STATUS_BY_KIND: dict[str, int] = {
    "InvalidArgument": 422,
    "NotFound": 404,
    "AlreadyExists": 409,
    "Unauthorized": 403,
    "InvalidTransition": 409,
    "AlreadyInitialized": 409,
    "NotInitialized": 503,
}


def _bootstrap(config: RegistryConfig) -> RegistryProxy:
    if config.state_file is not None and config.state_file.exists():
        return RegistryProxy(OpenDID(load_state(config.state_file, config=config)))
    return RegistryProxy(OpenDID.create(config.admin_address, config=config))


# Module-level shared state
_config: RegistryConfig = RegistryConfig()
_registry: RegistryProxy = RegistryProxy(OpenDID.create(_config.admin_address, config=_config))


def reset_state(config: RegistryConfig | None = None) -> None:
    """Rebuild the shared registry; used in tests and for clean restarts.

    When the config names an existing state file the registry is loaded
    from it, otherwise a new registry is initialized with the configured
    admin address.
    """
    global _config, _registry
    _config = config or RegistryConfig()
    _registry = _bootstrap(_config)


def get_registry() -> RegistryProxy:
    """Return the shared registry proxy."""
    return _registry


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _error(exc: RegistryError) -> Response:
    status = _STATUS_BY_KIND.get(exc.kind, 500)
    return status, ErrorResponse(error=exc.kind, kind=exc.kind, detail=exc.message).model_dump()


def _missing_caller() -> Response:
    return 401, ErrorResponse(
        error="Unauthenticated",
        detail="The X-Caller-Identity header is required for this operation.",
    ).model_dump()


def _parse(model: type[BaseModel], body: dict[str, object]) -> BaseModel | Response:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        return 422, ErrorResponse(error="Validation error", kind="InvalidArgument", detail=str(exc)).model_dump()


def _persist() -> None:
    if _config.state_file is not None:
        save_state(_registry.state, _config.state_file)


def _query(action: Callable[[], Response]) -> Response:
    try:
        return action()
    except RegistryError as exc:
        return _error(exc)


def _mutate(caller: str | None, action: Callable[[str], Response]) -> Response:
    if not caller:
        return _missing_caller()
    try:
        result = action(caller)
    except RegistryError as exc:
        logger.info("Rejected request from %s: %s", caller, exc)
        return _error(exc)
    _persist()
    return result


# ------------------------------------------------------------------
# Health and roles
# ------------------------------------------------------------------


def handle_health() -> Response:
    """Handle GET /health."""
    state = _registry.state
    response = HealthResponse(
        version=__version__,
        implementation_version=_registry.implementation.version,
        initialized=state.initialized,
        document_count=len(state.document_store) if state.document_store is not None else 0,
    )
    return 200, response.model_dump()


def handle_register_role(caller: str | None, body: dict[str, object]) -> Response:
    """Handle POST /roles."""
    request = _parse(RegisterRoleRequest, body)
    if isinstance(request, tuple):
        return request

    def action(who: str) -> Response:
        _registry.register_role(who, request.target, request.role)
        return 201, {"target": request.target, "role": request.role, "granted": True}

    return _mutate(caller, action)


def handle_check_role(identity: str, role: str) -> Response:
    """Handle GET /roles/{identity}/{role}."""
    return _query(
        lambda: (
            200,
            RoleCheckResponse(
                identity=identity, role=role, granted=_registry.has_role(identity, role)
            ).model_dump(),
        )
    )


# ------------------------------------------------------------------
# DID documents
# ------------------------------------------------------------------


def handle_register_did(caller: str | None, body: dict[str, object]) -> Response:
    """Handle POST /dids."""

    def action(who: str) -> Response:
        _registry.register_did_doc(who, body)
        return 201, _registry.get_did_doc(str(body.get("id", ""))).to_wire()

    return _mutate(caller, action)


def handle_get_did(did: str) -> Response:
    """Handle GET /dids/{id}."""
    return _query(lambda: (200, _registry.get_did_doc(did).to_wire()))


def handle_update_did(caller: str | None, did: str, body: dict[str, object]) -> Response:
    """Handle PUT /dids/{id}. The body's ``id`` must equal the path DID."""

    def action(who: str) -> Response:
        _registry.update_did_doc(who, {**body, "id": did})
        return 200, _registry.get_did_doc(did).to_wire()

    if body.get("id", did) != did:
        return 422, ErrorResponse(
            error="InvalidArgument",
            kind="InvalidArgument",
            detail=f"Body id {body.get('id')!r} does not match path DID {did!r}.",
        ).model_dump()
    return _mutate(caller, action)


def handle_get_did_status(did: str) -> Response:
    """Handle GET /dids/{id}/status."""
    return _query(lambda: (200, _registry.get_did_doc_status(did).to_wire()))


def handle_did_status(caller: str | None, did: str, body: dict[str, object]) -> Response:
    """Handle POST /dids/{id}/status (in-service transition)."""
    request = _parse(StatusInServiceRequest, body)
    if isinstance(request, tuple):
        return request

    def action(who: str) -> Response:
        record = _registry.update_did_doc_status_in_service(
            who, did, request.status, request.version_id
        )
        return 200, record.to_wire()

    return _mutate(caller, action)


def handle_did_revocation(caller: str | None, did: str, body: dict[str, object]) -> Response:
    """Handle POST /dids/{id}/revocation."""
    request = _parse(RevocationRequest, body)
    if isinstance(request, tuple):
        return request

    def action(who: str) -> Response:
        record = _registry.update_did_doc_status_revocation(
            who, did, request.status, request.terminated_time
        )
        return 200, record.to_wire()

    return _mutate(caller, action)


def handle_remove_did(caller: str | None, did: str) -> Response:
    """Handle DELETE /dids/{id}."""

    def action(who: str) -> Response:
        _registry.remove_document(who, did)
        return 200, {"id": did, "removed": True}

    return _mutate(caller, action)


# ------------------------------------------------------------------
# VC metadata and schemas
# ------------------------------------------------------------------


def handle_register_vc_meta(caller: str | None, body: dict[str, object]) -> Response:
    """Handle POST /vc-meta."""

    def action(who: str) -> Response:
        _registry.register_vc_meta_data(who, body)
        return 201, _registry.get_vc_meta_data(str(body.get("id", ""))).to_wire()

    return _mutate(caller, action)


def handle_get_vc_meta(vc_id: str) -> Response:
    """Handle GET /vc-meta/{id}."""
    return _query(lambda: (200, _registry.get_vc_meta_data(vc_id).to_wire()))


def handle_vc_meta_status(caller: str | None, vc_id: str, body: dict[str, object]) -> Response:
    """Handle POST /vc-meta/{id}/status."""
    request = _parse(VcStatusRequest, body)
    if isinstance(request, tuple):
        return request

    def action(who: str) -> Response:
        _registry.update_vc_meta_status(who, vc_id, request.status)
        return 200, _registry.get_vc_meta_data(vc_id).to_wire()

    return _mutate(caller, action)


def handle_register_vc_schema(caller: str | None, body: dict[str, object]) -> Response:
    """Handle POST /vc-schemas."""

    def action(who: str) -> Response:
        _registry.register_vc_schema(who, body)
        return 201, _registry.get_vc_schema(str(body.get("id", ""))).to_wire()

    return _mutate(caller, action)


def handle_get_vc_schema(schema_id: str) -> Response:
    """Handle GET /vc-schemas/{id}."""
    return _query(lambda: (200, _registry.get_vc_schema(schema_id).to_wire()))


# ------------------------------------------------------------------
# ZKP schemas and credential definitions
# ------------------------------------------------------------------


def handle_register_zkp_schema(caller: str | None, body: dict[str, object]) -> Response:
    """Handle POST /zkp/schemas."""

    def action(who: str) -> Response:
        _registry.register_zkp_credential(who, body)
        return 201, _registry.get_zkp_credential(str(body.get("id", ""))).to_wire()

    return _mutate(caller, action)


def handle_get_zkp_schema(schema_id: str) -> Response:
    """Handle GET /zkp/schemas/{id}. A miss returns 200 with an empty record."""

    def action() -> Response:
        lookup = _registry.lookup_zkp_credential(schema_id)
        return 200, LookupResponse(
            outcome=lookup.outcome.value, record=lookup.record.to_wire()
        ).model_dump()

    return _query(action)


def handle_remove_zkp_schema(caller: str | None, schema_id: str) -> Response:
    """Handle DELETE /zkp/schemas/{id}."""

    def action(who: str) -> Response:
        _registry.remove_zkp_credential(who, schema_id)
        return 200, {"id": schema_id, "removed": True}

    return _mutate(caller, action)


def handle_register_zkp_definition(caller: str | None, body: dict[str, object]) -> Response:
    """Handle POST /zkp/definitions."""

    def action(who: str) -> Response:
        _registry.register_zkp_credential_definition(who, body)
        return 201, _registry.get_zkp_credential_definition(str(body.get("id", ""))).to_wire()

    return _mutate(caller, action)


def handle_get_zkp_definition(definition_id: str) -> Response:
    """Handle GET /zkp/definitions/{id}. A miss returns 200 with an empty record."""

    def action() -> Response:
        lookup = _registry.lookup_zkp_credential_definition(definition_id)
        return 200, LookupResponse(
            outcome=lookup.outcome.value, record=lookup.record.to_wire()
        ).model_dump()

    return _query(action)


def handle_remove_zkp_definition(caller: str | None, definition_id: str) -> Response:
    """Handle DELETE /zkp/definitions/{id}."""

    def action(who: str) -> Response:
        _registry.remove_zkp_credential_definition(who, definition_id)
        return 200, {"id": definition_id, "removed": True}

    return _mutate(caller, action)


__all__ = [
    "get_registry",
    "handle_check_role",
    "handle_did_revocation",
    "handle_did_status",
    "handle_get_did",
    "handle_get_did_status",
    "handle_get_vc_meta",
    "handle_get_vc_schema",
    "handle_get_zkp_definition",
    "handle_get_zkp_schema",
    "handle_health",
    "handle_register_did",
    "handle_register_role",
    "handle_register_vc_meta",
    "handle_register_vc_schema",
    "handle_register_zkp_definition",
    "handle_register_zkp_schema",
    "handle_remove_did",
    "handle_remove_zkp_definition",
    "handle_remove_zkp_schema",
    "handle_update_did",
    "reset_state",
]
