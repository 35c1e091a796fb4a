"""Tests for opendid_registry.server.routes — handler functions and status mapping."""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from opendid_registry.config import DEFAULT_ADMIN_ADDRESS, RegistryConfig
from opendid_registry.server import routes

ADMIN = DEFAULT_ADMIN_ADDRESS
TAS = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
ISSUER = "0x4B20993Bc481177ec7E8f571ceCaE8A9e22C02db"
OUTSIDER = "0x78731D3Ca6b7E34aC0F824c42a7cC18A495cabaB"

DocFactory = Callable[..., dict[str, object]]


@pytest.fixture(autouse=True)
def reset_server_state() -> None:
    """Reset module-level state and grant the working roles before each test."""
    routes.reset_state()
    routes.handle_register_role(ADMIN, {"target": TAS, "role": "Tas"})
    routes.handle_register_role(ADMIN, {"target": ISSUER, "role": "Issuer"})


@pytest.fixture()
def registered(did_document: dict[str, object]) -> dict[str, object]:
    status, _ = routes.handle_register_did(TAS, did_document)
    assert status == 201
    return did_document


# ---------------------------------------------------------------------------
# Health and roles
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health_returns_ok(self) -> None:
        status, data = routes.handle_health()
        assert status == 200
        assert data["status"] == "ok"
        assert data["service"] == "opendid-registry"
        assert data["initialized"] is True
        assert data["implementation_version"] == "1.0.0"

    def test_document_count(self, registered: dict[str, object]) -> None:
        _, data = routes.handle_health()
        assert data["document_count"] == 1


class TestRoles:
    def test_register_and_check(self) -> None:
        status, data = routes.handle_register_role(ADMIN, {"target": OUTSIDER, "role": "Verifier"})
        assert status == 201
        assert data == {"target": OUTSIDER, "role": "Verifier", "granted": True}

        status, data = routes.handle_check_role(OUTSIDER, "Verifier")
        assert status == 200
        assert data["granted"] is True

    def test_check_missing_role(self) -> None:
        _, data = routes.handle_check_role(OUTSIDER, "Tas")
        assert data["granted"] is False

    def test_zero_identity_is_422(self) -> None:
        status, data = routes.handle_check_role("0x" + "0" * 40, "Tas")
        assert status == 422
        assert data["kind"] == "InvalidArgument"

    def test_missing_fields_is_422(self) -> None:
        status, data = routes.handle_register_role(ADMIN, {"target": OUTSIDER})
        assert status == 422
        assert data["kind"] == "InvalidArgument"

    def test_missing_caller_is_401(self) -> None:
        status, data = routes.handle_register_role(None, {"target": OUTSIDER, "role": "Tas"})
        assert status == 401
        assert data["error"] == "Unauthenticated"


# ---------------------------------------------------------------------------
# DID documents
# ---------------------------------------------------------------------------


class TestDidRoutes:
    def test_register_returns_document_and_status(self, did_document: dict[str, object]) -> None:
        status, data = routes.handle_register_did(TAS, did_document)
        assert status == 201
        assert data["status"] == 0
        assert data["diddoc"]["id"] == "did:omn:tas"  # type: ignore[index]

    def test_register_duplicate_is_409(self, registered: dict[str, object]) -> None:
        status, data = routes.handle_register_did(TAS, registered)
        assert status == 409
        assert data["kind"] == "AlreadyExists"

    def test_register_without_tas_is_403(self, did_document: dict[str, object]) -> None:
        status, data = routes.handle_register_did(ISSUER, did_document)
        assert status == 403
        assert data["detail"] == "Caller does not have Tas role"

    def test_register_malformed_is_422(self) -> None:
        status, _ = routes.handle_register_did(TAS, {"id": "did:omn:x"})
        assert status == 422

    def test_get_missing_is_404(self) -> None:
        status, data = routes.handle_get_did("did:omn:none")
        assert status == 404
        assert data["detail"] == "Document is not exist"

    def test_update(self, registered: dict[str, object], make_did_document: DocFactory) -> None:
        status, data = routes.handle_update_did(
            TAS, "did:omn:tas", make_did_document(version_id="2")
        )
        assert status == 200
        assert data["diddoc"]["versionId"] == "2"  # type: ignore[index]

    def test_update_id_mismatch_is_422(
        self, registered: dict[str, object], make_did_document: DocFactory
    ) -> None:
        status, _ = routes.handle_update_did(
            TAS, "did:omn:tas", make_did_document(did="did:omn:other", version_id="2")
        )
        assert status == 422

    def test_status_lifecycle(self, registered: dict[str, object]) -> None:
        status, data = routes.handle_did_status(
            TAS, "did:omn:tas", {"status": "DEACTIVATED", "versionId": "1"}
        )
        assert status == 200
        assert data["status"] == 1
        assert data["roleType"] == "Tas"

        status, data = routes.handle_did_status(
            TAS, "did:omn:tas", {"status": "ACTIVE", "versionId": "1"}
        )
        assert status == 409
        assert data["kind"] == "InvalidTransition"

        status, data = routes.handle_get_did_status("did:omn:tas")
        assert status == 200
        assert data["status"] == 1

    def test_status_request_requires_version(self, registered: dict[str, object]) -> None:
        status, _ = routes.handle_did_status(TAS, "did:omn:tas", {"status": "DEACTIVATED"})
        assert status == 422

    def test_revocation(self, registered: dict[str, object]) -> None:
        status, data = routes.handle_did_revocation(
            TAS,
            "did:omn:tas",
            {"status": "TERMINATED", "terminatedTime": "2025-04-08T00:00:00Z"},
        )
        assert status == 200
        assert data["status"] == 3
        assert data["terminatedTime"] == "2025-04-08T00:00:00Z"

    def test_remove(self, registered: dict[str, object]) -> None:
        status, data = routes.handle_remove_did(ADMIN, "did:omn:tas")
        assert status == 200
        assert data == {"id": "did:omn:tas", "removed": True}
        assert routes.handle_get_did("did:omn:tas")[0] == 404

    def test_remove_by_outsider_is_403(self, registered: dict[str, object]) -> None:
        status, _ = routes.handle_remove_did(OUTSIDER, "did:omn:tas")
        assert status == 403

    def test_rejected_request_leaves_health_unchanged(self, did_document: dict[str, object]) -> None:
        routes.handle_register_did(OUTSIDER, did_document)
        assert routes.handle_health()[1]["document_count"] == 0


# ---------------------------------------------------------------------------
# VC metadata and schemas
# ---------------------------------------------------------------------------


class TestVcRoutes:
    def test_meta_flow(self, vc_meta: dict[str, object]) -> None:
        status, data = routes.handle_register_vc_meta(ISSUER, vc_meta)
        assert status == 201
        assert data["id"] == "vc-0001"

        status, data = routes.handle_vc_meta_status(ISSUER, "vc-0001", {"status": "REVOKED"})
        assert status == 200
        assert data["status"] == "REVOKED"

        status, data = routes.handle_get_vc_meta("vc-0001")
        assert status == 200
        assert data["issuer"]["did"] == "did:omn:issuer"  # type: ignore[index]

    def test_meta_requires_issuer(self, vc_meta: dict[str, object]) -> None:
        status, data = routes.handle_register_vc_meta(TAS, vc_meta)
        assert status == 403
        assert data["detail"] == "Caller does not have Issuer role"

    def test_get_missing_meta_is_404(self) -> None:
        assert routes.handle_get_vc_meta("vc-none")[0] == 404

    def test_schema_flow(self, vc_schema: dict[str, object]) -> None:
        status, _ = routes.handle_register_vc_schema(ISSUER, vc_schema)
        assert status == 201
        status, data = routes.handle_get_vc_schema(str(vc_schema["id"]))
        assert status == 200
        assert data["schema"] == vc_schema["schema"]


# ---------------------------------------------------------------------------
# ZKP records
# ---------------------------------------------------------------------------


class TestZkpRoutes:
    def test_schema_flow(self, zkp_schema: dict[str, object]) -> None:
        schema_id = str(zkp_schema["id"])
        status, data = routes.handle_register_zkp_schema(ISSUER, zkp_schema)
        assert status == 201
        assert data["name"] == "mdl"

        status, data = routes.handle_get_zkp_schema(schema_id)
        assert status == 200
        assert data["outcome"] == "found"
        assert data["record"]["id"] == schema_id  # type: ignore[index]

        assert routes.handle_remove_zkp_schema(ISSUER, schema_id)[0] == 403
        assert routes.handle_remove_zkp_schema(ADMIN, schema_id)[0] == 200
        _, data = routes.handle_get_zkp_schema(schema_id)
        assert data["outcome"] == "removed"
        assert data["record"]["id"] == ""  # type: ignore[index]

    def test_unknown_schema_is_200_with_empty_record(self) -> None:
        status, data = routes.handle_get_zkp_schema("unknown")
        assert status == 200
        assert data["outcome"] == "never_registered"
        assert data["record"]["id"] == ""  # type: ignore[index]

    def test_definition_flow(self, zkp_definition: dict[str, object]) -> None:
        definition_id = str(zkp_definition["id"])
        status, data = routes.handle_register_zkp_definition(ISSUER, zkp_definition)
        assert status == 201
        assert data["schemaId"] == zkp_definition["schemaId"]
        _, data = routes.handle_get_zkp_definition(definition_id)
        assert data["outcome"] == "found"
        assert routes.handle_remove_zkp_definition(ADMIN, definition_id)[0] == 200

    def test_register_without_issuer_is_403(self, zkp_schema: dict[str, object]) -> None:
        assert routes.handle_register_zkp_schema(TAS, zkp_schema)[0] == 403


# ---------------------------------------------------------------------------
# State file
# ---------------------------------------------------------------------------


class TestStateFile:
    def test_mutations_are_persisted_and_reloaded(
        self, tmp_path: Path, did_document: dict[str, object]
    ) -> None:
        state_file = tmp_path / "state.json"
        config = RegistryConfig(state_file=state_file)
        routes.reset_state(config)
        routes.handle_register_role(ADMIN, {"target": TAS, "role": "Tas"})
        routes.handle_register_did(TAS, did_document)
        assert state_file.exists()

        routes.reset_state(config)
        status, data = routes.handle_get_did("did:omn:tas")
        assert status == 200
        assert data["status"] == 0

    def test_reset_without_config_starts_empty(self) -> None:
        routes.reset_state()
        assert routes.handle_health()[1]["document_count"] == 0
        assert routes.get_registry().has_role(ADMIN, "Admin")
