"""Tests for opendid_registry.cli.main — CLI commands via Click test runner."""
from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from opendid_registry.cli.main import DEFAULT_STATE_FILE, cli
from opendid_registry.persistence import load_state

ADMIN = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
TAS = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
ISSUER = "0x4B20993Bc481177ec7E8f571ceCaE8A9e22C02db"
OUTSIDER = "0x78731D3Ca6b7E34aC0F824c42a7cC18A495cabaB"

Invoke = Callable[..., Result]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "registry.json"


@pytest.fixture()
def invoke(runner: CliRunner, state_file: Path, monkeypatch: pytest.MonkeyPatch) -> Invoke:
    monkeypatch.delenv("OPENDID_STATE_FILE", raising=False)
    monkeypatch.delenv("OPENDID_CALLER", raising=False)

    def _invoke(caller: str | None, *args: str) -> Result:
        argv = ["--state-file", str(state_file)]
        if caller is not None:
            argv += ["--caller", caller]
        return runner.invoke(cli, [*argv, *args])

    return _invoke


@pytest.fixture()
def initialized(invoke: Invoke) -> Invoke:
    assert invoke(ADMIN, "init").exit_code == 0
    assert invoke(ADMIN, "role", "grant", TAS, "Tas").exit_code == 0
    assert invoke(ADMIN, "role", "grant", ISSUER, "Issuer").exit_code == 0
    return invoke


def _write(tmp_path: Path, name: str, payload: dict[str, object]) -> str:
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


# ---------------------------------------------------------------------------
# Root CLI
# ---------------------------------------------------------------------------


class TestRootCLI:
    def test_help_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "did" in result.output

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "opendid-registry" in result.output.lower()
        assert "1.0.0" in result.output

    def test_version_option(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "opendid-registry" in result.output


# ---------------------------------------------------------------------------
# init and role
# ---------------------------------------------------------------------------


class TestInitCommand:
    def test_init_creates_state_file(self, invoke: Invoke, state_file: Path) -> None:
        result = invoke(ADMIN, "init")
        assert result.exit_code == 0, result.output
        assert "Initialized" in result.output
        state = load_state(state_file)
        assert state.initialized
        assert state.access_control.has_role(ADMIN, "Admin")

    def test_init_with_explicit_admin(self, invoke: Invoke, state_file: Path) -> None:
        result = invoke(None, "init", "--admin", TAS)
        assert result.exit_code == 0
        assert load_state(state_file).access_control.has_role(TAS, "Admin")

    def test_init_twice_fails(self, invoke: Invoke) -> None:
        invoke(ADMIN, "init")
        result = invoke(ADMIN, "init")
        assert result.exit_code == 1
        assert "AlreadyInitialized" in result.output

    def test_commands_before_init_fail(self, invoke: Invoke) -> None:
        result = invoke(ADMIN, "role", "check", ADMIN, "Admin")
        assert result.exit_code == 1
        assert "NotInitialized" in result.output

    def test_default_state_file_in_working_directory(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("OPENDID_STATE_FILE", raising=False)
        monkeypatch.delenv("OPENDID_EVENT_LOG", raising=False)
        with runner.isolated_filesystem():
            assert runner.invoke(cli, ["--caller", ADMIN, "init"]).exit_code == 0
            assert Path(DEFAULT_STATE_FILE).exists()
            result = runner.invoke(cli, ["role", "check", ADMIN, "Admin"])
            assert result.exit_code == 0, result.output

    def test_state_file_from_environment(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        target = tmp_path / "from-env.json"
        monkeypatch.setenv("OPENDID_STATE_FILE", str(target))
        monkeypatch.delenv("OPENDID_EVENT_LOG", raising=False)
        result = runner.invoke(cli, ["--caller", ADMIN, "init"])
        assert result.exit_code == 0, result.output
        assert load_state(target).initialized


class TestRoleCommands:
    def test_grant_and_check(self, initialized: Invoke) -> None:
        result = initialized(ADMIN, "role", "check", TAS, "Tas")
        assert result.exit_code == 0
        assert "has" in result.output
        assert "does not have" not in result.output

    def test_check_missing_role(self, initialized: Invoke) -> None:
        result = initialized(ADMIN, "role", "check", OUTSIDER, "Tas")
        assert result.exit_code == 0
        assert "does not have" in result.output

    def test_grant_zero_target_fails(self, initialized: Invoke) -> None:
        result = initialized(ADMIN, "role", "grant", "0x" + "0" * 40, "Tas")
        assert result.exit_code == 1
        assert "InvalidArgument" in result.output

    def test_grant_requires_caller(self, initialized: Invoke) -> None:
        result = initialized(None, "role", "grant", OUTSIDER, "Tas")
        assert result.exit_code != 0
        assert "--caller" in result.output


# ---------------------------------------------------------------------------
# did
# ---------------------------------------------------------------------------


class TestDidCommands:
    def test_register_get_and_remove(
        self, initialized: Invoke, tmp_path: Path, did_document: dict[str, object]
    ) -> None:
        doc_file = _write(tmp_path, "doc.json", did_document)
        result = initialized(TAS, "did", "register", doc_file)
        assert result.exit_code == 0, result.output
        assert "Registered" in result.output

        result = initialized(None, "did", "get", "did:omn:tas")
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["status"] == 0
        assert payload["diddoc"]["id"] == "did:omn:tas"

        result = initialized(ADMIN, "did", "remove", "did:omn:tas")
        assert result.exit_code == 0
        assert "Removed" in result.output
        result = initialized(None, "did", "get", "did:omn:tas")
        assert result.exit_code == 1
        assert "NotFound" in result.output

    def test_register_requires_tas(
        self, initialized: Invoke, tmp_path: Path, did_document: dict[str, object]
    ) -> None:
        result = initialized(ISSUER, "did", "register", _write(tmp_path, "doc.json", did_document))
        assert result.exit_code == 1
        assert "Unauthorized" in result.output

    def test_register_invalid_json(self, initialized: Invoke, tmp_path: Path) -> None:
        path = tmp_path / "doc.json"
        path.write_text("{broken", encoding="utf-8")
        result = initialized(TAS, "did", "register", str(path))
        assert result.exit_code == 1
        assert "InvalidArgument" in result.output

    def test_update(
        self, initialized: Invoke, tmp_path: Path, make_did_document: Callable[..., dict[str, object]]
    ) -> None:
        initialized(TAS, "did", "register", _write(tmp_path, "v1.json", make_did_document()))
        result = initialized(
            TAS, "did", "update", _write(tmp_path, "v2.json", make_did_document(version_id="2"))
        )
        assert result.exit_code == 0, result.output
        assert "version 2" in result.output

    def test_status_lifecycle(
        self, initialized: Invoke, tmp_path: Path, did_document: dict[str, object]
    ) -> None:
        initialized(TAS, "did", "register", _write(tmp_path, "doc.json", did_document))

        result = initialized(None, "did", "status", "did:omn:tas")
        assert result.exit_code == 0
        assert "ACTIVE" in result.output

        result = initialized(
            TAS, "did", "status", "did:omn:tas", "--set", "DEACTIVATED", "--version-id", "1"
        )
        assert result.exit_code == 0, result.output
        assert "DEACTIVATED" in result.output

        result = initialized(
            TAS, "did", "status", "did:omn:tas", "--set", "ACTIVE", "--version-id", "1"
        )
        assert result.exit_code == 1
        assert "InvalidTransition" in result.output

    def test_status_set_requires_version(
        self, initialized: Invoke, tmp_path: Path, did_document: dict[str, object]
    ) -> None:
        initialized(TAS, "did", "register", _write(tmp_path, "doc.json", did_document))
        result = initialized(TAS, "did", "status", "did:omn:tas", "--set", "DEACTIVATED")
        assert result.exit_code != 0
        assert "--version-id" in result.output

    def test_revoke_terminated(
        self, initialized: Invoke, tmp_path: Path, did_document: dict[str, object], state_file: Path
    ) -> None:
        initialized(TAS, "did", "register", _write(tmp_path, "doc.json", did_document))
        result = initialized(
            TAS,
            "did",
            "revoke",
            "did:omn:tas",
            "--terminated-time",
            "2025-04-08T00:00:00Z",
            "--status",
            "TERMINATED",
        )
        assert result.exit_code == 0, result.output
        assert "TERMINATED" in result.output
        status = load_state(state_file).document_store.get_status("did:omn:tas")  # type: ignore[union-attr]
        assert status.terminated_time == "2025-04-08T00:00:00Z"


# ---------------------------------------------------------------------------
# vc
# ---------------------------------------------------------------------------


class TestVcCommands:
    def test_meta_flow(
        self, initialized: Invoke, tmp_path: Path, vc_meta: dict[str, object]
    ) -> None:
        result = initialized(ISSUER, "vc", "register-meta", _write(tmp_path, "meta.json", vc_meta))
        assert result.exit_code == 0, result.output

        result = initialized(ISSUER, "vc", "update-status", "vc-0001", "REVOKED")
        assert result.exit_code == 0

        result = initialized(None, "vc", "get-meta", "vc-0001")
        assert result.exit_code == 0
        assert json.loads(result.output)["status"] == "REVOKED"

    def test_schema_flow(
        self, initialized: Invoke, tmp_path: Path, vc_schema: dict[str, object]
    ) -> None:
        result = initialized(
            ISSUER, "vc", "register-schema", _write(tmp_path, "schema.json", vc_schema)
        )
        assert result.exit_code == 0, result.output
        result = initialized(None, "vc", "get-schema", str(vc_schema["id"]))
        assert result.exit_code == 0
        assert json.loads(result.output)["schema"] == vc_schema["schema"]

    def test_get_missing_meta(self, initialized: Invoke) -> None:
        result = initialized(None, "vc", "get-meta", "vc-none")
        assert result.exit_code == 1
        assert "NotFound" in result.output


# ---------------------------------------------------------------------------
# zkp
# ---------------------------------------------------------------------------


class TestZkpCommands:
    def test_schema_flow(
        self, initialized: Invoke, tmp_path: Path, zkp_schema: dict[str, object]
    ) -> None:
        schema_id = str(zkp_schema["id"])
        result = initialized(
            ISSUER, "zkp", "register-schema", _write(tmp_path, "zkp.json", zkp_schema)
        )
        assert result.exit_code == 0, result.output

        result = initialized(None, "zkp", "get-schema", schema_id)
        assert result.exit_code == 0
        assert "Outcome: found" in result.output
        assert "mdl" in result.output

        assert initialized(ISSUER, "zkp", "remove-schema", schema_id).exit_code == 1
        assert initialized(ADMIN, "zkp", "remove-schema", schema_id).exit_code == 0
        result = initialized(None, "zkp", "get-schema", schema_id)
        assert "Outcome: removed" in result.output

    def test_get_unknown_schema_is_not_an_error(self, initialized: Invoke) -> None:
        result = initialized(None, "zkp", "get-schema", "unknown")
        assert result.exit_code == 0
        assert "Outcome: never_registered" in result.output

    def test_definition_flow(
        self, initialized: Invoke, tmp_path: Path, zkp_definition: dict[str, object]
    ) -> None:
        definition_id = str(zkp_definition["id"])
        result = initialized(
            ISSUER, "zkp", "register-definition", _write(tmp_path, "def.json", zkp_definition)
        )
        assert result.exit_code == 0, result.output
        result = initialized(None, "zkp", "get-definition", definition_id)
        assert "Outcome: found" in result.output
        assert initialized(ADMIN, "zkp", "remove-definition", definition_id).exit_code == 0

    def test_register_requires_issuer(
        self, initialized: Invoke, tmp_path: Path, zkp_schema: dict[str, object]
    ) -> None:
        result = initialized(TAS, "zkp", "register-schema", _write(tmp_path, "zkp.json", zkp_schema))
        assert result.exit_code == 1
        assert "Unauthorized" in result.output


# ---------------------------------------------------------------------------
# multibase
# ---------------------------------------------------------------------------


class TestMultibaseCommands:
    def test_encode_text(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["multibase", "encode", "hello"])
        assert result.exit_code == 0
        assert result.output.strip() == "zCn8eVZg"

    def test_encode_hex_base16(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["multibase", "encode", "0aff", "--hex", "--base", "base16"])
        assert result.exit_code == 0
        assert result.output.strip() == "f0aff"

    def test_encode_unknown_base(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["multibase", "encode", "hello", "--base", "base1000"])
        assert result.exit_code == 1
        assert "InvalidArgument" in result.output

    def test_decode(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["multibase", "decode", "zCn8eVZg"])
        assert result.exit_code == 0
        assert "base58btc" in result.output
        assert "hello" in result.output

    def test_decode_hex(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["multibase", "decode", "f0aff", "--hex"])
        assert result.exit_code == 0
        assert "0aff" in result.output

    def test_decode_invalid(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["multibase", "decode", ""])
        assert result.exit_code == 1
        assert "InvalidArgument" in result.output
