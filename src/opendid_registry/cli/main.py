"""CLI entry point for opendid-registry.

Invoked as::

    opendid-registry [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m opendid_registry.cli.main

Registry state lives in a JSON snapshot file (``--state-file`` or
``OPENDID_STATE_FILE``); every mutating command loads it, runs one
registry operation as ``--caller`` and writes it back.

Commands
--------
init                 Create a new registry state file
role grant|check     Grant or check roles
did ...              Register, fetch, update, transition and remove DID documents
vc ...               Register and fetch VC metadata and VC schemas
zkp ...              Register, fetch and remove ZKP schemas and definitions
multibase ...        Encode or decode multibase strings
serve                Run the HTTP server over the state file
version              Show version information
"""
from __future__ import annotations

import dataclasses
import functools
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import IO, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from opendid_registry import __version__
from opendid_registry.codec.multibase import MultibaseCodec
from opendid_registry.config import RegistryConfig
from opendid_registry.errors import (
    AlreadyInitializedError,
    InvalidArgumentError,
    NotInitializedError,
    RegistryError,
)
from opendid_registry.orchestrator import OpenDID
from opendid_registry.persistence import load_state, save_state

console = Console()

DEFAULT_STATE_FILE = "opendid-registry.json"

F = TypeVar("F", bound=Callable[..., object])


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _handle_errors(func: F) -> F:
    """Print registry errors as ``Error [kind]: message`` and exit 1."""

    @functools.wraps(func)
    def wrapper(*args: object, **kwargs: object) -> object:
        try:
            return func(*args, **kwargs)
        except RegistryError as exc:
            console.print(f"[red]Error {escape(f'[{exc.kind}]')}:[/red] {escape(exc.message)}")
            sys.exit(1)

    return wrapper  # type: ignore[return-value]


def _config(ctx: click.Context) -> RegistryConfig:
    config: RegistryConfig = ctx.obj["config"]
    return config


def _state_file(ctx: click.Context) -> Path:
    state_file: Path = ctx.obj["state_file"]
    return state_file


def _caller(ctx: click.Context) -> str:
    caller: str | None = ctx.obj["caller"]
    if not caller:
        raise click.UsageError("--caller (or OPENDID_CALLER) is required for this command.")
    return caller


def _open_registry(ctx: click.Context) -> OpenDID:
    state_file = _state_file(ctx)
    if not state_file.exists():
        raise NotInitializedError(
            f"No registry state at {state_file}; run 'opendid-registry init' first"
        )
    return OpenDID(load_state(state_file, config=_config(ctx)))


def _save(ctx: click.Context, registry: OpenDID) -> None:
    save_state(registry.state, _state_file(ctx))


def _read_json(source: IO[str]) -> dict[str, object]:
    try:
        data = json.load(source)
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(f"Input is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidArgumentError("Input must be a JSON object")
    return data


def _print_record(data: dict[str, object]) -> None:
    console.print_json(json.dumps(data, default=str))


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="opendid-registry")
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"JSON registry snapshot (default: OPENDID_STATE_FILE or ./{DEFAULT_STATE_FILE}).",
)
@click.option(
    "--caller",
    envvar="OPENDID_CALLER",
    default=None,
    help="Identity (address) the command runs as.",
)
@click.pass_context
@_handle_errors
def cli(ctx: click.Context, state_file: Path | None, caller: str | None) -> None:
    """Authorization-gated OpenDID registry for DID documents, VC metadata and ZKP records"""
    base = RegistryConfig.from_env()
    ctx.ensure_object(dict)
    resolved = state_file or base.state_file or Path(DEFAULT_STATE_FILE)
    ctx.obj["config"] = dataclasses.replace(base, state_file=resolved)
    ctx.obj["state_file"] = resolved
    ctx.obj["caller"] = caller


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    console.print(f"[bold]opendid-registry[/bold] v{__version__}")
    console.print(f"  OpenDID implementation: {OpenDID.VERSION}")


@cli.command(name="init")
@click.option(
    "--admin",
    default=None,
    help="Identity granted Admin (default: --caller, then OPENDID_ADMIN_ADDRESS).",
)
@click.pass_context
@_handle_errors
def init_command(ctx: click.Context, admin: str | None) -> None:
    """Create a new registry state file and grant Admin."""
    config = _config(ctx)
    state_file = _state_file(ctx)
    if state_file.exists():
        raise AlreadyInitializedError(f"Registry state already exists at {state_file}")
    admin = admin or ctx.obj["caller"] or config.admin_address
    registry = OpenDID.create(admin, config=config)
    _save(ctx, registry)
    console.print(f"[green]Initialized[/green] OpenDID {registry.version} at {state_file}")
    console.print(f"  Admin: {admin}")


# ------------------------------------------------------------------
# role
# ------------------------------------------------------------------


@cli.group(name="role")
def role_group() -> None:
    """Grant and check roles."""


@role_group.command(name="grant")
@click.argument("target")
@click.argument("role")
@click.pass_context
@_handle_errors
def role_grant_command(ctx: click.Context, target: str, role: str) -> None:
    """Grant ROLE to TARGET."""
    registry = _open_registry(ctx)
    registry.register_role(_caller(ctx), target, role)
    _save(ctx, registry)
    console.print(f"[green]Granted[/green] {escape(role)} to {target}")


@role_group.command(name="check")
@click.argument("identity")
@click.argument("role")
@click.pass_context
@_handle_errors
def role_check_command(ctx: click.Context, identity: str, role: str) -> None:
    """Check whether IDENTITY holds ROLE."""
    registry = _open_registry(ctx)
    if registry.has_role(identity, role):
        console.print(f"{identity} [green]has[/green] role {escape(role)}")
    else:
        console.print(f"{identity} [yellow]does not have[/yellow] role {escape(role)}")


# ------------------------------------------------------------------
# did
# ------------------------------------------------------------------


@cli.group(name="did")
def did_group() -> None:
    """Manage DID documents and their status."""


@did_group.command(name="register")
@click.argument("document_file", type=click.File("r"))
@click.pass_context
@_handle_errors
def did_register_command(ctx: click.Context, document_file: IO[str]) -> None:
    """Register the DID document in DOCUMENT_FILE (JSON, '-' for stdin)."""
    document = _read_json(document_file)
    registry = _open_registry(ctx)
    registry.register_did_doc(_caller(ctx), document)
    _save(ctx, registry)
    console.print(f"[green]Registered[/green] {escape(str(document.get('id')))}")


@did_group.command(name="get")
@click.argument("did")
@click.pass_context
@_handle_errors
def did_get_command(ctx: click.Context, did: str) -> None:
    """Print the document and status stored for DID."""
    _print_record(_open_registry(ctx).get_did_doc(did).to_wire())


@did_group.command(name="update")
@click.argument("document_file", type=click.File("r"))
@click.pass_context
@_handle_errors
def did_update_command(ctx: click.Context, document_file: IO[str]) -> None:
    """Replace a stored DID document with the version in DOCUMENT_FILE."""
    document = _read_json(document_file)
    registry = _open_registry(ctx)
    registry.update_did_doc(_caller(ctx), document)
    _save(ctx, registry)
    console.print(
        f"[green]Updated[/green] {escape(str(document.get('id')))} "
        f"to version {escape(str(document.get('versionId', '1')))}"
    )


@did_group.command(name="status")
@click.argument("did")
@click.option("--set", "new_status", default=None, help="Move the document to this status.")
@click.option("--version-id", default=None, help="Stored versionId, required with --set.")
@click.pass_context
@_handle_errors
def did_status_command(
    ctx: click.Context, did: str, new_status: str | None, version_id: str | None
) -> None:
    """Show the status of DID, or move it in service with --set."""
    registry = _open_registry(ctx)
    if new_status is not None:
        if version_id is None:
            raise click.UsageError("--version-id is required with --set.")
        record = registry.update_did_doc_status_in_service(
            _caller(ctx), did, new_status, version_id
        )
        _save(ctx, registry)
    else:
        record = registry.get_did_doc_status(did)

    table = Table(title=f"Status: {did}", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("status", record.status.name)
    table.add_row("version", record.version)
    table.add_row("roleType", record.role_type or "-")
    table.add_row("terminatedTime", record.terminated_time or "-")
    console.print(table)


@did_group.command(name="revoke")
@click.argument("did")
@click.option("--terminated-time", required=True, help="Time the key material stopped being valid.")
@click.option(
    "--status",
    "new_status",
    default="REVOKED",
    show_default=True,
    help="REVOKED or TERMINATED.",
)
@click.pass_context
@_handle_errors
def did_revoke_command(
    ctx: click.Context, did: str, terminated_time: str, new_status: str
) -> None:
    """Revoke or terminate DID."""
    registry = _open_registry(ctx)
    record = registry.update_did_doc_status_revocation(
        _caller(ctx), did, new_status, terminated_time
    )
    _save(ctx, registry)
    console.print(f"[green]{record.status.name}[/green] {did} at {escape(terminated_time)}")


@did_group.command(name="remove")
@click.argument("did")
@click.pass_context
@_handle_errors
def did_remove_command(ctx: click.Context, did: str) -> None:
    """Remove DID and its status record."""
    registry = _open_registry(ctx)
    registry.remove_document(_caller(ctx), did)
    _save(ctx, registry)
    console.print(f"[green]Removed[/green] {did}")


# ------------------------------------------------------------------
# vc
# ------------------------------------------------------------------


@cli.group(name="vc")
def vc_group() -> None:
    """Manage VC metadata and VC schemas."""


@vc_group.command(name="register-meta")
@click.argument("meta_file", type=click.File("r"))
@click.pass_context
@_handle_errors
def vc_register_meta_command(ctx: click.Context, meta_file: IO[str]) -> None:
    """Register the VC metadata in META_FILE."""
    meta = _read_json(meta_file)
    registry = _open_registry(ctx)
    registry.register_vc_meta_data(_caller(ctx), meta)
    _save(ctx, registry)
    console.print(f"[green]Registered[/green] VC meta {escape(str(meta.get('id')))}")


@vc_group.command(name="get-meta")
@click.argument("vc_id")
@click.pass_context
@_handle_errors
def vc_get_meta_command(ctx: click.Context, vc_id: str) -> None:
    """Print the metadata stored for VC_ID."""
    _print_record(_open_registry(ctx).get_vc_meta_data(vc_id).to_wire())


@vc_group.command(name="update-status")
@click.argument("vc_id")
@click.argument("status")
@click.pass_context
@_handle_errors
def vc_update_status_command(ctx: click.Context, vc_id: str, status: str) -> None:
    """Set the status label of VC_ID to STATUS."""
    registry = _open_registry(ctx)
    registry.update_vc_meta_status(_caller(ctx), vc_id, status)
    _save(ctx, registry)
    console.print(f"[green]Updated[/green] {vc_id} status to {escape(status)}")


@vc_group.command(name="register-schema")
@click.argument("schema_file", type=click.File("r"))
@click.pass_context
@_handle_errors
def vc_register_schema_command(ctx: click.Context, schema_file: IO[str]) -> None:
    """Register the VC schema in SCHEMA_FILE."""
    schema = _read_json(schema_file)
    registry = _open_registry(ctx)
    registry.register_vc_schema(_caller(ctx), schema)
    _save(ctx, registry)
    console.print(f"[green]Registered[/green] VC schema {escape(str(schema.get('id')))}")


@vc_group.command(name="get-schema")
@click.argument("schema_id")
@click.pass_context
@_handle_errors
def vc_get_schema_command(ctx: click.Context, schema_id: str) -> None:
    """Print the VC schema stored under SCHEMA_ID."""
    _print_record(_open_registry(ctx).get_vc_schema(schema_id).to_wire())


# ------------------------------------------------------------------
# zkp
# ------------------------------------------------------------------


@cli.group(name="zkp")
def zkp_group() -> None:
    """Manage ZKP credential schemas and credential definitions."""


@zkp_group.command(name="register-schema")
@click.argument("schema_file", type=click.File("r"))
@click.pass_context
@_handle_errors
def zkp_register_schema_command(ctx: click.Context, schema_file: IO[str]) -> None:
    """Register the ZKP credential schema in SCHEMA_FILE."""
    schema = _read_json(schema_file)
    registry = _open_registry(ctx)
    registry.register_zkp_credential(_caller(ctx), schema)
    _save(ctx, registry)
    console.print(f"[green]Registered[/green] ZKP schema {escape(str(schema.get('id')))}")


@zkp_group.command(name="get-schema")
@click.argument("schema_id")
@click.pass_context
@_handle_errors
def zkp_get_schema_command(ctx: click.Context, schema_id: str) -> None:
    """Look up a ZKP credential schema. A miss prints an empty record."""
    lookup = _open_registry(ctx).lookup_zkp_credential(schema_id)
    console.print(f"Outcome: {lookup.outcome.value}")
    _print_record(lookup.record.to_wire())


@zkp_group.command(name="remove-schema")
@click.argument("schema_id")
@click.pass_context
@_handle_errors
def zkp_remove_schema_command(ctx: click.Context, schema_id: str) -> None:
    """Remove the ZKP credential schema SCHEMA_ID."""
    registry = _open_registry(ctx)
    registry.remove_zkp_credential(_caller(ctx), schema_id)
    _save(ctx, registry)
    console.print(f"[green]Removed[/green] ZKP schema {escape(schema_id)}")


@zkp_group.command(name="register-definition")
@click.argument("definition_file", type=click.File("r"))
@click.pass_context
@_handle_errors
def zkp_register_definition_command(ctx: click.Context, definition_file: IO[str]) -> None:
    """Register the ZKP credential definition in DEFINITION_FILE."""
    definition = _read_json(definition_file)
    registry = _open_registry(ctx)
    registry.register_zkp_credential_definition(_caller(ctx), definition)
    _save(ctx, registry)
    console.print(
        f"[green]Registered[/green] ZKP credential definition {escape(str(definition.get('id')))}"
    )


@zkp_group.command(name="get-definition")
@click.argument("definition_id")
@click.pass_context
@_handle_errors
def zkp_get_definition_command(ctx: click.Context, definition_id: str) -> None:
    """Look up a ZKP credential definition. A miss prints an empty record."""
    lookup = _open_registry(ctx).lookup_zkp_credential_definition(definition_id)
    console.print(f"Outcome: {lookup.outcome.value}")
    _print_record(lookup.record.to_wire())


@zkp_group.command(name="remove-definition")
@click.argument("definition_id")
@click.pass_context
@_handle_errors
def zkp_remove_definition_command(ctx: click.Context, definition_id: str) -> None:
    """Remove the ZKP credential definition DEFINITION_ID."""
    registry = _open_registry(ctx)
    registry.remove_zkp_credential_definition(_caller(ctx), definition_id)
    _save(ctx, registry)
    console.print(f"[green]Removed[/green] ZKP credential definition {escape(definition_id)}")


# ------------------------------------------------------------------
# multibase
# ------------------------------------------------------------------


@cli.group(name="multibase")
def multibase_group() -> None:
    """Encode and decode multibase strings."""


@multibase_group.command(name="encode")
@click.argument("data")
@click.option(
    "--base",
    default="base58btc",
    show_default=True,
    help="base58btc (alias base58), base64, base64url, base16 or base32.",
)
@click.option("--hex", "from_hex", is_flag=True, help="Treat DATA as hex-encoded bytes.")
@_handle_errors
def multibase_encode_command(data: str, base: str, from_hex: bool) -> None:
    """Encode DATA (UTF-8 text, or hex with --hex) as a multibase string."""
    if from_hex:
        try:
            raw = bytes.fromhex(data)
        except ValueError as exc:
            raise InvalidArgumentError(f"DATA is not valid hex: {exc}") from exc
    else:
        raw = data.encode("utf-8")
    click.echo(MultibaseCodec().encode(raw, base))


@multibase_group.command(name="decode")
@click.argument("value")
@click.option("--hex", "to_hex", is_flag=True, help="Print the decoded bytes as hex.")
@_handle_errors
def multibase_decode_command(value: str, to_hex: bool) -> None:
    """Decode a multibase VALUE and print its base and bytes."""
    codec = MultibaseCodec()
    raw = codec.decode(value)
    console.print(f"Base:  {codec.base_of(value)}")
    if to_hex:
        console.print(f"Bytes: {raw.hex()}")
    else:
        console.print(f"Bytes: {escape(raw.decode('utf-8', errors='replace'))}")


# ------------------------------------------------------------------
# serve
# ------------------------------------------------------------------


@cli.command(name="serve")
@click.option("--host", default=None, help="Bind address (default: OPENDID_HOST).")
@click.option("--port", type=int, default=None, help="TCP port (default: OPENDID_PORT).")
@click.pass_context
@_handle_errors
def serve_command(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the HTTP server over the registry state file."""
    import logging

    from opendid_registry.server.app import run_server

    base = _config(ctx)
    config = dataclasses.replace(base, host=host or base.host, port=port or base.port)
    logging.basicConfig(level=config.logging_level)
    console.print(f"Serving opendid-registry on http://{config.host}:{config.port}")
    run_server(config)


if __name__ == "__main__":
    cli()
