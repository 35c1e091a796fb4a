"""HTTP server for opendid-registry using stdlib http.server.

Routes:
    GET    /health                          health check
    POST   /roles                           grant a role
    GET    /roles/{identity}/{role}         check a role
    POST   /dids                            register a DID document
    GET    /dids/{id}                       fetch a document and its status
    PUT    /dids/{id}                       replace a document with a new version
    DELETE /dids/{id}                       remove a document
    GET    /dids/{id}/status                fetch the status record
    POST   /dids/{id}/status                in-service status transition
    POST   /dids/{id}/revocation            revoke or terminate a document
    POST   /vc-meta                         register VC metadata
    GET    /vc-meta/{id}                    fetch VC metadata
    POST   /vc-meta/{id}/status             update a VC status label
    POST   /vc-schemas                      register a VC schema
    GET    /vc-schemas/{id}                 fetch a VC schema
    POST   /zkp/schemas                     register a ZKP credential schema
    GET    /zkp/schemas/{id}                look up a ZKP credential schema
    DELETE /zkp/schemas/{id}                remove a ZKP credential schema
    POST   /zkp/definitions                 register a ZKP credential definition
    GET    /zkp/definitions/{id}            look up a ZKP credential definition
    DELETE /zkp/definitions/{id}            remove a ZKP credential definition

Mutating routes read the caller from the ``X-Caller-Identity`` header.

Usage:
    python -m opendid_registry.server.app --port 8080
    OPENDID_STATE_FILE=registry.json python -m opendid_registry.server.app
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import re
import urllib.parse
from collections.abc import Callable
from http.server import BaseHTTPRequestHandler, HTTPServer

from opendid_registry.config import RegistryConfig
from opendid_registry.server import routes

logger = logging.getLogger(__name__)

CALLER_HEADER = "X-Caller-Identity"

Response = tuple[int, dict[str, object]]

# Path parameters are percent-decoded before dispatch; DIDs contain ':'.
_ROLE_PATTERN = re.compile(r"^/roles/([^/]+)/([^/]+)$")
_DID_PATTERN = re.compile(r"^/dids/([^/]+)$")
_DID_STATUS_PATTERN = re.compile(r"^/dids/([^/]+)/status$")
_DID_REVOCATION_PATTERN = re.compile(r"^/dids/([^/]+)/revocation$")
_VC_META_PATTERN = re.compile(r"^/vc-meta/([^/]+)$")
_VC_META_STATUS_PATTERN = re.compile(r"^/vc-meta/([^/]+)/status$")
_VC_SCHEMA_PATTERN = re.compile(r"^/vc-schemas/([^/]+)$")
_ZKP_SCHEMA_PATTERN = re.compile(r"^/zkp/schemas/([^/]+)$")
_ZKP_DEFINITION_PATTERN = re.compile(r"^/zkp/definitions/([^/]+)$")


def _match(pattern: re.Pattern[str], path: str) -> tuple[str, ...] | None:
    found = pattern.match(path)
    if found is None:
        return None
    return tuple(urllib.parse.unquote(group) for group in found.groups())


class RegistryRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the registry server.

    Implements routing for GET, POST, PUT and DELETE across all supported
    endpoints. All request bodies and responses use JSON.
    """

    def log_message(self, format: str, *args: object) -> None:
        """Override to route access logs through the Python logging system."""
        logger.debug(format, *args)

    # ── GET ───────────────────────────────────────────────────────────────────

    def do_GET(self) -> None:
        """Handle all GET requests by routing on the URL path."""
        path = self._path()

        if path == "/health":
            self._send_json(*routes.handle_health())
            return

        getters: list[tuple[re.Pattern[str], Callable[..., Response]]] = [
            (_ROLE_PATTERN, routes.handle_check_role),
            (_DID_STATUS_PATTERN, routes.handle_get_did_status),
            (_DID_PATTERN, routes.handle_get_did),
            (_VC_META_PATTERN, routes.handle_get_vc_meta),
            (_VC_SCHEMA_PATTERN, routes.handle_get_vc_schema),
            (_ZKP_SCHEMA_PATTERN, routes.handle_get_zkp_schema),
            (_ZKP_DEFINITION_PATTERN, routes.handle_get_zkp_definition),
        ]
        for pattern, handler in getters:
            params = _match(pattern, path)
            if params is not None:
                self._send_json(*handler(*params))
                return
        self._not_found("GET", path)

    # ── POST ──────────────────────────────────────────────────────────────────

    def do_POST(self) -> None:
        """Handle all POST requests by routing on the URL path."""
        path = self._path()

        body = self._read_json_body()
        if body is None:
            return
        caller = self._caller()

        collection_routes: dict[str, Callable[[str | None, dict[str, object]], Response]] = {
            "/roles": routes.handle_register_role,
            "/dids": routes.handle_register_did,
            "/vc-meta": routes.handle_register_vc_meta,
            "/vc-schemas": routes.handle_register_vc_schema,
            "/zkp/schemas": routes.handle_register_zkp_schema,
            "/zkp/definitions": routes.handle_register_zkp_definition,
        }
        if path in collection_routes:
            self._send_json(*collection_routes[path](caller, body))
            return

        item_routes: list[tuple[re.Pattern[str], Callable[..., Response]]] = [
            (_DID_STATUS_PATTERN, routes.handle_did_status),
            (_DID_REVOCATION_PATTERN, routes.handle_did_revocation),
            (_VC_META_STATUS_PATTERN, routes.handle_vc_meta_status),
        ]
        for pattern, handler in item_routes:
            params = _match(pattern, path)
            if params is not None:
                self._send_json(*handler(caller, *params, body))
                return
        self._not_found("POST", path)

    # ── PUT ───────────────────────────────────────────────────────────────────

    def do_PUT(self) -> None:
        """Handle PUT /dids/{id}."""
        path = self._path()

        body = self._read_json_body()
        if body is None:
            return

        params = _match(_DID_PATTERN, path)
        if params is None:
            self._not_found("PUT", path)
            return
        self._send_json(*routes.handle_update_did(self._caller(), params[0], body))

    # ── DELETE ────────────────────────────────────────────────────────────────

    def do_DELETE(self) -> None:
        """Handle all DELETE requests."""
        path = self._path()
        caller = self._caller()

        deleters: list[tuple[re.Pattern[str], Callable[[str | None, str], Response]]] = [
            (_DID_PATTERN, routes.handle_remove_did),
            (_ZKP_SCHEMA_PATTERN, routes.handle_remove_zkp_schema),
            (_ZKP_DEFINITION_PATTERN, routes.handle_remove_zkp_definition),
        ]
        for pattern, handler in deleters:
            params = _match(pattern, path)
            if params is not None:
                self._send_json(*handler(caller, params[0]))
                return
        self._send_json(
            405,
            {"error": "Method not allowed", "detail": f"DELETE not supported on {path}"},
        )

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _path(self) -> str:
        return urllib.parse.urlparse(self.path).path.rstrip("/")

    def _caller(self) -> str | None:
        value = self.headers.get(CALLER_HEADER)
        return value.strip() if value else None

    def _not_found(self, method: str, path: str) -> None:
        self._send_json(404, {"error": "Not found", "detail": f"No route for {method} {path}"})

    def _send_json(self, status: int, data: dict[str, object]) -> None:
        """Serialize *data* to JSON and send an HTTP response with *status*."""
        body = json.dumps(data, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json_body(self) -> dict[str, object] | None:
        """Read and parse the JSON request body.

        Returns None (and sends a 400 error response) if parsing fails or
        the body is not a JSON object.
        """
        content_length = int(self.headers.get("Content-Length", 0))
        if content_length == 0:
            return {}

        raw = self.rfile.read(content_length)
        try:
            parsed = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            self._send_json(400, {"error": "Invalid JSON", "detail": str(exc)})
            return None
        if not isinstance(parsed, dict):
            self._send_json(400, {"error": "Invalid JSON", "detail": "Expected a JSON object"})
            return None
        return parsed


def create_server(
    host: str = "0.0.0.0", port: int = 8080, config: RegistryConfig | None = None
) -> HTTPServer:
    """Create (but do not start) the registry HTTP server.

    Parameters
    ----------
    host:
        Bind address (default ``"0.0.0.0"``, all interfaces).
    port:
        TCP port to listen on (default 8080).
    config:
        When given, the shared registry is rebuilt from it (loading the
        configured state file if one exists).

    Returns
    -------
    HTTPServer
        A configured server instance ready to call ``serve_forever()`` on.
    """
    if config is not None:
        routes.reset_state(config)
    server = HTTPServer((host, port), RegistryRequestHandler)
    logger.info("opendid-registry server created at http://%s:%d", host, port)
    return server


def run_server(config: RegistryConfig | None = None) -> None:
    """Create and run the registry HTTP server (blocking).

    Parameters
    ----------
    config:
        Deployment settings; read from the environment when omitted.
    """
    config = config or RegistryConfig.from_env()
    server = create_server(host=config.host, port=config.port, config=config)
    logger.info("Serving opendid-registry on http://%s:%d, press Ctrl-C to stop", config.host, config.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down opendid-registry server.")
    finally:
        server.server_close()


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="opendid-registry HTTP server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default=None, help="Bind address (overrides OPENDID_HOST)")
    parser.add_argument("--port", type=int, default=None, help="TCP port (overrides OPENDID_PORT)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides OPENDID_LOG_LEVEL)",
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> RegistryConfig:
    base = RegistryConfig.from_env()
    return dataclasses.replace(
        base,
        host=args.host or base.host,
        port=args.port or base.port,
        log_level=args.log_level or base.log_level,
    )


if __name__ == "__main__":
    config = _config_from_args(_build_arg_parser().parse_args())
    logging.basicConfig(level=config.logging_level)
    run_server(config)
