"""HTTP server mode for opendid-registry.

Provides a lightweight stdlib-based HTTP API over the registry facade
without requiring any additional web framework dependencies.
"""
from __future__ import annotations

from opendid_registry.server.app import RegistryRequestHandler, create_server, run_server

__all__ = ["RegistryRequestHandler", "create_server", "run_server"]
