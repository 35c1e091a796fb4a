"""Deployment configuration for the registry.

Values come from ``OPENDID_*`` environment variables with the defaults
below. The role settings carry the per-deployment authorization choices:
which role may move a document's status, which role may remove
documents, and whether granting roles is itself Admin-gated.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from opendid_registry.access.control import RoleType, is_zero_identity
from opendid_registry.errors import InvalidArgumentError

DEFAULT_ADMIN_ADDRESS: str = "0x0000000000000000000000000000000000000001"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class RegistryConfig:
    """Registry deployment settings.

    Parameters
    ----------
    admin_address:
        Identity granted ``Admin`` when the server or CLI bootstraps a new
        registry.
    state_file:
        JSON snapshot file the server and CLI load from and save to. None
        keeps state in memory only.
    event_log_path:
        JSONL file for registry events. None buffers events in memory.
    status_update_role:
        Role required to update a document or move its status.
    removal_role:
        Role required to remove documents and ZKP records.
    role_registration_role:
        Role required to grant roles. None leaves role registration open.
    host, port:
        HTTP bind address.
    log_level:
        Python logging level name.
    """

    admin_address: str = DEFAULT_ADMIN_ADDRESS
    state_file: Path | None = None
    event_log_path: Path | None = None
    status_update_role: str = RoleType.TAS.value
    removal_role: str = RoleType.ADMIN.value
    role_registration_role: str | None = None
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if is_zero_identity(self.admin_address):
            raise InvalidArgumentError("admin_address cannot be the zero identity")
        if not self.status_update_role:
            raise InvalidArgumentError("status_update_role must not be empty")
        if not self.removal_role:
            raise InvalidArgumentError("removal_role must not be empty")
        if not 0 < self.port < 65536:
            raise InvalidArgumentError(f"port {self.port} is out of range")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise InvalidArgumentError(
                f"log_level {self.log_level!r} must be one of {sorted(_LOG_LEVELS)}"
            )

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RegistryConfig":
        """Build a config from ``OPENDID_*`` variables.

        Parameters
        ----------
        environ:
            Mapping to read instead of ``os.environ`` (useful in tests).
        """
        env = os.environ if environ is None else environ

        def _path(name: str) -> Path | None:
            value = env.get(name)
            return Path(value) if value else None

        port_raw = env.get("OPENDID_PORT", "8080")
        try:
            port = int(port_raw)
        except ValueError:
            raise InvalidArgumentError(f"OPENDID_PORT {port_raw!r} is not an integer") from None

        return cls(
            admin_address=env.get("OPENDID_ADMIN_ADDRESS", DEFAULT_ADMIN_ADDRESS),
            state_file=_path("OPENDID_STATE_FILE"),
            event_log_path=_path("OPENDID_EVENT_LOG"),
            status_update_role=env.get("OPENDID_STATUS_ROLE", RoleType.TAS.value),
            removal_role=env.get("OPENDID_REMOVAL_ROLE", RoleType.ADMIN.value),
            role_registration_role=env.get("OPENDID_ROLE_REGISTRATION_ROLE") or None,
            host=env.get("OPENDID_HOST", "0.0.0.0"),
            port=port,
            log_level=env.get("OPENDID_LOG_LEVEL", "INFO"),
        )


__all__ = ["DEFAULT_ADMIN_ADDRESS", "RegistryConfig"]
