"""Role-based access control for the registry.

Quick start
-----------
::

    from opendid_registry.access import AccessControlRegistry, RoleType

    acl = AccessControlRegistry()
    acl.grant_role("0x5B38Da6a701c568545dCfcB03FcB875f56beddC4", RoleType.TAS)
    acl.has_role("0x5B38Da6a701c568545dCfcB03FcB875f56beddC4", "Tas")  # True
"""
from __future__ import annotations

from opendid_registry.access.control import (
    ZERO_IDENTITY,
    AccessControlRegistry,
    RoleType,
    is_zero_identity,
    role_label,
)

__all__ = [
    "AccessControlRegistry",
    "RoleType",
    "ZERO_IDENTITY",
    "is_zero_identity",
    "role_label",
]
