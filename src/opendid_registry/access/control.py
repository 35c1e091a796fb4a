"""AccessControlRegistry — per-identity role assignments.

Maps an identity (an address-like string) to the set of role labels it
holds. Role labels are compared case-sensitively. Known labels are
modelled by :class:`RoleType`; free-form labels are still accepted so
that string-based callers keep working, but they are logged because a
typo would otherwise silently create a role nobody checks for.

Grants are permanent: there is no revoke operation.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum

from opendid_registry.errors import InvalidArgumentError
from opendid_registry.journal import Journaled

logger = logging.getLogger(__name__)

ZERO_IDENTITY: str = "0x" + "0" * 40


class RoleType(str, Enum):
    """Role labels understood by the registry."""

    ADMIN = "Admin"
    TAS = "Tas"
    ISSUER = "Issuer"
    VERIFIER = "Verifier"
    WALLET = "Wallet"
    WALLET_PROVIDER = "WalletProvider"
    APP_PROVIDER = "AppProvider"
    LIST_PROVIDER = "ListProvider"
    OP_PROVIDER = "OpProvider"
    KYC_PROVIDER = "KycProvider"
    NOTIFICATION_PROVIDER = "NotificationProvider"
    LOG_PROVIDER = "LogProvider"
    PORTAL_PROVIDER = "PortalProvider"
    DELEGATION_PROVIDER = "DelegationProvider"


_KNOWN_LABELS: frozenset[str] = frozenset(role.value for role in RoleType)


def is_zero_identity(identity: str) -> bool:
    """Return True for the empty identity or an all-zero ``0x`` address."""
    if not identity:
        return True
    if identity[:2].lower() == "0x":
        digits = identity[2:]
        return not digits.strip("0")
    return False


def role_label(role: RoleType | str) -> str:
    """Return the wire label for *role*."""
    if isinstance(role, RoleType):
        return role.value
    return role


def _validate(identity: str, role: RoleType | str) -> str:
    if is_zero_identity(identity):
        raise InvalidArgumentError("Target address cannot be zero")
    label = role_label(role)
    if not label:
        raise InvalidArgumentError("Role type cannot be empty")
    return label


class AccessControlRegistry(Journaled):
    """Thread-safe store of ``(identity, role label)`` grants.

    Example
    -------
    ::

        acl = AccessControlRegistry()
        acl.grant_role("0xabc...", RoleType.ISSUER)
        assert acl.has_role("0xabc...", "Issuer")
    """

    def __init__(self) -> None:
        self._assignments: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def grant_role(self, identity: str, role: RoleType | str) -> bool:
        """Grant *role* to *identity*.

        Granting a role the identity already holds is a no-op.

        Returns
        -------
        bool
            True if the grant was new, False if it already existed.

        Raises
        ------
        InvalidArgumentError
            If *identity* is the zero identity or *role* is empty.
        """
        label = _validate(identity, role)
        if label not in _KNOWN_LABELS:
            logger.warning("Granting unrecognized role label %r to %s", label, identity)
        with self._lock:
            held = self._assignments.get(identity, set())
            if label in held:
                return False
            self._note_item(self._assignments, identity)
            self._assignments[identity] = held | {label}
            return True

    def has_role(self, identity: str, role: RoleType | str) -> bool:
        """Return True if *identity* holds *role*. Never creates state.

        Raises
        ------
        InvalidArgumentError
            If *identity* is the zero identity or *role* is empty.
        """
        label = _validate(identity, role)
        with self._lock:
            return label in self._assignments.get(identity, ())

    def roles_of(self, identity: str) -> list[str]:
        """Return the sorted role labels held by *identity*."""
        with self._lock:
            return sorted(self._assignments.get(identity, ()))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize grants as ``{identity: [labels...]}``."""
        with self._lock:
            return {
                identity: sorted(labels)
                for identity, labels in sorted(self._assignments.items())
            }

    @classmethod
    def from_dict(cls, data: dict[str, list[str]]) -> "AccessControlRegistry":
        registry = cls()
        for identity, labels in data.items():
            for label in labels:
                registry.grant_role(identity, label)
        return registry

    def __len__(self) -> int:
        """Return the number of identities holding at least one role."""
        with self._lock:
            return len(self._assignments)


__all__ = [
    "AccessControlRegistry",
    "RoleType",
    "ZERO_IDENTITY",
    "is_zero_identity",
    "role_label",
]
