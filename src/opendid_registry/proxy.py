"""RegistryProxy — replaceable implementation over preserved state.

The proxy owns a :class:`RegistryState` indirectly through its current
:class:`OpenDID` implementation and forwards every attribute lookup to
it. :meth:`RegistryProxy.upgrade_to` swaps in a new implementation class
built on the *same* state object, so all role grants, store handles and
records survive the upgrade. Only an ``Admin`` may upgrade.
"""
from __future__ import annotations

import logging

from opendid_registry.errors import InvalidArgumentError
from opendid_registry.orchestrator import OpenDID, RegistryState

logger = logging.getLogger(__name__)


class RegistryProxy:
    """Stable handle to an upgradeable :class:`OpenDID` implementation.

    Example
    -------
    ::

        proxy = RegistryProxy(OpenDID.create(admin="0x5B38..."))
        proxy.register_role("0x5B38...", "0xAb84...", "Tas")
        proxy.upgrade_to("0x5B38...", OpenDIDV2)
        proxy.version  # "2.0.0"
    """

    def __init__(self, implementation: OpenDID) -> None:
        self._implementation = implementation

    @property
    def implementation(self) -> OpenDID:
        return self._implementation

    @property
    def state(self) -> RegistryState:
        return self._implementation.state

    def upgrade_to(self, caller: str, implementation_cls: type[OpenDID]) -> OpenDID:
        """Replace the implementation with *implementation_cls*.

        Raises
        ------
        UnauthorizedError
            If *caller* does not hold ``Admin``.
        InvalidArgumentError
            If *implementation_cls* is not an OpenDID implementation.
        """
        if not (isinstance(implementation_cls, type) and issubclass(implementation_cls, OpenDID)):
            raise InvalidArgumentError(
                f"{implementation_cls!r} is not an OpenDID implementation"
            )
        current = self._implementation
        state = current.state
        with state.lock:
            current.authorize_upgrade(caller)
            upgraded = implementation_cls(state)
            self._implementation = upgraded
            state.events.emit(
                "Upgraded",
                subject_id=implementation_cls.__name__,
                actor=caller,
                previous_version=current.version,
                version=upgraded.version,
            )
        logger.info(
            "OpenDID upgraded from %s to %s by %s", current.version, upgraded.version, caller
        )
        return upgraded

    def __getattr__(self, name: str) -> object:
        if name == "_implementation":
            raise AttributeError(name)
        return getattr(self._implementation, name)


__all__ = ["RegistryProxy"]
