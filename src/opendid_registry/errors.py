"""Error taxonomy for the registry.

Every failure raised by the registry derives from :class:`RegistryError`
and carries a machine-checkable ``kind`` plus a human-readable ``message``.
Each concrete error also mixes in the builtin exception callers would
naturally catch (``KeyError`` for lookups, ``PermissionError`` for role
checks, ``ValueError`` for bad input).
"""
from __future__ import annotations


class RegistryError(Exception):
    """Base class for all registry errors."""

    kind: str = "RegistryError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, str]:
        """Serialize to a plain dictionary."""
        return {"kind": self.kind, "message": self.message}


class InvalidArgumentError(RegistryError, ValueError):
    """Raised for a zero identity, an empty role label, or a malformed record."""

    kind = "InvalidArgument"


class NotFoundError(RegistryError, KeyError):
    """Raised when a lookup targets an id that is not present."""

    kind = "NotFound"

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return self.message


class AlreadyExistsError(RegistryError, ValueError):
    """Raised when registering an id that already exists."""

    kind = "AlreadyExists"


class UnauthorizedError(RegistryError, PermissionError):
    """Raised when the caller does not hold the role an operation requires."""

    kind = "Unauthorized"


class InvalidTransitionError(RegistryError, ValueError):
    """Raised when a status update would regress or leave a terminal state."""

    kind = "InvalidTransition"


class AlreadyInitializedError(RegistryError):
    """Raised when a one-time initializer is called a second time."""

    kind = "AlreadyInitialized"


class NotInitializedError(RegistryError):
    """Raised when the registry is used before it has been initialized."""

    kind = "NotInitialized"


__all__ = [
    "AlreadyExistsError",
    "AlreadyInitializedError",
    "InvalidArgumentError",
    "InvalidTransitionError",
    "NotFoundError",
    "NotInitializedError",
    "RegistryError",
    "UnauthorizedError",
]
