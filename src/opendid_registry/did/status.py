"""DID document status lifecycle.

Statuses only move forward along
``ACTIVE -> DEACTIVATED -> REVOKED -> TERMINATED``. States may be skipped
but never revisited, and ``TERMINATED`` admits no further transition.
"""
from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from opendid_registry.errors import InvalidArgumentError, InvalidTransitionError


class DidStatus(IntEnum):
    """Ordered DID document statuses. Higher values are later in the lifecycle."""

    ACTIVE = 0
    DEACTIVATED = 1
    REVOKED = 2
    TERMINATED = 3

    @property
    def is_terminal(self) -> bool:
        return self is DidStatus.TERMINATED

    @property
    def records_terminated_time(self) -> bool:
        """True for statuses that keep the submitted ``terminatedTime``."""
        return self >= DidStatus.REVOKED


def parse_status(value: DidStatus | str | int) -> DidStatus:
    """Translate a label (``"DEACTIVATED"``), number, or enum into a DidStatus.

    Labels are matched case-insensitively.

    Raises
    ------
    InvalidArgumentError
        If *value* does not name a status.
    """
    if isinstance(value, DidStatus):
        return value
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid document status {value!r}")
    if isinstance(value, int):
        try:
            return DidStatus(value)
        except ValueError:
            raise InvalidArgumentError(f"Invalid document status {value!r}") from None
    label = str(value).strip().upper()
    if label.isdigit():
        return parse_status(int(label))
    try:
        return DidStatus[label]
    except KeyError:
        raise InvalidArgumentError(
            f"Invalid document status {value!r}. "
            f"Expected one of {[s.name for s in DidStatus]}"
        ) from None


def check_transition(current: DidStatus, requested: DidStatus) -> None:
    """Raise InvalidTransitionError unless *requested* moves strictly forward."""
    if current.is_terminal:
        raise InvalidTransitionError(
            f"Document is {current.name}; no further status change is allowed"
        )
    if requested <= current:
        raise InvalidTransitionError(
            f"Cannot change document status from {current.name} to {requested.name}"
        )


class DocumentStatus(BaseModel):
    """Status record kept next to each stored DID document.

    Parameters
    ----------
    id:
        DID of the document this record belongs to.
    status:
        Current lifecycle status.
    version:
        Document version the status applies to.
    role_type:
        Role label of the party that set the status.
    terminated_time:
        Time of revocation/termination; empty otherwise.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    status: DidStatus = DidStatus.ACTIVE
    version: str = ""
    role_type: str = ""
    terminated_time: str = ""

    def to_wire(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, mode="json")


__all__ = ["DidStatus", "DocumentStatus", "check_transition", "parse_status"]
