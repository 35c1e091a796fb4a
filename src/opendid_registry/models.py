"""Base model shared by every record the registry stores.

Field names are snake_case in Python and camelCase on the wire. Both
spellings are accepted on input, and attributes the model does not
declare are kept and returned unchanged.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> dict[str, object]:
        """Serialize with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


__all__ = ["WireModel"]
