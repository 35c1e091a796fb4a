"""Key material codecs used when validating DID documents."""
from __future__ import annotations

from opendid_registry.codec.multibase import MultibaseCodec

__all__ = ["MultibaseCodec"]
