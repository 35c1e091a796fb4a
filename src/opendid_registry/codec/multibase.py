"""MultibaseCodec — encode/decode verification-method key material.

Thin wrapper over the ``py-multibase`` package. Multibase strings carry
their base as a one-character prefix (``z`` for base58btc, ``m`` for
base64), so decoding needs no hint. The short names ``"base58"`` and
``"base64"`` used by existing DID documents are accepted as aliases.

Base64 output carries RFC 4648 ``=`` padding, as existing OpenDID key
material does; py-multibase itself neither emits nor accepts padding, so
the codec adds it on encode and strips it before decoding.
"""
from __future__ import annotations

import multibase

from opendid_registry.errors import InvalidArgumentError

_ALIASES: dict[str, str] = {
    "base58": "base58btc",
    "base58btc": "base58btc",
    "base64": "base64",
    "base64url": "base64url",
    "base16": "base16",
    "base32": "base32",
}

# Prefixes of the base64 family, whose values may end in "=" padding.
_PADDED_PREFIXES: frozenset[str] = frozenset({"m", "u"})


class MultibaseCodec:
    """Encode bytes to multibase strings and back.

    Parameters
    ----------
    default_base:
        Base used by :meth:`encode` when none is given.
    """

    def __init__(self, default_base: str = "base58btc") -> None:
        self._default_base = self._resolve(default_base)

    @staticmethod
    def _resolve(base: str) -> str:
        try:
            return _ALIASES[base.lower()]
        except KeyError:
            raise InvalidArgumentError(
                f"Unsupported multibase encoding {base!r}. "
                f"Supported: {sorted(_ALIASES)}"
            ) from None

    def encode(self, data: bytes, base: str | None = None) -> str:
        """Encode *data* with *base* and return the prefixed string."""
        encoding = self._resolve(base) if base else self._default_base
        encoded = multibase.encode(encoding, data).decode("ascii")
        if encoding == "base64":
            body_length = len(encoded) - 1
            encoded += "=" * (-body_length % 4)
        return encoded

    def decode(self, value: str) -> bytes:
        """Decode a multibase string.

        Raises
        ------
        InvalidArgumentError
            If *value* is empty, has an unknown prefix, or is not valid in
            the base its prefix names.
        """
        if not value:
            raise InvalidArgumentError("Multibase value must not be empty.")
        text = value.rstrip("=") if value[0] in _PADDED_PREFIXES else value
        try:
            return bytes(multibase.decode(text))
        except (ValueError, KeyError, TypeError) as exc:
            raise InvalidArgumentError(
                f"Could not decode multibase value {value!r}: {exc}"
            ) from exc

    def base_of(self, value: str) -> str:
        """Return the encoding name of a multibase string."""
        try:
            return str(multibase.get_codec(value).encoding)
        except (ValueError, KeyError, TypeError) as exc:
            raise InvalidArgumentError(
                f"Could not determine multibase encoding of {value!r}: {exc}"
            ) from exc


__all__ = ["MultibaseCodec"]
