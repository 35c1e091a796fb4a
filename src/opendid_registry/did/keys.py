"""Validation of verification-method key material.

Each verification method's ``publicKeyMultibase`` is decoded with the
multibase codec and, for key types the registry knows, loaded with
``cryptography`` to prove the bytes are a real public key on the
advertised curve. Unknown key types only need non-empty key bytes.
"""
from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from opendid_registry.codec.multibase import MultibaseCodec
from opendid_registry.did.document import DidDocument, VerificationMethod
from opendid_registry.errors import InvalidArgumentError

# Multicodec prefix for ed25519-pub, present in Ed25519VerificationKey2020 keys.
_ED25519_MULTICODEC = b"\xed\x01"

_EC_KEY_TYPES: dict[str, type[ec.EllipticCurve]] = {
    "Secp256r1VerificationKey2018": ec.SECP256R1,
    "Secp256k1VerificationKey2018": ec.SECP256K1,
    "EcdsaSecp256k1VerificationKey2019": ec.SECP256K1,
}

_ED25519_KEY_TYPES: frozenset[str] = frozenset(
    {"Ed25519VerificationKey2018", "Ed25519VerificationKey2020"}
)


def validate_key_bytes(key_type: str, raw: bytes) -> None:
    """Check *raw* is a well-formed public key for *key_type*.

    Raises
    ------
    InvalidArgumentError
        If the bytes cannot be loaded as a key of that type.
    """
    if not raw:
        raise InvalidArgumentError(f"{key_type} key material is empty")

    curve = _EC_KEY_TYPES.get(key_type)
    if curve is not None:
        try:
            ec.EllipticCurvePublicKey.from_encoded_point(curve(), raw)
        except ValueError as exc:
            raise InvalidArgumentError(
                f"Invalid {key_type} public key: {exc}"
            ) from exc
        return

    if key_type in _ED25519_KEY_TYPES:
        if len(raw) == 34 and raw.startswith(_ED25519_MULTICODEC):
            raw = raw[2:]
        try:
            Ed25519PublicKey.from_public_bytes(raw)
        except ValueError as exc:
            raise InvalidArgumentError(
                f"Invalid {key_type} public key: {exc}"
            ) from exc


def validate_verification_method(
    method: VerificationMethod, codec: MultibaseCodec
) -> bytes:
    """Decode and validate one verification method; return the raw key bytes."""
    try:
        raw = codec.decode(method.public_key_multibase)
    except InvalidArgumentError as exc:
        raise InvalidArgumentError(
            f"verificationMethod {method.id!r}: {exc.message}"
        ) from exc
    validate_key_bytes(method.type, raw)
    return raw


def validate_document_keys(document: DidDocument, codec: MultibaseCodec) -> None:
    """Validate every verification method in *document*."""
    for method in document.verification_method:
        validate_verification_method(method, codec)


__all__ = [
    "validate_document_keys",
    "validate_key_bytes",
    "validate_verification_method",
]
